from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from routers.rooms import rooms_router
from routers.signal import signal_router
from schemas.rooms import HealthResponse
from backend import room_store, normalize_room_code, is_valid_room_code
from hub import room_hub
from sweeper import sweep_expired_rooms
from errors import RoomError
from constants import LOG_LEVEL, LOG_FILE
from logging_config import get_logger, setup_logging
import asyncio

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper_task = asyncio.create_task(sweep_expired_rooms(room_store))
    app.state.sweeper_task = sweeper_task
    try:
        yield
    finally:
        sweeper_task.cancel()
        try:
            await sweeper_task
        except asyncio.CancelledError:
            pass
        logger.debug("Room sweeper stopped")


app = FastAPI(lifespan=lifespan)

# Configure CORS to allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rooms_router)
app.include_router(signal_router)

logger.info("FastAPI application initialized")


@app.exception_handler(RoomError)
async def room_error_handler(request: Request, exc: RoomError):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.code})


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, room: str = None):
    """Live collaboration socket for one participant.

    Query parameters:
    - room: 5-digit room code; the connection is closed unanswered if it is invalid
    """
    code = normalize_room_code(room)
    if not is_valid_room_code(code):
        logger.info(f"WebSocket connection rejected: invalid room {room!r}")
        await websocket.close(code=1008)
        return

    await websocket.accept()
    session = None
    try:
        session = await room_hub.join(code, websocket)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            await room_hub.handle_message(code, session, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for room {code}")
    except Exception as e:
        logger.error(f"WebSocket error in room {code}: {e}", exc_info=True)
        try:
            await websocket.close()
        except Exception as close_error:
            logger.debug(f"Error closing WebSocket: {close_error}")
    finally:
        if session is not None:
            await room_hub.leave(code, session)

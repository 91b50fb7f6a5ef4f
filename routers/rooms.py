from fastapi import APIRouter, Request
from schemas.rooms import CreateRoomResponse
from backend import room_store
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api", tags=["rooms"])


@rooms_router.post("/room", response_model=CreateRoomResponse)
async def create_room(request: Request):
    # Response 200: { "code": "04821" }
    client_host = request.client.host if request.client else "unknown"
    code = room_store.create_room()
    logger.info(f"Room {code} created for {client_host}")
    return CreateRoomResponse(code=code)

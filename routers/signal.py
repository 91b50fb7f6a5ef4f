import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from backend import is_valid_room_code, normalize_room_code, room_store
from constants import MAX_SIGNAL_BODY_BYTES, SIGNAL_TYPES
from errors import RoomError
from schemas.rooms import ErrorResponse, OkResponse, PendingResponse
from logging_config import get_logger

logger = get_logger(__name__)

signal_router = APIRouter(prefix="/api/signal", tags=["signal"])

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}}


def validate_signal_target(room: str, signal_type: str) -> str:
    code = normalize_room_code(room)
    if not is_valid_room_code(code):
        logger.warning(f"Rejected signal request: invalid room {room!r}")
        raise RoomError("invalid_room")
    if signal_type not in SIGNAL_TYPES:
        logger.warning(f"Rejected signal request for room {code}: invalid type {signal_type!r}")
        raise RoomError("invalid_type")
    return code


def set_signal(code: str, signal_type: str, payload: Any):
    room = room_store.get_or_create(code)
    setattr(room, signal_type, payload)
    room_store.touch(room)
    logger.info(f"Stored {signal_type} for room {code}")


def get_signal(code: str, signal_type: str) -> Any:
    room = room_store.get_or_create(code)
    payload = getattr(room, signal_type)
    if payload is None:
        return PendingResponse().model_dump()
    return payload


def is_json_request(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


async def read_payload(request: Request) -> Any:
    # Bodies that are not declared as JSON are ignored and stored as {}
    if not is_json_request(request):
        logger.debug(f"Ignoring non-JSON body ({request.headers.get('content-type')!r})")
        return {}
    body = await request.body()
    if len(body) > MAX_SIGNAL_BODY_BYTES:
        raise RoomError("payload_too_large", status_code=413)
    if not body.strip():
        return {}
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, ValueError):
        raise RoomError("invalid_json")
    # Only objects and arrays are accepted, like a strict JSON body parser
    if not isinstance(payload, (dict, list)):
        raise RoomError("invalid_json")
    return payload


@signal_router.api_route(
    "/{room}/{signal_type}", methods=["POST", "PUT"], response_model=OkResponse, responses=ERROR_RESPONSES
)
async def put_signal(room: str, signal_type: str, request: Request):
    code = validate_signal_target(room, signal_type)
    payload = await read_payload(request)
    set_signal(code, signal_type, payload)
    return OkResponse()


@signal_router.get("/{room}/{signal_type}", responses=ERROR_RESPONSES)
async def fetch_signal(room: str, signal_type: str):
    code = validate_signal_target(room, signal_type)
    payload = get_signal(code, signal_type)
    logger.debug(f"Served {signal_type} for room {code}")
    return JSONResponse(content=payload)

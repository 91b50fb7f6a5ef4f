from pydantic import BaseModel
from typing import Literal


class HealthResponse(BaseModel):
    ok: bool = True

class CreateRoomResponse(BaseModel):
    code: str

class OkResponse(BaseModel):
    ok: bool = True

class ErrorResponse(BaseModel):
    ok: bool = False
    error: Literal["invalid_room", "invalid_type", "invalid_json", "payload_too_large"]

class PendingResponse(BaseModel):
    pending: bool = True

import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

ROOM_CODE_LENGTH = 5
ROOM_TTL_SECONDS = 2 * 60 * 60
SWEEP_INTERVAL_SECONDS = 30 * 60

SIGNAL_TYPES = ("offer", "answer")
MAX_SIGNAL_BODY_BYTES = 1024 * 1024

# Palette handed out to participants, first free color wins
SESSION_COLORS = (
    "#f97316",
    "#22c55e",
    "#3b82f6",
    "#a855f7",
    "#ec4899",
    "#eab308",
)

import asyncio

from backend import RoomStore
from constants import SWEEP_INTERVAL_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)


async def sweep_expired_rooms(store: RoomStore, interval: float = SWEEP_INTERVAL_SECONDS):
    """Background task evicting idle rooms every `interval` seconds until cancelled."""
    logger.info(f"Starting room sweeper, interval {interval} seconds")
    try:
        while True:
            await asyncio.sleep(interval)
            try:
                removed = store.sweep()
                if removed:
                    logger.info(f"Swept {removed} expired rooms ({len(store)} remaining)")
            except Exception as e:
                logger.error(f"Room sweep failed: {e}", exc_info=True)
    except asyncio.CancelledError:
        logger.info("Room sweeper cancelled")
        raise

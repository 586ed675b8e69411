"""Event bus for pushing real-time updates to WebSocket clients.

Events raised during a request are parked on the DB session and only pushed
once that session commits, so clients never see rows that were rolled back.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from terrin.common.logging import get_logger

logger = get_logger("events")

_PENDING_KEY = "pending_events"


async def emit(user_ids: Iterable[str], event: str, data: dict) -> None:
    """Push an event to every open WebSocket of the given users.

    No-op for users without an open connection.
    """
    try:
        from terrin.api.ws import manager

        for user_id in user_ids:
            await manager.send_to_user(user_id, event, data)
    except Exception as e:
        logger.debug("Event emit failed (non-critical): %s", e)


def queue_event(db: AsyncSession, user_ids: Iterable[str], event: str, data: dict) -> None:
    db.info.setdefault(_PENDING_KEY, []).append((list(user_ids), event, data))


async def flush_events(db: AsyncSession) -> None:
    """Emit everything queued on ``db``. Call after a successful commit."""
    for user_ids, event, data in db.info.pop(_PENDING_KEY, []):
        await emit(user_ids, event, data)


def discard_events(db: AsyncSession) -> None:
    dropped = db.info.pop(_PENDING_KEY, [])
    if dropped:
        logger.info("Dropped %d queued event(s) after rollback", len(dropped))

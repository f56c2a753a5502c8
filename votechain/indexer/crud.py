"""
CRUD utils for the indexer tables: tracker cursors and the
skipped-event log.

14-10-2026
"""

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from votechain.indexer import models
from votechain.indexer.events import EventId

# ----- Cursor CRUD Utils -----


async def get_cursor(session: AsyncSession, tracker_id: str) -> EventId | None:
    query = select(models.Cursor).where(models.Cursor.id == tracker_id)
    result = await session.execute(query)
    db_cursor = result.scalars().first()
    if db_cursor is None:
        return None

    return EventId(tx_digest=db_cursor.tx_digest, event_seq=db_cursor.event_seq)


async def get_cursors(session: AsyncSession):
    query = select(models.Cursor).order_by(models.Cursor.id)
    result = await session.execute(query)
    return result.scalars().all()


async def save_cursor(session: AsyncSession, tracker_id: str, cursor: EventId):
    """
    Create-or-overwrite the cursor row of `tracker_id`. Each tracker
    has a single loop, so no two writers race on the same row.
    """
    query = select(models.Cursor).where(models.Cursor.id == tracker_id)
    result = await session.execute(query)
    db_cursor = result.scalars().first()

    if db_cursor is None:
        db_cursor = models.Cursor(id=tracker_id)
        session.add(db_cursor)

    db_cursor.tx_digest = cursor.tx_digest
    db_cursor.event_seq = cursor.event_seq
    await session.commit()


async def delete_cursor(session: AsyncSession, tracker_id: str) -> bool:
    query = delete(models.Cursor).where(models.Cursor.id == tracker_id)
    result = await session.execute(query)
    await session.commit()
    return result.rowcount > 0


# ----- IndexerLog CRUD Utils -----


async def log_to_db(
    session: AsyncSession,
    tracker: str,
    log_level: str,
    event: str,
    event_params: str,
    tx_digest: str | None = None,
    event_seq: str | None = None,
):
    """
    Stores a skipped event once: a redelivered page finds the row of
    its first delivery and leaves it as is.
    """
    if tx_digest is not None:
        db_log = await get_log(session, tracker, event, tx_digest, event_seq)
        if db_log is not None:
            return db_log

    db_log = models.IndexerLog(
        tracker=tracker,
        log_level=log_level,
        event=event,
        event_params=event_params,
        tx_digest=tx_digest,
        event_seq=event_seq,
    )
    session.add(db_log)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        return await get_log(session, tracker, event, tx_digest, event_seq)
    return db_log


async def get_log(session: AsyncSession, tracker: str, event: str, tx_digest: str, event_seq: str):
    query = select(models.IndexerLog).where(
        models.IndexerLog.tracker == tracker,
        models.IndexerLog.event == event,
        models.IndexerLog.tx_digest == tx_digest,
        models.IndexerLog.event_seq == event_seq,
    )
    result = await session.execute(query)
    return result.scalars().first()


async def get_logs(session: AsyncSession, tracker: str | None = None, limit: int = 100):
    query = select(models.IndexerLog).order_by(models.IndexerLog.id.desc()).limit(limit)
    if tracker is not None:
        query = query.where(models.IndexerLog.tracker == tracker)
    result = await session.execute(query)
    return result.scalars().all()


async def count_logs(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(models.IndexerLog.id)))
    return result.scalar_one()

from fastapi import Depends, HTTPException, APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from votechain.database import Database
from votechain.dependencies import get_database, get_session
from votechain.elections.model.schemas import schemas
from votechain.elections.utils import tz_now
from votechain.indexer import crud
from votechain.logger import logger

indexer_router = APIRouter(prefix="/api", tags=["indexer"])


@indexer_router.get("/health")
async def health(database: Database = Depends(get_database)):
    """
    Health check: the service is up and the database answers
    """
    try:
        await database.ping()
    except (SQLAlchemyError, OSError):
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": tz_now().isoformat(),
                "database": "disconnected",
                "error": "Database connection failed",
            },
        )

    return {
        "status": "healthy",
        "timestamp": tz_now().isoformat(),
        "database": "connected",
    }


@indexer_router.get("/indexer/status", response_model=schemas.IndexerStatusOut, status_code=200)
async def indexer_status(session: AsyncSession = Depends(get_session)):
    """
    Where every tracker stands, plus how many events were skipped
    """
    try:
        cursors = await crud.get_cursors(session)
        skipped = await crud.count_logs(session)
    except SQLAlchemyError:
        logger.exception("Error fetching indexer status")
        raise HTTPException(status_code=500, detail="Failed to fetch indexer status")

    return schemas.IndexerStatusOut(
        trackers=[
            schemas.CursorOut(
                tracker=cursor.id,
                tx_digest=cursor.tx_digest,
                event_seq=cursor.event_seq,
                updated_at=cursor.updated_at,
            )
            for cursor in cursors
        ],
        skipped_events=skipped,
    )

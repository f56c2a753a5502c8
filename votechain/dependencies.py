from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession


def get_database(request: Request):
    return request.app.state.database


async def get_session(request: Request) -> AsyncSession:
    """
    Database dependency: allows a single Session per request.
    """
    async with get_database(request).session() as session:
        yield session

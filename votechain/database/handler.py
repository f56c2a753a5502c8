from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class AsyncHandler(object):
    """
    Database handler for asyncronous querying.
    """

    def __init__(self, session_local) -> None:
        self.session_local = session_local

    def func_with_session(self, func):
        session_local = self.session_local

        async def wrapper(*args, **kwargs):
            async with session_local() as session:
                return await func(session, *args, **kwargs)

        return wrapper


class Database(object):
    """
    Abstraction layer for initializing
    database parameters such as SessionLocal
    and the db handler.

    One instance is built at process start and handed to
    every component that needs the store.
    """

    engine_options = {
        "pool_recycle": 3600
    }

    def __init__(self, engine, session_local, handler) -> None:
        self.engine = engine
        self.session_local = session_local
        self.handler = handler

    @staticmethod
    def init_db(db_url: str, **engine_options):
        options = dict(Database.engine_options)
        options.update(engine_options)
        engine = create_async_engine(db_url, **options)

        SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=engine, class_=AsyncSession, expire_on_commit=False
        )

        return Database(engine, SessionLocal, AsyncHandler(SessionLocal))

    @asynccontextmanager
    async def session(self):
        async with self.session_local() as session:
            yield session

    async def ping(self):
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        await self.engine.dispose()

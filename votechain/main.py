from contextlib import asynccontextmanager

from fastapi import FastAPI

from votechain import config
from votechain.database import Database
from votechain.elections.routes import api_router
from votechain.indexer.event_indexer import EventIndexer
from votechain.indexer.routes import indexer_router
from votechain.indexer.trackers import build_trackers
from votechain.logger import logger
from votechain.middleware import register_middlewares
from votechain.sui.client import SuiClient, get_fullnode_url


def build_database() -> Database:
    return Database.init_db(config.get_database_url())


def build_sui_client() -> SuiClient:
    url = config.SUI_RPC_URL or get_fullnode_url(config.SUI_NETWORK)
    logger.info("Sui client connected to: {}", url)
    return SuiClient(url, timeout=config.SUI_REQUEST_TIMEOUT)


def build_indexer(database: Database, source) -> EventIndexer:
    return EventIndexer(
        source=source,
        database=database,
        trackers=build_trackers(config.PACKAGE_ID, config.MODULE_NAME),
        polling_interval_ms=config.POLLING_INTERVAL_MS,
        page_size=config.QUERY_PAGE_SIZE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Verifies config and database before serving, runs the indexer
    alongside the API when enabled.
    """
    config.check_config()

    if app.state.database is None:
        app.state.database = build_database()
    database = app.state.database

    await database.ping()
    await database.create_all()
    logger.info("Database connected successfully")

    indexer = None
    source = None
    if app.state.run_indexer:
        source = app.state.event_source or build_sui_client()
        indexer = build_indexer(database, source)
        await indexer.setup_event_listeners()
    app.state.indexer = indexer

    yield

    if indexer is not None:
        await indexer.shutdown()
    if source is not None:
        await source.close()
    await database.dispose()
    logger.info("Database disconnected")


def create_app(database: Database | None = None, event_source=None, run_indexer: bool = config.INDEXER_ENABLED) -> FastAPI:
    app = FastAPI(title="Voting Platform Backend API", version="1.0.0", lifespan=lifespan)

    app.logger = logger
    app.state.database = database
    app.state.event_source = event_source
    app.state.run_indexer = run_indexer
    app.state.indexer = None

    register_middlewares(app)

    @app.get("/")
    async def root():
        return {
            "message": "Voting Platform Backend API",
            "version": "1.0.0",
            "endpoints": {
                "health": "/api/health",
                "elections": "/api/elections",
                "indexer": "/api/indexer/status",
            },
        }

    # Routes
    app.include_router(indexer_router)
    app.include_router(api_router)

    return app


app = create_app()

from votechain import config
from votechain.indexer import crud as indexer_crud
from votechain.indexer.enums import TrackerEnum
from votechain.logger import logger
from votechain.main import build_database, build_indexer, build_sui_client
from sqlalchemy.exc import SQLAlchemyError
import asyncio
import signal
import sys


async def run_command():
    method = sys.argv[1] if len(sys.argv) > 1 else None
    methods = {
        "init_db": init_db,
        "reset_db": reset_db,
        "run_indexer": run_indexer,
        "show_cursors": show_cursors,
        "reset_cursor": reset_cursor,
        "skipped_events": skipped_events,
    }
    if method not in methods:
        print(f"Unknown method: {method}. Available methods: {', '.join(methods.keys())}")
        return 2

    try:
        config.check_config()
    except config.ConfigError as e:
        logger.critical(str(e))
        return 1

    database = build_database()
    try:
        await database.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.critical(f"Database connection failed: {e}")
        await database.dispose()
        return 1

    try:
        return await methods[method](database, *sys.argv[2:]) or 0
    finally:
        await database.dispose()


async def init_db(database):
    await database.create_all()
    print("Tables created successfully")


async def reset_db(database):
    await database.drop_all()
    await database.create_all()
    print("Tables dropped and created successfully")


async def run_indexer(database):
    """
    Standalone indexer, stops gracefully on SIGINT / SIGTERM.
    """
    await database.create_all()
    source = build_sui_client()
    indexer = build_indexer(database, source)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, indexer.stop)

    logger.info(f"Package ID: {config.PACKAGE_ID}")
    logger.info(f"Network: {config.SUI_NETWORK}")
    await indexer.setup_event_listeners()
    await indexer.wait_closed()
    await source.close()


async def show_cursors(database):
    cursors = await database.handler.func_with_session(indexer_crud.get_cursors)()
    if not cursors:
        print("No cursors saved yet")
    for cursor in cursors:
        print(f"{cursor.id}: {cursor.tx_digest}:{cursor.event_seq} (updated {cursor.updated_at})")


async def reset_cursor(database, tracker: str = None):
    if tracker not in [t.value for t in TrackerEnum]:
        print(f"Unknown tracker: {tracker}. Available trackers: {', '.join(t.value for t in TrackerEnum)}")
        return 2

    deleted = await database.handler.func_with_session(indexer_crud.delete_cursor)(tracker)
    if deleted:
        print(f"Cursor of {tracker} removed, it will re-index from the first event")
    else:
        print(f"{tracker} had no cursor")


async def skipped_events(database, tracker: str = None):
    logs = await database.handler.func_with_session(indexer_crud.get_logs)(tracker=tracker)
    for log in logs:
        print(f"[{log.created_at}] {log.log_level} {log.tracker} {log.event} "
              f"{log.tx_digest}:{log.event_seq} {log.event_params}")


if __name__ == "__main__":
    sys.exit(asyncio.run(run_command()))

"""
Event indexer: polls the Sui node for every tracked event kind and
applies what it finds.

One asyncio task per tracker, each one a loop of

    fetch page after cursor -> handle page -> save cursor -> wait

The wait is zero while the node reports more pages (catch-up) and the
polling interval otherwise. A failed cycle leaves the cursor untouched,
so the same page is fetched again on the next tick.

14-10-2026
"""

import asyncio
from dataclasses import dataclass

from votechain.database import Database
from votechain.indexer import crud
from votechain.indexer.events import EventId
from votechain.indexer.trackers import EventTracker
from votechain.logger import logger
from votechain.sui.client import EventSource


@dataclass
class EventExecutionResult:
    cursor: EventId | None
    has_next_page: bool


class EventIndexer(object):
    """
    Drives the polling loops of all trackers.

    The event source and the database are shared by every loop; each
    loop only ever writes its own cursor row.
    """

    def __init__(
        self,
        source: EventSource,
        database: Database,
        trackers: list[EventTracker],
        polling_interval_ms: int = 5000,
        page_size: int = 50,
    ) -> None:
        self.source = source
        self.database = database
        self.trackers = trackers
        self.polling_interval = polling_interval_ms / 1000
        self.page_size = page_size

        self._stopping = asyncio.Event()
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def running(self):
        return any(not task.done() for task in self._tasks.values())

    async def get_latest_cursor(self, tracker: EventTracker) -> EventId | None:
        async with self.database.session() as session:
            return await crud.get_cursor(session, tracker.type)

    async def execute_event_job(self, tracker: EventTracker, cursor: EventId | None) -> EventExecutionResult:
        """
        Runs one fetch/apply/persist cycle and returns where the tracker
        stands afterwards. Never raises: a failed cycle returns the
        cursor it was given.
        """
        try:
            logger.debug("[{}] polling after {}", tracker.type, cursor)
            page = await self.source.query_events(
                tracker.filter, cursor=cursor, limit=self.page_size, descending_order=False
            )

            if not page.data:
                # An empty page cannot advance the cursor, re-polling right away would spin
                return EventExecutionResult(cursor=cursor, has_next_page=False)

            logger.info("[{}] {} new event(s)", tracker.type, len(page.data))
            new_cursor = page.data[-1].id

            async with self.database.session() as session:
                await tracker.callback(session, page.data)
                await crud.save_cursor(session, tracker.type, new_cursor)

            return EventExecutionResult(cursor=new_cursor, has_next_page=page.has_next_page)

        except Exception:
            logger.exception("[{}] polling cycle failed, retrying from {}", tracker.type, cursor)
            return EventExecutionResult(cursor=cursor, has_next_page=False)

    async def run_event_job(self, tracker: EventTracker, cursor: EventId | None):
        """
        Polls `tracker` until the indexer is stopped. A stop request
        never interrupts a cycle, it only cuts the wait between two.
        """
        logger.log("INDEXER", "Starting listener for {} from {}", tracker.type, cursor)
        while not self._stopping.is_set():
            result = await self.execute_event_job(tracker, cursor)
            cursor = result.cursor

            delay = 0 if result.has_next_page else self.polling_interval
            await self._wait(delay)

        logger.log("INDEXER", "Listener for {} stopped at {}", tracker.type, cursor)

    async def _wait(self, delay: float):
        if delay <= 0:
            # still yield so a draining tracker does not starve the others
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def setup_event_listeners(self):
        """
        Loads every tracker's cursor and starts its polling loop.
        """
        logger.log("INDEXER", "Starting event indexer ({} trackers, polling every {}s)",
                   len(self.trackers), self.polling_interval)
        self._stopping.clear()

        for tracker in self.trackers:
            cursor = await self.get_latest_cursor(tracker)
            self._tasks[tracker.type] = asyncio.create_task(
                self.run_event_job(tracker, cursor), name="tracker-{}".format(tracker.type)
            )

        logger.log("INDEXER", "All event listeners started")

    def stop(self):
        self._stopping.set()

    async def wait_closed(self):
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        self._tasks.clear()

    async def shutdown(self):
        logger.log("INDEXER", "Stopping event indexer")
        self.stop()
        await self.wait_closed()

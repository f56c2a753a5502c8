import os

os.environ["LOG_PATH"] = ""
os.environ.setdefault("PACKAGE_ID", "0xpkg")
os.environ.setdefault("TIMEZONE", "UTC")

import itertools

import pytest

from votechain.database import Database
from votechain.elections.model import models  # noqa: F401  (registers tables)
from votechain.indexer import models as indexer_models  # noqa: F401
from votechain.indexer.enums import TrackerEnum
from votechain.indexer.events import EventId, EventPage, SuiEvent
from votechain.indexer.trackers import build_trackers
from votechain.sui.client import EventSource, SuiRpcError

PACKAGE_ID = "0xpkg"
MODULE_NAME = "vote"

_digests = itertools.count(1)


def make_event(kind: TrackerEnum, parsed_json, tx_digest: str | None = None, event_seq: int = 0, timestamp_ms=None):
    if tx_digest is None:
        tx_digest = "tx{}".format(next(_digests))
    return SuiEvent.model_validate({
        "id": {"txDigest": tx_digest, "eventSeq": str(event_seq)},
        "type": "{}::{}::{}".format(PACKAGE_ID, MODULE_NAME, kind.value),
        "sender": "0xsender",
        "parsedJson": parsed_json,
        "timestampMs": timestamp_ms,
    })


def election_created(election_id="e1", name="Board Vote", creator="0xA", **kwargs):
    return make_event(
        TrackerEnum.election_created,
        {"election_id": election_id, "name": name, "creator": creator},
        **kwargs,
    )


def candidate_registered(election_id="e1", candidate="0xB", **kwargs):
    return make_event(
        TrackerEnum.candidate_registered, {"election_id": election_id, "candidate": candidate}, **kwargs
    )


def voter_registered(election_id="e1", voter="0xD", **kwargs):
    return make_event(TrackerEnum.voter_registered, {"election_id": election_id, "voter": voter}, **kwargs)


def vote_cast(election_id="e1", voter="0xD", candidate="0xB", **kwargs):
    return make_event(
        TrackerEnum.vote_cast, {"election_id": election_id, "voter": voter, "candidate": candidate}, **kwargs
    )


def election_ended(election_id="e1", winner="0xB", total_votes="1", **kwargs):
    return make_event(
        TrackerEnum.election_ended,
        {"election_id": election_id, "winner": winner, "total_votes": total_votes},
        **kwargs,
    )


class FakeEventSource(EventSource):
    """
    In-memory event source: one ordered stream per Move event type,
    answering with events strictly after the given cursor.
    """

    def __init__(self) -> None:
        self.streams: dict[str, list[SuiEvent]] = {}
        self.calls: list[tuple[str, EventId | None]] = []
        self.failures: dict[str, int] = {}
        self.closed = False

    def publish(self, *events: SuiEvent):
        for event in events:
            self.streams.setdefault(event.type, []).append(event)

    def fail(self, event_type: str, times: int = 1):
        self.failures[event_type] = times

    async def query_events(self, query, cursor=None, limit=None, descending_order=False):
        event_type = query["MoveEventType"]
        self.calls.append((event_type, cursor))

        if self.failures.get(event_type, 0) > 0:
            self.failures[event_type] -= 1
            raise SuiRpcError("node unavailable")

        stream = self.streams.get(event_type, [])
        start = 0
        if cursor is not None:
            ids = [event.id for event in stream]
            start = ids.index(cursor) + 1

        remaining = stream[start:]
        page = remaining[:limit] if limit else remaining
        return EventPage(data=page, next_cursor=page[-1].id if page else cursor, has_next_page=len(remaining) > len(page))

    async def close(self):
        self.closed = True


@pytest.fixture
async def database(tmp_path):
    db = Database.init_db("sqlite+aiosqlite:///{}".format(tmp_path / "votechain.db"))
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def source():
    return FakeEventSource()


@pytest.fixture
def trackers():
    return {tracker.type: tracker for tracker in build_trackers(PACKAGE_ID, MODULE_NAME)}

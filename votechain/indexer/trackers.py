"""
Events we want to track: each Move event kind gets its own
filter and handler, and is polled by its own loop.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from votechain.indexer import handlers
from votechain.indexer.enums import TrackerEnum
from votechain.indexer.events import SuiEvent
from votechain.sui.client import get_event_type

HANDLERS = {
    TrackerEnum.election_created: handlers.handle_election_created,
    TrackerEnum.candidate_registered: handlers.handle_candidate_registered,
    TrackerEnum.voter_registered: handlers.handle_voter_registered,
    TrackerEnum.vote_cast: handlers.handle_vote_cast,
    TrackerEnum.election_ended: handlers.handle_election_ended,
}


@dataclass(frozen=True)
class EventTracker:
    # Unique identifier for this tracker, also the id of its cursor row
    type: str
    filter: dict
    callback: Callable[[AsyncSession, list[SuiEvent]], Awaitable]


def build_trackers(package_id: str, module_name: str) -> list[EventTracker]:
    return [
        EventTracker(
            type=kind.value,
            filter={"MoveEventType": get_event_type(package_id, module_name, kind.value)},
            callback=callback,
        )
        for kind, callback in HANDLERS.items()
    ]

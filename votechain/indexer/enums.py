"""
Enums for the indexer.

14-10-2026
"""

import enum


class TrackerEnum(str, enum.Enum):
    """
    Move event struct names emitted by the vote module, one tracker each.
    """

    election_created = "EventElectionCreated"
    candidate_registered = "EventCandidateRegistered"
    voter_registered = "EventVoterRegistered"
    vote_cast = "EventVoteCast"
    election_ended = "EventElectionEnded"


class IndexerEventEnum(str, enum.Enum):
    """
    Reasons an event is skipped instead of applied.
    """

    MALFORMED_EVENT = "malformed_event"
    ELECTION_NOT_FOUND = "election_not_found"
    PROCESSING_ERROR = "processing_error"

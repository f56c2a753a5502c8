"""
Pydantic schemas (FastAPI) for the elections read API.

14-10-2026

Only "Out" schemas exist: the API never creates or modifies
data, everything it returns was materialized by the indexer.

Field names are snake_case in Python and camelCase on the wire
(`election_id` <-> `electionId`).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class VoteChainSchema(BaseModel):
    """
    Base class for a votechain schema, camelCase aliases and ORM loading.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


#  Election-related schemas


class ElectionBase(VoteChainSchema):
    """
    Basic election schema.
    """

    id: int
    election_id: str
    name: str
    creator: str
    created_at: datetime | None
    has_ended: bool


class ElectionSummaryOut(ElectionBase):
    """
    Election as listed, with aggregate counts.
    """

    candidate_count: int
    voter_count: int
    vote_count: int


class ResultOut(VoteChainSchema):
    winner: str | None
    total_votes: int


class ElectionOut(ElectionBase):
    """
    Schema for reading/returning a single election.
    """

    candidates: list[str]
    voters: list[str]
    vote_count: int
    result: ResultOut | None


#  Candidate / Voter / Vote schemas


class CandidateOut(VoteChainSchema):
    candidate_address: str
    vote_count: int


class VoterOut(VoteChainSchema):
    voter_address: str
    has_voted: bool


class VoteOut(VoteChainSchema):
    voter_address: str
    candidate_address: str
    tx_digest: str
    created_at: datetime | None


#  Results schemas


class CandidateResultOut(CandidateOut):
    percentage: str


class ResultsOut(VoteChainSchema):
    election_id: str
    has_ended: bool
    winner: str | None
    total_votes: int
    candidates: list[CandidateResultOut]


#  Indexer schemas


class CursorOut(VoteChainSchema):
    tracker: str
    tx_digest: str
    event_seq: str
    updated_at: datetime | None


class IndexerStatusOut(VoteChainSchema):
    trackers: list[CursorOut]
    skipped_events: int

"""
Typed views of the events returned by `suix_queryEvents`.

`parsedJson` arrives as an untyped JSON object, each event kind has
its own payload schema and `parse_payload` is the only way in:
anything that does not validate becomes a MalformedEventError.

14-10-2026
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from votechain.indexer.exceptions import MalformedEventError


class EventId(BaseModel):
    """
    Position of an event in the ledger: transaction digest plus the
    index of the event inside that transaction.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tx_digest: str = Field(alias="txDigest", min_length=1)
    event_seq: str = Field(alias="eventSeq")

    @field_validator("event_seq", mode="before")
    @classmethod
    def seq_as_string(cls, value):
        # u64 values may come back as JSON numbers or strings
        return str(value) if isinstance(value, int) else value

    def to_rpc(self) -> dict:
        return {"txDigest": self.tx_digest, "eventSeq": self.event_seq}


class SuiEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: EventId
    type: str = ""
    sender: Optional[str] = None
    parsed_json: Optional[Any] = Field(default=None, alias="parsedJson")
    timestamp_ms: Optional[str] = Field(default=None, alias="timestampMs")

    @field_validator("timestamp_ms", mode="before")
    @classmethod
    def timestamp_as_string(cls, value):
        return str(value) if isinstance(value, int) else value


class EventPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[SuiEvent] = []
    next_cursor: Optional[EventId] = Field(default=None, alias="nextCursor")
    has_next_page: bool = Field(default=False, alias="hasNextPage")


# ----- Payloads (one per Move event struct) -----


class EventPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    election_id: str = Field(min_length=1)

    @field_validator("election_id", mode="before")
    @classmethod
    def id_as_string(cls, value):
        return str(value) if isinstance(value, int) and not isinstance(value, bool) else value


class ElectionCreatedPayload(EventPayload):
    name: str = Field(min_length=1)
    creator: str = Field(min_length=1)


class CandidateRegisteredPayload(EventPayload):
    candidate: str = Field(min_length=1)


class VoterRegisteredPayload(EventPayload):
    voter: str = Field(min_length=1)


class VoteCastPayload(EventPayload):
    voter: str = Field(min_length=1)
    candidate: str = Field(min_length=1)


class ElectionEndedPayload(EventPayload):
    winner: Optional[str] = None
    total_votes: int = Field(ge=0)

    @field_validator("winner", mode="before")
    @classmethod
    def unwrap_option(cls, value):
        """
        Move's Option<address> is serialized either as null, as the bare
        address or as {"vec": []} / {"vec": [address]}.
        """
        if isinstance(value, dict) and "vec" in value:
            vec = value["vec"]
            if not isinstance(vec, list) or len(vec) > 1:
                raise ValueError("invalid Option encoding")
            return vec[0] if vec else None
        if value == "":
            return None
        return value


def parse_payload(event: SuiEvent, payload_class: type[EventPayload]) -> EventPayload:
    if event.parsed_json is None:
        raise MalformedEventError(event, "parsedJson is missing")
    if not isinstance(event.parsed_json, dict):
        raise MalformedEventError(event, "parsedJson is not an object")

    try:
        return payload_class.model_validate(event.parsed_json)
    except ValidationError as e:
        fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
        raise MalformedEventError(event, "invalid field(s): {}".format(fields)) from e

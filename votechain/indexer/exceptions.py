"""
Exceptions raised while applying events.

Both are per-event: the handler logs them, skips the event and
carries on with the rest of the page.
"""


class IndexerError(Exception):
    def __init__(self, event, message: str) -> None:
        self.event = event
        self.message = message
        super().__init__(message)

    @property
    def tx_digest(self):
        return self.event.id.tx_digest if self.event is not None else None

    @property
    def event_seq(self):
        return self.event.id.event_seq if self.event is not None else None


class MalformedEventError(IndexerError):
    """A required field of the event payload is missing or invalid."""


class ElectionNotFoundError(IndexerError):
    """The event refers to an election that is not materialized (yet)."""

    def __init__(self, event, election_id: str) -> None:
        self.election_id = election_id
        super().__init__(event, "election {} is not indexed".format(election_id))

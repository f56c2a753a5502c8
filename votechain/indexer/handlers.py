"""
Event handlers, one per Move event kind.

A handler receives a whole page of events in ledger order and applies
them one by one. Per event:

    - a payload that does not validate is logged and skipped,
    - an event whose election is not indexed is logged and skipped
      (it is not retried),
    - a duplicate (redelivery, replay after a crash) is a silent no-op.

Store outages are not per-event problems: they propagate so the
scheduler keeps the cursor where it was and refetches the page.

14-10-2026
"""

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from votechain.elections.model.cruds import crud
from votechain.elections.utils import from_timestamp_ms
from votechain.indexer import events as payloads
from votechain.indexer.enums import IndexerEventEnum, TrackerEnum
from votechain.indexer.events import SuiEvent, parse_payload
from votechain.indexer.exceptions import ElectionNotFoundError, MalformedEventError
from votechain.logger import indexer_logger, logger

STORE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


async def _require_election(session: AsyncSession, event: SuiEvent, election_id: str):
    if not await crud.election_exists(session, election_id):
        raise ElectionNotFoundError(event, election_id)


async def process_events(session: AsyncSession, tracker: TrackerEnum, events: list[SuiEvent], payload_class, apply):
    """
    Runs `apply(session, event, payload)` for every event of the page.
    Returns the number of events that created a row.
    """
    applied = 0
    for event in events:
        try:
            payload = parse_payload(event, payload_class)
            if await apply(session, event, payload):
                applied += 1

        except MalformedEventError as e:
            await indexer_logger.warning(
                session, tracker.value, IndexerEventEnum.MALFORMED_EVENT, event, reason=e.message
            )

        except ElectionNotFoundError as e:
            await indexer_logger.warning(
                session, tracker.value, IndexerEventEnum.ELECTION_NOT_FOUND, event, election_id=e.election_id
            )

        except STORE_UNAVAILABLE_ERRORS:
            raise

        except Exception as e:
            logger.exception("[{}] failed to apply event {}", tracker.value, event.id)
            await session.rollback()
            await indexer_logger.error(
                session, tracker.value, IndexerEventEnum.PROCESSING_ERROR, event, reason=repr(e)
            )

    return applied


# ----- Election -----


async def _apply_election_created(session: AsyncSession, event: SuiEvent, data: payloads.ElectionCreatedPayload):
    created = await crud.create_election(
        session=session,
        election_id=data.election_id,
        name=data.name,
        creator=data.creator,
        tx_digest=event.id.tx_digest,
        created_at=from_timestamp_ms(event.timestamp_ms),
    )
    if created:
        logger.info("Stored election {}: {}", data.election_id, data.name)
    else:
        logger.debug("Election {} already exists, skipping", data.election_id)
    return created


async def handle_election_created(session: AsyncSession, events: list[SuiEvent]):
    return await process_events(
        session, TrackerEnum.election_created, events,
        payloads.ElectionCreatedPayload, _apply_election_created,
    )


async def _apply_election_ended(session: AsyncSession, event: SuiEvent, data: payloads.ElectionEndedPayload):
    await _require_election(session, event, data.election_id)

    created = await crud.create_result(
        session=session,
        election_id=data.election_id,
        winner=data.winner,
        total_votes=data.total_votes,
        tx_digest=event.id.tx_digest,
    )
    if created:
        logger.info(
            "Stored result of election {}: winner={} total_votes={}",
            data.election_id, data.winner, data.total_votes,
        )
    else:
        logger.debug("Result of election {} already exists, skipping", data.election_id)
    return created


async def handle_election_ended(session: AsyncSession, events: list[SuiEvent]):
    return await process_events(
        session, TrackerEnum.election_ended, events,
        payloads.ElectionEndedPayload, _apply_election_ended,
    )


# ----- Candidate -----


async def _apply_candidate_registered(session: AsyncSession, event: SuiEvent, data: payloads.CandidateRegisteredPayload):
    await _require_election(session, event, data.election_id)

    created = await crud.upsert_candidate(
        session=session,
        election_id=data.election_id,
        candidate_address=data.candidate,
        tx_digest=event.id.tx_digest,
    )
    if created:
        logger.info("Stored candidate {} for election {}", data.candidate, data.election_id)
    return created


async def handle_candidate_registered(session: AsyncSession, events: list[SuiEvent]):
    return await process_events(
        session, TrackerEnum.candidate_registered, events,
        payloads.CandidateRegisteredPayload, _apply_candidate_registered,
    )


# ----- Voter -----


async def _apply_voter_registered(session: AsyncSession, event: SuiEvent, data: payloads.VoterRegisteredPayload):
    await _require_election(session, event, data.election_id)

    created = await crud.upsert_voter(
        session=session,
        election_id=data.election_id,
        voter_address=data.voter,
        tx_digest=event.id.tx_digest,
    )
    if created:
        logger.info("Stored voter {} for election {}", data.voter, data.election_id)
    return created


async def handle_voter_registered(session: AsyncSession, events: list[SuiEvent]):
    return await process_events(
        session, TrackerEnum.voter_registered, events,
        payloads.VoterRegisteredPayload, _apply_voter_registered,
    )


# ----- Vote -----


async def _apply_vote_cast(session: AsyncSession, event: SuiEvent, data: payloads.VoteCastPayload):
    await _require_election(session, event, data.election_id)

    created = await crud.upsert_vote(
        session=session,
        election_id=data.election_id,
        voter_address=data.voter,
        candidate_address=data.candidate,
        tx_digest=event.id.tx_digest,
    )
    if created:
        logger.info("Stored vote of {} in election {}", data.voter, data.election_id)
    else:
        logger.debug("Vote of {} in election {} already counted, skipping", data.voter, data.election_id)
    return created


async def handle_vote_cast(session: AsyncSession, events: list[SuiEvent]):
    return await process_events(
        session, TrackerEnum.vote_cast, events,
        payloads.VoteCastPayload, _apply_vote_cast,
    )

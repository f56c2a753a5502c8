"""
CRUD utils for the elections view
(Create - Read)

Rows are only ever created: the event stream is append-only, so
there is no update or delete path. Every `upsert_*` helper is
idempotent on the entity's natural key and returns True only when
it actually inserted a row.

14-10-2026
"""

from datetime import datetime

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from votechain.elections.model import models

ELECTION_QUERY_OPTIONS = [
    selectinload(models.Election.result),
]

COMPLETE_ELECTION_QUERY_OPTIONS = [
    selectinload(models.Election.candidates),
    selectinload(models.Election.voters),
    selectinload(models.Election.result),
]


async def _create_if_absent(session: AsyncSession, instance) -> bool:
    """
    Inserts `instance`, a unique-key violation (a concurrent or replayed
    insert won the race) counts as "already there".
    """
    session.add(instance)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        return False
    return True


# ----- Election CRUD Utils -----


async def get_election_by_election_id(session: AsyncSession, election_id: str):
    query = select(models.Election).where(
        models.Election.election_id == election_id
    ).options(
        *ELECTION_QUERY_OPTIONS
    )
    result = await session.execute(query)
    return result.scalars().first()


async def get_complete_election(session: AsyncSession, election_id: str):
    query = select(models.Election).where(
        models.Election.election_id == election_id
    ).options(
        *COMPLETE_ELECTION_QUERY_OPTIONS
    )
    result = await session.execute(query)
    return result.scalars().first()


async def election_exists(session: AsyncSession, election_id: str) -> bool:
    query = select(models.Election.id).where(models.Election.election_id == election_id)
    result = await session.execute(query)
    return result.first() is not None


async def create_election(
    session: AsyncSession,
    election_id: str,
    name: str,
    creator: str,
    tx_digest: str,
    created_at: datetime | None = None,
) -> bool:
    if await election_exists(session, election_id):
        return False

    db_election = models.Election(
        election_id=election_id,
        name=name,
        creator=creator,
        tx_digest=tx_digest,
    )
    if created_at is not None:
        db_election.created_at = created_at
    return await _create_if_absent(session, db_election)


async def get_elections_with_counts(session: AsyncSession):
    """
    Returns (election, candidate_count, voter_count, vote_count) rows,
    newest election first.
    """

    def count_of(model):
        return (
            select(func.count(model.id))
            .where(model.election_id == models.Election.election_id)
            .correlate(models.Election)
            .scalar_subquery()
        )

    query = select(
        models.Election,
        count_of(models.Candidate).label("candidate_count"),
        count_of(models.Voter).label("voter_count"),
        count_of(models.Vote).label("vote_count"),
    ).options(
        *ELECTION_QUERY_OPTIONS
    ).order_by(
        models.Election.created_at.desc(), models.Election.id.desc()
    )
    result = await session.execute(query)
    return result.all()


# ----- Candidate CRUD Utils -----


async def get_candidate(session: AsyncSession, election_id: str, candidate_address: str):
    query = select(models.Candidate).where(
        models.Candidate.election_id == election_id,
        models.Candidate.candidate_address == candidate_address,
    )
    result = await session.execute(query)
    return result.scalars().first()


async def upsert_candidate(session: AsyncSession, election_id: str, candidate_address: str, tx_digest: str) -> bool:
    if await get_candidate(session, election_id, candidate_address) is not None:
        return False

    db_candidate = models.Candidate(
        election_id=election_id,
        candidate_address=candidate_address,
        tx_digest=tx_digest,
    )
    return await _create_if_absent(session, db_candidate)


async def get_candidates_with_vote_counts(session: AsyncSession, election_id: str):
    """
    Returns (candidate_address, vote_count) rows, most voted first.
    """
    vote_count = func.count(models.Vote.id)
    query = select(
        models.Candidate.candidate_address,
        vote_count.label("vote_count"),
    ).outerjoin(
        models.Vote,
        and_(
            models.Vote.election_id == models.Candidate.election_id,
            models.Vote.candidate_address == models.Candidate.candidate_address,
        ),
    ).where(
        models.Candidate.election_id == election_id
    ).group_by(
        models.Candidate.id, models.Candidate.candidate_address
    ).order_by(
        vote_count.desc(), models.Candidate.id
    )
    result = await session.execute(query)
    return result.all()


# ----- Voter CRUD Utils -----


async def get_voter(session: AsyncSession, election_id: str, voter_address: str):
    query = select(models.Voter).where(
        models.Voter.election_id == election_id,
        models.Voter.voter_address == voter_address,
    )
    result = await session.execute(query)
    return result.scalars().first()


async def upsert_voter(session: AsyncSession, election_id: str, voter_address: str, tx_digest: str) -> bool:
    if await get_voter(session, election_id, voter_address) is not None:
        return False

    db_voter = models.Voter(
        election_id=election_id,
        voter_address=voter_address,
        tx_digest=tx_digest,
    )
    return await _create_if_absent(session, db_voter)


async def get_voters_with_status(session: AsyncSession, election_id: str):
    """
    Returns (voter_address, has_voted) rows in registration order.
    """
    query = select(
        models.Voter.voter_address,
        func.count(models.Vote.id).label("votes"),
    ).outerjoin(
        models.Vote,
        and_(
            models.Vote.election_id == models.Voter.election_id,
            models.Vote.voter_address == models.Voter.voter_address,
        ),
    ).where(
        models.Voter.election_id == election_id
    ).group_by(
        models.Voter.id, models.Voter.voter_address
    ).order_by(
        models.Voter.id
    )
    result = await session.execute(query)
    return [(voter_address, votes > 0) for voter_address, votes in result.all()]


# ----- Vote CRUD Utils -----


async def get_vote(session: AsyncSession, election_id: str, voter_address: str):
    query = select(models.Vote).where(
        models.Vote.election_id == election_id,
        models.Vote.voter_address == voter_address,
    )
    result = await session.execute(query)
    return result.scalars().first()


async def upsert_vote(
    session: AsyncSession, election_id: str, voter_address: str, candidate_address: str, tx_digest: str
) -> bool:
    # The first applied vote of a voter is final, later ones never overwrite it
    if await get_vote(session, election_id, voter_address) is not None:
        return False

    db_vote = models.Vote(
        election_id=election_id,
        voter_address=voter_address,
        candidate_address=candidate_address,
        tx_digest=tx_digest,
    )
    return await _create_if_absent(session, db_vote)


async def get_votes_by_election_id(session: AsyncSession, election_id: str):
    query = select(models.Vote).where(
        models.Vote.election_id == election_id
    ).order_by(
        models.Vote.created_at.desc(), models.Vote.id.desc()
    )
    result = await session.execute(query)
    return result.scalars().all()


async def count_votes(session: AsyncSession, election_id: str) -> int:
    query = select(func.count(models.Vote.id)).where(models.Vote.election_id == election_id)
    result = await session.execute(query)
    return result.scalar_one()


# ----- ElectionResult CRUD Utils -----


async def get_result_by_election_id(session: AsyncSession, election_id: str):
    query = select(models.ElectionResult).where(models.ElectionResult.election_id == election_id)
    result = await session.execute(query)
    return result.scalars().first()


async def create_result(
    session: AsyncSession, election_id: str, winner: str | None, total_votes: int, tx_digest: str
) -> bool:
    if await get_result_by_election_id(session, election_id) is not None:
        return False

    db_result = models.ElectionResult(
        election_id=election_id,
        winner=winner,
        total_votes=total_votes,
        tx_digest=tx_digest,
    )
    return await _create_if_absent(session, db_result)

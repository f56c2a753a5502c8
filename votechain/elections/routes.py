from fastapi import Depends, HTTPException, APIRouter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from votechain.dependencies import get_session
from votechain.elections import utils
from votechain.elections.model.cruds import crud
from votechain.elections.model.schemas import schemas
from votechain.logger import logger

api_router = APIRouter(prefix="/api/elections", tags=["elections"])


async def _get_election_or_404(session: AsyncSession, election_id: str):
    election = await crud.get_election_by_election_id(session=session, election_id=election_id)
    if election is None:
        raise HTTPException(status_code=404, detail="Election not found")
    return election


# ----- Election Routes -----


@api_router.get("", response_model=list[schemas.ElectionSummaryOut], status_code=200)
async def get_elections(session: AsyncSession = Depends(get_session)):
    """
    Route for getting all elections with their counts, newest first
    """
    try:
        rows = await crud.get_elections_with_counts(session=session)
    except SQLAlchemyError:
        logger.exception("Error fetching elections")
        raise HTTPException(status_code=500, detail="Failed to fetch elections")

    return [
        schemas.ElectionSummaryOut(
            id=election.id,
            election_id=election.election_id,
            name=election.name,
            creator=election.creator,
            created_at=election.created_at,
            has_ended=election.has_ended,
            candidate_count=candidate_count,
            voter_count=voter_count,
            vote_count=vote_count,
        )
        for election, candidate_count, voter_count, vote_count in rows
    ]


@api_router.get("/{election_id}", response_model=schemas.ElectionOut, status_code=200)
async def get_election(election_id: str, session: AsyncSession = Depends(get_session)):
    """
    Route for getting a specific election by its on-chain id
    """
    try:
        election = await crud.get_complete_election(session=session, election_id=election_id)
        vote_count = await crud.count_votes(session=session, election_id=election_id)
    except SQLAlchemyError:
        logger.exception("Error fetching election {}", election_id)
        raise HTTPException(status_code=500, detail="Failed to fetch election")

    if election is None:
        raise HTTPException(status_code=404, detail="Election not found")

    return schemas.ElectionOut(
        id=election.id,
        election_id=election.election_id,
        name=election.name,
        creator=election.creator,
        created_at=election.created_at,
        has_ended=election.has_ended,
        candidates=[c.candidate_address for c in election.candidates],
        voters=[v.voter_address for v in election.voters],
        vote_count=vote_count,
        result=schemas.ResultOut.model_validate(election.result) if election.result else None,
    )


@api_router.get("/{election_id}/candidates", response_model=list[schemas.CandidateOut], status_code=200)
async def get_candidates(election_id: str, session: AsyncSession = Depends(get_session)):
    """
    Route for getting the candidates of an election with their vote counts
    """
    try:
        await _get_election_or_404(session, election_id)
        rows = await crud.get_candidates_with_vote_counts(session=session, election_id=election_id)
    except SQLAlchemyError:
        logger.exception("Error fetching candidates of {}", election_id)
        raise HTTPException(status_code=500, detail="Failed to fetch candidates")

    return [
        schemas.CandidateOut(candidate_address=address, vote_count=vote_count)
        for address, vote_count in rows
    ]


@api_router.get("/{election_id}/voters", response_model=list[schemas.VoterOut], status_code=200)
async def get_voters(election_id: str, session: AsyncSession = Depends(get_session)):
    """
    Route for getting the voters of an election and whether they voted
    """
    try:
        await _get_election_or_404(session, election_id)
        rows = await crud.get_voters_with_status(session=session, election_id=election_id)
    except SQLAlchemyError:
        logger.exception("Error fetching voters of {}", election_id)
        raise HTTPException(status_code=500, detail="Failed to fetch voters")

    return [
        schemas.VoterOut(voter_address=address, has_voted=has_voted)
        for address, has_voted in rows
    ]


@api_router.get("/{election_id}/votes", response_model=list[schemas.VoteOut], status_code=200)
async def get_votes(election_id: str, session: AsyncSession = Depends(get_session)):
    """
    Route for getting all votes of an election, newest first
    """
    try:
        await _get_election_or_404(session, election_id)
        votes = await crud.get_votes_by_election_id(session=session, election_id=election_id)
    except SQLAlchemyError:
        logger.exception("Error fetching votes of {}", election_id)
        raise HTTPException(status_code=500, detail="Failed to fetch votes")

    return [schemas.VoteOut.model_validate(vote) for vote in votes]


@api_router.get("/{election_id}/results", response_model=schemas.ResultsOut, status_code=200)
async def get_results(election_id: str, session: AsyncSession = Depends(get_session)):
    """
    Route for getting the results of an election.

    Counts come from the indexed votes, so they are available (as a
    live count) before the election has ended.
    """
    try:
        election = await _get_election_or_404(session, election_id)
        candidates = await crud.get_candidates_with_vote_counts(session=session, election_id=election_id)
        total_votes = await crud.count_votes(session=session, election_id=election_id)
    except SQLAlchemyError:
        logger.exception("Error fetching results of {}", election_id)
        raise HTTPException(status_code=500, detail="Failed to fetch results")

    result = election.result
    return schemas.ResultsOut(
        election_id=election_id,
        has_ended=result is not None,
        winner=result.winner if result is not None else None,
        total_votes=total_votes,
        candidates=[
            schemas.CandidateResultOut(
                candidate_address=address,
                vote_count=vote_count,
                percentage=utils.vote_percentage(vote_count, total_votes),
            )
            for address, vote_count in candidates
        ],
    )

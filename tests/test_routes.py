import httpx
import pytest
from sqlalchemy.exc import OperationalError

from votechain.elections.model.cruds import crud
from votechain.indexer.event_indexer import EventIndexer
from votechain.indexer.handlers import handle_vote_cast
from votechain.main import create_app

from conftest import candidate_registered, election_created, election_ended, vote_cast, voter_registered


@pytest.fixture
async def client(database):
    app = create_app(database=database, run_indexer=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def index(database, source, trackers):
    """
    Publishes events and runs one polling cycle of every tracker,
    in registry order, from its saved cursor.
    """
    indexer = EventIndexer(source=source, database=database, trackers=list(trackers.values()), page_size=50)

    async def run(*events):
        source.publish(*events)
        for tracker in indexer.trackers:
            cursor = await indexer.get_latest_cursor(tracker)
            await indexer.execute_event_job(tracker, cursor)

    return run


async def test_root_lists_endpoints(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["elections"] == "/api/elections"


async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


async def test_health_reports_database_down(client, database, monkeypatch):
    async def down():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(database, "ping", down)
    response = await client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["database"] == "disconnected"


async def test_new_election_has_empty_counts(client, index):
    await index(election_created("e1", "Board Vote", "0xA"))

    response = await client.get("/api/elections")

    assert response.status_code == 200
    elections = response.json()
    assert len(elections) == 1
    election = elections[0]
    assert election["electionId"] == "e1"
    assert election["name"] == "Board Vote"
    assert election["creator"] == "0xA"
    assert election["candidateCount"] == 0
    assert election["voterCount"] == 0
    assert election["voteCount"] == 0
    assert election["hasEnded"] is False


async def test_results_with_one_vote(client, index):
    await index(election_created("e1", "Board Vote", "0xA"))
    await index(
        candidate_registered("e1", "0xB"),
        candidate_registered("e1", "0xC"),
        voter_registered("e1", "0xD"),
        vote_cast("e1", "0xD", "0xB"),
    )

    response = await client.get("/api/elections/e1/results")

    assert response.status_code == 200
    results = response.json()
    assert results["totalVotes"] == 1
    assert results["hasEnded"] is False
    assert results["winner"] is None
    assert results["candidates"] == [
        {"candidateAddress": "0xB", "voteCount": 1, "percentage": "100.00"},
        {"candidateAddress": "0xC", "voteCount": 0, "percentage": "0.00"},
    ]


async def test_replayed_vote_is_not_counted_twice(client, index, database):
    vote = vote_cast("e1", "0xD", "0xB")
    await index(election_created("e1"), candidate_registered("e1", "0xB"), voter_registered("e1", "0xD"), vote)

    # the node delivers the very same event again
    async with database.session() as session:
        await handle_vote_cast(session, [vote])
    await index(vote)

    results = (await client.get("/api/elections/e1/results")).json()
    assert results["totalVotes"] == 1


async def test_election_ended_is_final(client, index):
    await index(
        election_created("e1"),
        candidate_registered("e1", "0xB"),
        voter_registered("e1", "0xD"),
        vote_cast("e1", "0xD", "0xB"),
    )
    await index(election_ended("e1", winner="0xB", total_votes="1"))
    await index(election_ended("e1", winner="0xB", total_votes="1"))

    election = (await client.get("/api/elections/e1")).json()
    assert election["hasEnded"] is True
    assert election["result"] == {"winner": "0xB", "totalVotes": 1}

    results = (await client.get("/api/elections/e1/results")).json()
    assert results["hasEnded"] is True
    assert results["winner"] == "0xB"

    listed = (await client.get("/api/elections")).json()
    assert listed[0]["hasEnded"] is True


async def test_election_detail(client, index):
    await index(
        election_created("e1"),
        candidate_registered("e1", "0xB"),
        candidate_registered("e1", "0xC"),
        voter_registered("e1", "0xD"),
        voter_registered("e1", "0xE"),
        vote_cast("e1", "0xD", "0xC"),
    )

    election = (await client.get("/api/elections/e1")).json()

    assert sorted(election["candidates"]) == ["0xB", "0xC"]
    assert sorted(election["voters"]) == ["0xD", "0xE"]
    assert election["voteCount"] == 1
    assert election["result"] is None


async def test_candidates_voters_and_votes(client, index):
    vote = vote_cast("e1", "0xD", "0xC", tx_digest="txVote")
    await index(
        election_created("e1"),
        candidate_registered("e1", "0xB"),
        candidate_registered("e1", "0xC"),
        voter_registered("e1", "0xD"),
        voter_registered("e1", "0xE"),
        vote,
    )

    candidates = (await client.get("/api/elections/e1/candidates")).json()
    assert {c["candidateAddress"]: c["voteCount"] for c in candidates} == {"0xB": 0, "0xC": 1}

    voters = (await client.get("/api/elections/e1/voters")).json()
    assert voters == [
        {"voterAddress": "0xD", "hasVoted": True},
        {"voterAddress": "0xE", "hasVoted": False},
    ]

    votes = (await client.get("/api/elections/e1/votes")).json()
    assert len(votes) == 1
    assert votes[0]["voterAddress"] == "0xD"
    assert votes[0]["candidateAddress"] == "0xC"
    assert votes[0]["txDigest"] == "txVote"
    assert votes[0]["createdAt"] is not None


async def test_percentages_are_rounded_to_two_decimals(client, index):
    await index(
        election_created("e1"),
        candidate_registered("e1", "0xB"),
        candidate_registered("e1", "0xC"),
        vote_cast("e1", "0x1", "0xB"),
        vote_cast("e1", "0x2", "0xB"),
        vote_cast("e1", "0x3", "0xC"),
    )

    results = (await client.get("/api/elections/e1/results")).json()

    assert results["totalVotes"] == 3
    assert [c["percentage"] for c in results["candidates"]] == ["66.67", "33.33"]


async def test_elections_are_listed_newest_first(client, index):
    await index(
        election_created("old", timestamp_ms="1600000000000"),
        election_created("new", timestamp_ms="1700000000000"),
    )

    listed = (await client.get("/api/elections")).json()

    assert [e["electionId"] for e in listed] == ["new", "old"]


@pytest.mark.parametrize("suffix", ["", "/candidates", "/voters", "/votes", "/results"])
async def test_unknown_election_is_404(client, suffix):
    response = await client.get("/api/elections/nope" + suffix)

    assert response.status_code == 404
    assert response.json() == {"detail": "Election not found"}


async def test_store_errors_are_not_leaked(client, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("secret internal detail"))

    monkeypatch.setattr(crud, "get_elections_with_counts", broken)
    response = await client.get("/api/elections")

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to fetch elections"}


async def test_indexer_status(client, index):
    await index(election_created("e1", tx_digest="txE"), candidate_registered("missing", "0xB"))

    status = (await client.get("/api/indexer/status")).json()

    trackers = {t["tracker"]: t for t in status["trackers"]}
    assert trackers["EventElectionCreated"]["txDigest"] == "txE"
    assert trackers["EventElectionCreated"]["eventSeq"] == "0"
    assert status["skippedEvents"] == 1

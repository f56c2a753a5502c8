"""
SQLAlchemy Models for the materialized election view.

Every row is keyed by the identifier the ledger assigned
(election object id, account addresses), the integer `id`
is local only.

14-10-2026
"""

from sqlalchemy import Column, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.types import DateTime, Integer, String

from votechain.database import Base
from votechain.elections import utils


class Election(Base):
    __tablename__ = "votechain_election"

    id = Column(Integer, primary_key=True, index=True)

    election_id = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(500), nullable=False)
    creator = Column(String(100), nullable=False)

    tx_digest = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utils.tz_now)

    # One-to-many relationships
    candidates = relationship("Candidate", cascade="all, delete", back_populates="election")
    voters = relationship("Voter", cascade="all, delete", back_populates="election")
    votes = relationship("Vote", cascade="all, delete", back_populates="election")

    # One-to-one relationship
    result = relationship("ElectionResult", uselist=False, cascade="all, delete", back_populates="election")

    @property
    def has_ended(self):
        return self.result is not None


class Candidate(Base):
    __tablename__ = "votechain_candidate"
    __table_args__ = (
        UniqueConstraint("election_id", "candidate_address", name="uq_candidate_election_address"),
    )

    id = Column(Integer, primary_key=True, index=True)
    election_id = Column(
        String(100),
        ForeignKey("votechain_election.election_id",
                   onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    candidate_address = Column(String(100), nullable=False)

    tx_digest = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utils.tz_now)

    election = relationship("Election", back_populates="candidates")


class Voter(Base):
    __tablename__ = "votechain_voter"
    __table_args__ = (
        UniqueConstraint("election_id", "voter_address", name="uq_voter_election_address"),
    )

    id = Column(Integer, primary_key=True, index=True)
    election_id = Column(
        String(100),
        ForeignKey("votechain_election.election_id",
                   onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    voter_address = Column(String(100), nullable=False)

    tx_digest = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utils.tz_now)

    election = relationship("Election", back_populates="voters")


class Vote(Base):
    """
    At most one row per (election, voter): the unique constraint is
    what keeps a redelivered VoteCast from counting twice.
    """

    __tablename__ = "votechain_vote"
    __table_args__ = (
        UniqueConstraint("election_id", "voter_address", name="uq_vote_election_voter"),
    )

    id = Column(Integer, primary_key=True, index=True)
    election_id = Column(
        String(100),
        ForeignKey("votechain_election.election_id",
                   onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    voter_address = Column(String(100), nullable=False)
    candidate_address = Column(String(100), nullable=False)

    tx_digest = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utils.tz_now)

    election = relationship("Election", back_populates="votes")


class ElectionResult(Base):
    __tablename__ = "votechain_election_result"

    id = Column(Integer, primary_key=True, index=True)
    election_id = Column(
        String(100),
        ForeignKey("votechain_election.election_id",
                   onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    # Null when the election closed without a winner
    winner = Column(String(100), nullable=True)
    total_votes = Column(Integer, nullable=False, default=0)

    tx_digest = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utils.tz_now)

    election = relationship("Election", back_populates="result")

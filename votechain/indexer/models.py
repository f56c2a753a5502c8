"""
SQLAlchemy Models owned by the indexer.

14-10-2026
"""

from sqlalchemy import Column, UniqueConstraint
from sqlalchemy.types import DateTime, Integer, String, Text

from votechain.database import Base
from votechain.elections import utils


class Cursor(Base):
    """
    Resume position of one tracker: the id of the last event it applied.
    """

    __tablename__ = "votechain_cursor"

    id = Column(String(100), primary_key=True)
    tx_digest = Column(String(100), nullable=False)
    event_seq = Column(String(50), nullable=False)

    updated_at = Column(DateTime(timezone=True), default=utils.tz_now, onupdate=utils.tz_now)


class IndexerLog(Base):
    __tablename__ = "votechain_indexer_log"
    __table_args__ = (
        UniqueConstraint("tracker", "tx_digest", "event_seq", "event", name="uq_indexer_log_event"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tracker = Column(String(100), nullable=False, index=True)

    log_level = Column(String(20), nullable=False)

    event = Column(String(50), nullable=False)
    tx_digest = Column(String(100), nullable=True)
    event_seq = Column(String(50), nullable=True)
    event_params = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utils.tz_now)

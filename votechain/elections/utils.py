"""
Utilities for the elections view.

14-10-2026
"""

import json

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

import pytz

from votechain.config import TIMEZONE

# -- JSON manipulation --


def to_json(d: dict):
    return json.dumps(d, sort_keys=True, default=str)


# -- Results --


def vote_percentage(vote_count: int, total_votes: int) -> str:
    """
    Percentage of `total_votes` held by `vote_count`, two decimals,
    "0.00" for an election without votes.
    """
    if total_votes <= 0:
        return "0.00"

    value = Decimal(vote_count) * 100 / Decimal(total_votes)
    return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# -- Datetime --


def tz_now():
    tz = pytz.timezone(TIMEZONE)
    return datetime.now(tz)


def from_timestamp_ms(timestamp_ms):
    """
    Converts a ledger timestamp (milliseconds, int or numeric string)
    into an aware datetime, None when absent or unreadable.
    """
    if timestamp_ms is None:
        return None
    try:
        millis = int(timestamp_ms)
    except (TypeError, ValueError):
        return None

    return datetime.fromtimestamp(millis / 1000, tz=pytz.timezone(TIMEZONE))


def isoformat(value: datetime):
    return value.isoformat() if value is not None else None

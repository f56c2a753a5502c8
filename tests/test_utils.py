import pytest

from votechain.elections import utils
from votechain.indexer.enums import TrackerEnum
from votechain.indexer.trackers import HANDLERS, build_trackers


@pytest.mark.parametrize(
    "count, total, expected",
    [
        (1, 1, "100.00"),
        (0, 0, "0.00"),
        (2, 3, "66.67"),
        (1, 3, "33.33"),
        (1, 8, "12.50"),
        (0, 4, "0.00"),
    ],
)
def test_vote_percentage(count, total, expected):
    assert utils.vote_percentage(count, total) == expected


def test_from_timestamp_ms():
    assert utils.from_timestamp_ms("1700000000000").year == 2023
    assert utils.from_timestamp_ms(1700000000000) == utils.from_timestamp_ms("1700000000000")
    assert utils.from_timestamp_ms(None) is None
    assert utils.from_timestamp_ms("soon") is None


def test_build_trackers_covers_every_event_kind():
    trackers = build_trackers("0xpkg", "vote")

    assert [t.type for t in trackers] == [kind.value for kind in TrackerEnum]
    for tracker in trackers:
        assert tracker.filter == {"MoveEventType": "0xpkg::vote::{}".format(tracker.type)}
        assert tracker.callback is HANDLERS[TrackerEnum(tracker.type)]

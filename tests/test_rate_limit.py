"""Tests for REST call budget parsing and tracking."""

import threading
from datetime import datetime, timezone

import pytest

from shopgate.rate_limit import (
    CALL_LIMIT_HEADER,
    RateLimitState,
    RateLimitTracker,
    parse_call_limit_header,
)


class TestParseCallLimitHeader:
    """Tests for parse_call_limit_header()."""

    def test_parses_used_and_limit(self):
        state = parse_call_limit_header("32/40")
        assert state.call_limit == 40
        assert state.calls_remaining == 8
        assert state.calls_used == 32

    def test_tolerates_whitespace(self):
        state = parse_call_limit_header(" 1 / 80 ")
        assert state.call_limit == 80
        assert state.calls_remaining == 79

    def test_used_above_limit_is_clamped(self):
        """calls_remaining never goes negative."""
        state = parse_call_limit_header("45/40")
        assert state.calls_remaining == 0

    def test_fully_spent_budget(self):
        assert parse_call_limit_header("40/40").calls_remaining == 0

    @pytest.mark.parametrize(
        "value",
        [None, "", "40", "abc/40", "10/xyz", "10/0", "-1/40", "10/-5", "1.5/40"],
    )
    def test_unparsable_values_return_none(self, value):
        assert parse_call_limit_header(value) is None

    def test_uses_given_timestamp(self):
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert parse_call_limit_header("1/40", observed_at=ts).observed_at == ts


class TestRateLimitState:
    """Tests for RateLimitState."""

    def test_to_dict(self):
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        state = RateLimitState(call_limit=40, calls_remaining=5, observed_at=ts)
        assert state.to_dict() == {
            "call_limit": 40,
            "calls_remaining": 5,
            "observed_at": "2024-01-01T00:00:00+00:00",
        }

    def test_is_immutable(self):
        state = RateLimitState(call_limit=40, calls_remaining=5)
        with pytest.raises(AttributeError):
            state.calls_remaining = 10


class TestRateLimitTracker:
    """Tests for RateLimitTracker."""

    def test_starts_unknown(self):
        tracker = RateLimitTracker()
        assert tracker.state is None
        assert tracker.should_queue() is False

    def test_update_from_headers(self):
        tracker = RateLimitTracker()
        assert tracker.update_from_headers({CALL_LIMIT_HEADER: "10/40"}) is True
        assert tracker.state.calls_remaining == 30

    def test_missing_header_keeps_previous_state(self):
        tracker = RateLimitTracker()
        tracker.update_from_headers({CALL_LIMIT_HEADER: "10/40"})
        assert tracker.update_from_headers({}) is False
        assert tracker.state.calls_remaining == 30

    def test_malformed_header_keeps_previous_state(self):
        tracker = RateLimitTracker()
        tracker.update_from_headers({CALL_LIMIT_HEADER: "10/40"})
        tracker.update_from_headers({CALL_LIMIT_HEADER: "garbage"})
        assert tracker.state.calls_remaining == 30

    @pytest.mark.parametrize(
        "header,expected",
        [("38/40", False), ("39/40", True), ("40/40", True), ("45/40", True)],
    )
    def test_should_queue_at_threshold(self, header, expected):
        """Calls queue once one call or fewer remains."""
        tracker = RateLimitTracker(queue_threshold=1)
        tracker.update_from_headers({CALL_LIMIT_HEADER: header})
        assert tracker.should_queue() is expected

    def test_custom_threshold(self):
        tracker = RateLimitTracker(queue_threshold=5)
        tracker.update(RateLimitState(call_limit=40, calls_remaining=5))
        assert tracker.should_queue() is True

    def test_reset(self):
        tracker = RateLimitTracker()
        tracker.update(RateLimitState(call_limit=40, calls_remaining=0))
        tracker.reset()
        assert tracker.state is None
        assert tracker.should_queue() is False

    def test_concurrent_updates(self):
        """Updates from many threads leave a consistent state."""
        tracker = RateLimitTracker()

        def worker(used):
            for _ in range(100):
                tracker.update_from_headers({CALL_LIMIT_HEADER: f"{used}/40"})

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        state = tracker.state
        assert state.call_limit == 40
        assert 0 <= state.calls_remaining <= 40

"""Unit tests for the in-memory fixed-window rate limiter."""

from unittest.mock import Mock

import pytest

from talon.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

START_MS = 1_700_000_000_000


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=START_MS)


@pytest.fixture
def limiter(clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock)


def test_first_request_opens_window(limiter: InMemoryFixedWindowRateLimiter) -> None:
    result = limiter.check("k", 3, 60)

    assert result.allowed is True
    assert result.limit == 3
    assert result.remaining == 2
    assert result.reset_at == START_MS + 60_000
    assert result.retry_after_seconds is None


def test_allows_exactly_max_requests_in_window(limiter: InMemoryFixedWindowRateLimiter) -> None:
    results = [limiter.check("k", 3, 60) for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]


def test_blocked_result_carries_retry_after(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    limiter.check("k", 1, 60)
    clock.return_value = START_MS + 15_500

    blocked = limiter.check("k", 1, 60)

    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.reset_at == START_MS + 60_000
    # 44.5 seconds left, rounded up
    assert blocked.retry_after_seconds == 45


def test_denial_does_not_extend_window_or_count(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    limiter.check("k", 2, 60)
    limiter.check("k", 2, 60)

    for offset in (1_000, 20_000, 59_000):
        clock.return_value = START_MS + offset
        denied = limiter.check("k", 2, 60)
        assert denied.allowed is False
        assert denied.remaining == 0
        assert denied.reset_at == START_MS + 60_000

    # Denied calls were never counted, so the next window starts clean
    clock.return_value = START_MS + 60_001
    assert limiter.check("k", 2, 60).remaining == 1


def test_request_exactly_at_reset_at_stays_in_old_window(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    limiter.check("k", 1, 60)

    clock.return_value = START_MS + 60_000
    at_boundary = limiter.check("k", 1, 60)
    assert at_boundary.allowed is False
    assert at_boundary.retry_after_seconds == 1

    clock.return_value = START_MS + 60_001
    after_boundary = limiter.check("k", 1, 60)
    assert after_boundary.allowed is True
    assert after_boundary.reset_at == START_MS + 60_001 + 60_000


def test_resets_after_window_expires(limiter: InMemoryFixedWindowRateLimiter, clock: Mock) -> None:
    assert limiter.check("k", 1, 10).allowed is True
    assert limiter.check("k", 1, 10).allowed is False

    clock.return_value = START_MS + 10_001
    fresh = limiter.check("k", 1, 10)

    assert fresh.allowed is True
    assert fresh.remaining == 0
    assert fresh.reset_at == START_MS + 10_001 + 10_000


def test_window_starts_at_first_request_not_clock_boundary(
    limiter: InMemoryFixedWindowRateLimiter, clock: Mock
) -> None:
    clock.return_value = START_MS + 59_999
    result = limiter.check("k", 5, 60)

    assert result.reset_at == START_MS + 59_999 + 60_000


def test_isolated_by_key(limiter: InMemoryFixedWindowRateLimiter) -> None:
    assert limiter.check("k1", 1, 60).allowed is True
    assert limiter.check("k1", 1, 60).allowed is False

    assert limiter.check("k2", 1, 60).allowed is True


def test_index_policy_scenario(limiter: InMemoryFixedWindowRateLimiter, clock: Mock) -> None:
    assert limiter.check("1.2.3.4", 2, 600).allowed is True
    assert limiter.check("1.2.3.4", 2, 600).allowed is True

    clock.return_value = START_MS + 300_000
    assert limiter.check("1.2.3.4", 2, 600).allowed is False

    clock.return_value = START_MS + 601_000
    fourth = limiter.check("1.2.3.4", 2, 600)
    assert fourth.allowed is True
    assert fourth.remaining == 1
    assert fourth.reset_at == START_MS + 601_000 + 600_000


@pytest.mark.parametrize(
    "args",
    [
        ("", 1, 60),
        ("k", 0, 60),
        ("k", -1, 60),
        ("k", 1, 0),
        ("k", 1, -5),
    ],
)
def test_invalid_check_args_raise(limiter: InMemoryFixedWindowRateLimiter, args: tuple) -> None:
    with pytest.raises(ValueError):
        limiter.check(*args)

    assert limiter.stats() == {"active_keys": 0}


class TestCleanup:
    def test_removes_only_expired_entries(
        self, limiter: InMemoryFixedWindowRateLimiter, clock: Mock
    ) -> None:
        limiter.check("short", 5, 10)
        limiter.check("long", 5, 600)

        clock.return_value = START_MS + 10_001
        removed = limiter.cleanup()

        assert removed == 1
        assert limiter.stats() == {"active_keys": 1}
        # The surviving window kept its count
        assert limiter.check("long", 5, 600).remaining == 3

    def test_keeps_entry_exactly_at_reset_at(
        self, limiter: InMemoryFixedWindowRateLimiter, clock: Mock
    ) -> None:
        limiter.check("k", 5, 10)

        clock.return_value = START_MS + 10_000
        assert limiter.cleanup() == 0
        assert limiter.stats() == {"active_keys": 1}

    def test_repeated_cleanup_is_noop(
        self, limiter: InMemoryFixedWindowRateLimiter, clock: Mock
    ) -> None:
        limiter.check("a", 5, 10)
        limiter.check("b", 5, 10)
        clock.return_value = START_MS + 20_000

        assert limiter.cleanup() == 2
        assert limiter.cleanup() == 0
        assert limiter.cleanup() == 0
        assert limiter.stats() == {"active_keys": 0}

    def test_cleanup_on_empty_store(self, limiter: InMemoryFixedWindowRateLimiter) -> None:
        assert limiter.cleanup() == 0

    def test_check_does_not_depend_on_cleanup(
        self, limiter: InMemoryFixedWindowRateLimiter, clock: Mock
    ) -> None:
        limiter.check("k", 1, 10)
        clock.return_value = START_MS + 10_001

        # Expired entry still stored, but check treats it as absent
        assert limiter.stats() == {"active_keys": 1}
        assert limiter.check("k", 1, 10).allowed is True
        assert limiter.stats() == {"active_keys": 1}


def test_stats_counts_live_windows(limiter: InMemoryFixedWindowRateLimiter) -> None:
    assert limiter.stats() == {"active_keys": 0}

    limiter.check("a", 5, 60)
    limiter.check("a", 5, 60)
    limiter.check("b", 5, 60)

    assert limiter.stats() == {"active_keys": 2}


def test_reset_clears_all_windows(limiter: InMemoryFixedWindowRateLimiter) -> None:
    limiter.check("a", 1, 60)
    limiter.check("b", 1, 60)

    limiter.reset()

    assert limiter.stats() == {"active_keys": 0}
    assert limiter.check("a", 1, 60).allowed is True

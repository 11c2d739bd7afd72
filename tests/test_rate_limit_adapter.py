"""Unit tests for in-memory rate limiter adapter."""

from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert limiter.consume("10.0.0.1").allowed is True
    assert limiter.consume("10.0.0.1").allowed is True
    result = limiter.consume("10.0.0.1")
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit_without_counting_blocked_requests() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    limiter.consume("10.0.0.1")
    limiter.consume("10.0.0.1")

    for _ in range(3):
        blocked = limiter.consume("10.0.0.1")
        assert blocked.allowed is False
        assert blocked.remaining == 0

    # 1000 sits in the window [960, 1020)
    assert blocked.reset_at == 1020
    assert blocked.retry_after_seconds == 20


def test_resets_on_new_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is False

    clock.return_value = 1010.0
    assert limiter.consume("k").allowed is True


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True


def test_purge_expired_drops_only_elapsed_windows() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=60, clock=clock)

    limiter.consume("old-1")
    limiter.consume("old-2")
    clock.return_value = 1100.0
    limiter.consume("fresh")

    assert len(limiter) == 3
    assert limiter.purge_expired() == 2
    assert len(limiter) == 1


def test_entries_are_purged_automatically() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(
        limit=5, window_seconds=60, clock=clock, purge_every=10
    )

    for index in range(9):
        limiter.consume(f"client-{index}")
    assert len(limiter) == 9

    clock.return_value = 2000.0
    limiter.consume("late-client")

    assert len(limiter) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "purge_every": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.consume("")

    with pytest.raises(ValueError):
        limiter.consume("k", cost=0)

"""Unit tests for CancellationToken."""

import threading

import pytest

from replset.domain.cancellation import CancellationToken
from replset.domain.exceptions import OperationCancelledError


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
@pytest.mark.tier(1)
@pytest.mark.tra("Domain.Invariant.CancellationToken")
class TestCancellationToken:
    """Test cancellation flag and deadline."""

    def test_not_cancelled_initially(self) -> None:
        token = CancellationToken()
        assert token.cancelled is False
        assert token.remaining() is None
        token.raise_if_cancelled()

    def test_cancel_is_idempotent(self) -> None:
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled is True

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            token.raise_if_cancelled()

    def test_deadline_passes(self) -> None:
        clock = FakeClock()
        token = CancellationToken(deadline_seconds=30, clock=clock)
        assert token.remaining() == 30
        clock.now += 31
        assert token.remaining() == 0
        assert token.cancelled is True

    def test_negative_deadline_raises(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            CancellationToken(deadline_seconds=-1)

    def test_wait_returns_early_when_cancelled_from_other_thread(self) -> None:
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        try:
            assert token.wait(5) is True
        finally:
            timer.cancel()

    def test_wait_without_cancellation(self) -> None:
        assert CancellationToken().wait(0) is False

    def test_wait_is_bounded_by_deadline(self) -> None:
        clock = FakeClock()
        token = CancellationToken(deadline_seconds=0, clock=clock)
        assert token.wait(60) is True

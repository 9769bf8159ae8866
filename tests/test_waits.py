# tests/test_waits.py
"""
Tests for wait utilities.
"""

import pytest

from mobileauto.exceptions import ConditionTimeout
from mobileauto.waits import await_condition, backoff_delay, wait_until, wait_until_passes


class Recorder:
    def __init__(self):
        self.sleeps = []

    def __call__(self, seconds):
        self.sleeps.append(seconds)


class TestBackoffDelay:
    """Tests for the capped exponential backoff schedule."""

    def test_default_schedule(self):
        """Should double from 1.0s and stop at the 5.0s cap."""
        assert [backoff_delay(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_custom_base_and_cap(self):
        assert backoff_delay(3, base=0.5, cap=10.0) == 2.0
        assert backoff_delay(4, base=2.0, cap=10.0) == 10.0

    def test_rejects_attempt_zero(self):
        with pytest.raises(ValueError):
            backoff_delay(0)


class TestWaitUntil:
    """Tests for wait_until function."""

    def test_returns_immediately_when_true(self):
        """Should return immediately when predicate is true."""
        sleep = Recorder()
        assert wait_until(lambda: True, timeout=5, sleep=sleep) is True
        assert sleep.sleeps == []

    def test_returns_truthy_value(self):
        """Should return the truthy value from predicate."""
        assert wait_until(lambda: "hello", timeout=5) == "hello"

    def test_waits_for_condition(self):
        """Should keep polling until the predicate holds."""
        sleep = Recorder()
        counter = {"value": 0}

        def predicate():
            counter["value"] += 1
            return counter["value"] >= 3

        assert wait_until(predicate, timeout=5, interval=0.1, sleep=sleep) is True
        assert counter["value"] == 3
        assert sleep.sleeps == [0.1, 0.1]

    def test_timeout_returns_none(self):
        """Should return None instead of raising when time runs out."""
        assert wait_until(lambda: False, timeout=0.05, interval=0.01) is None

    def test_zero_timeout_checks_once(self):
        calls = []
        assert wait_until(lambda: calls.append(1), timeout=0) is None
        assert len(calls) == 1

    def test_predicate_exception_propagates(self):
        def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            wait_until(failing, timeout=1)


class TestWaitUntilPasses:
    """Tests for wait_until_passes function."""

    def test_returns_immediately_on_success(self):
        assert wait_until_passes(lambda: "success", timeout=5, description="test") == "success"

    def test_retries_on_exception(self):
        """Should retry until the function stops raising."""
        sleep = Recorder()
        counter = {"value": 0}

        def flaky():
            counter["value"] += 1
            if counter["value"] < 3:
                raise ValueError("not yet")
            return "done"

        assert wait_until_passes(flaky, timeout=5, interval=0.1, sleep=sleep) == "done"
        assert len(sleep.sleeps) == 2

    def test_reraises_last_exception(self):
        def always_fails():
            raise ValueError("still failing")

        with pytest.raises(ValueError, match="still failing"):
            wait_until_passes(always_fails, timeout=0.05, interval=0.01)

    def test_unlisted_exception_propagates_immediately(self):
        calls = []

        def fails():
            calls.append(1)
            raise KeyError("other")

        with pytest.raises(KeyError):
            wait_until_passes(fails, timeout=5, exceptions=(ValueError,))
        assert len(calls) == 1


class TestAwaitCondition:
    """Tests for the attempt-bounded doubling poll."""

    def test_succeeds_on_third_attempt(self):
        """Delays of 0.5s then 1.0s precede a third-attempt success."""
        sleep = Recorder()
        results = iter([False, False, "ready"])
        assert await_condition(lambda: next(results), sleep=sleep) == "ready"
        assert sleep.sleeps == [0.5, 1.0]

    def test_no_sleep_after_final_attempt(self):
        sleep = Recorder()
        with pytest.raises(ConditionTimeout) as exc_info:
            await_condition(lambda: False, max_attempts=5, sleep=sleep)
        assert sleep.sleeps == [0.5, 1.0, 2.0, 4.0]
        assert exc_info.value.attempt_count == 5
        assert "Condition not met after 5 attempts" in str(exc_info.value)

    def test_delay_is_not_capped(self):
        sleep = Recorder()
        with pytest.raises(ConditionTimeout):
            await_condition(lambda: None, max_attempts=6, initial_delay=2.0, sleep=sleep)
        assert sleep.sleeps == [2.0, 4.0, 8.0, 16.0, 32.0]

    def test_reraises_last_predicate_error(self):
        """The last predicate error wins over ConditionTimeout."""
        sleep = Recorder()
        errors = iter([ValueError("first"), LookupError("second"), None])

        def predicate():
            error = next(errors)
            if error is not None:
                raise error
            return False

        with pytest.raises(LookupError, match="second"):
            await_condition(predicate, max_attempts=3, sleep=sleep)

    def test_recovers_after_error(self):
        sleep = Recorder()
        calls = {"n": 0}

        def predicate():
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("transient")
            return 42

        assert await_condition(predicate, sleep=sleep) == 42
        assert sleep.sleeps == [0.5]

    def test_rejects_non_positive_attempts(self):
        with pytest.raises(ValueError):
            await_condition(lambda: True, max_attempts=0)

# tests/test_retry.py
"""Tests for RetryPolicy."""

import threading
import time

import pytest

from codesync.core.config import RetryConfig
from codesync.core.exceptions import EmbeddingError, OperationTimeoutError, StoreError
from codesync.ingest.retry import RetryPolicy


def fast_policy(**kwargs) -> RetryPolicy:
    defaults = dict(max_attempts=3, base_delay=0.0, jitter=False, timeout=None)
    defaults.update(kwargs)
    return RetryPolicy(**defaults)


class Flaky:
    """Fails `failures` times with `error`, then returns 'ok'."""

    def __init__(self, failures: int, error: Exception):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return ("ok", args, kwargs)


class TestRetryPolicy:
    def test_returns_first_success(self):
        fn = Flaky(0, EmbeddingError("x"))

        result = fast_policy().call(fn, 1, key="v")

        assert result == ("ok", (1,), {"key": "v"})
        assert fn.calls == 1

    def test_retries_transient_errors(self):
        fn = Flaky(2, StoreError("unavailable"))

        assert fast_policy().call(fn)[0] == "ok"
        assert fn.calls == 3

    def test_gives_up_after_max_attempts(self):
        fn = Flaky(10, EmbeddingError("rate limited"))

        with pytest.raises(EmbeddingError, match="rate limited"):
            fast_policy(max_attempts=3).call(fn)

        assert fn.calls == 3

    def test_non_retryable_error_propagates_immediately(self):
        fn = Flaky(10, ValueError("bad input"))

        with pytest.raises(ValueError):
            fast_policy().call(fn)

        assert fn.calls == 1

    def test_single_attempt(self):
        fn = Flaky(1, StoreError("down"))

        with pytest.raises(StoreError):
            fast_policy(max_attempts=1).call(fn)

        assert fn.calls == 1

    def test_timeout(self):
        def slow():
            time.sleep(0.5)

        with pytest.raises(OperationTimeoutError, match="embed a.ts timed out"):
            fast_policy(max_attempts=1, timeout=0.05).call(slow, description="embed a.ts")

    def test_timeout_is_retried(self):
        calls = []

        def slow_then_fast():
            calls.append(1)
            if len(calls) == 1:
                time.sleep(0.5)
            return "done"

        assert fast_policy(max_attempts=2, timeout=0.1).call(slow_then_fast) == "done"
        assert len(calls) == 2

    def test_fast_call_under_timeout(self):
        assert fast_policy(timeout=5.0).call(lambda: 42) == 42

    def test_hung_calls_do_not_starve_later_calls(self):
        release = threading.Event()
        policy = fast_policy(max_attempts=1, timeout=0.01)
        try:
            for _ in range(40):
                with pytest.raises(OperationTimeoutError):
                    policy.call(release.wait, 10, description="hung upsert")

            assert fast_policy(timeout=2.0).call(lambda: "healthy") == "healthy"
        finally:
            release.set()

    def test_timed_call_error_is_reraised(self):
        fn = Flaky(1, StoreError("connection reset"))

        assert fast_policy(max_attempts=2, timeout=2.0).call(fn, 7) == ("ok", (7,), {})
        assert fn.calls == 2

    def test_from_config(self):
        cfg = RetryConfig(max_attempts=5, base_delay=0.1, max_delay=2.0, jitter=False, timeout=10)

        policy = RetryPolicy.from_config(cfg)

        assert policy.max_attempts == 5
        assert policy.base_delay == 0.1
        assert policy.max_delay == 2.0
        assert policy.jitter is False
        assert policy.timeout == 10

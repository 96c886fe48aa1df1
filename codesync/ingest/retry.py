# codesync/ingest/retry.py
"""
Retry policy for embedding and vector store calls.

One RetryPolicy is built from config and handed to the reconciliation
pipeline; call sites never carry their own retry loops.

Usage:
    policy = RetryPolicy(max_attempts=3, base_delay=0.5, timeout=30)
    vectors = policy.call(embedder.embed, texts, description="embed a.ts[0:64]")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import backoff

from codesync.core.exceptions import EmbeddingError, OperationTimeoutError, StoreError
from codesync.logging.logger import get_logger
from codesync.logging.tags import SYNC

logger = get_logger(__name__)

T = TypeVar("T")


class _TimedCall:
    """
    Runs one call on its own daemon thread so the caller can stop waiting.

    The timeout clock starts when the thread starts, so a call is never
    charged for time spent behind other calls. A call that times out keeps
    its thread until the underlying client returns; the thread is a daemon
    and never blocks interpreter exit.
    """

    def __init__(self, fn: Callable[..., T], args: tuple, kwargs: dict, description: str) -> None:
        self._fn = fn
        self._args = args
        self._kwargs = kwargs
        self._result: Any = None
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(
            target=self._target, name=f"codesync-call: {description}", daemon=True
        )

    def _target(self) -> None:
        try:
            self._result = self._fn(*self._args, **self._kwargs)
        except BaseException as e:
            self._error = e

    def run(self, timeout: float) -> Tuple[bool, Any]:
        """Return (finished, result); re-raise the call's own exception."""
        self._thread.start()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            return False, None
        if self._error is not None:
            raise self._error
        return True, self._result


DEFAULT_RETRY_ON: Tuple[Type[BaseException], ...] = (
    EmbeddingError,
    StoreError,
    OperationTimeoutError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff with optional jitter and per-call timeout.

    Attributes:
        max_attempts: Total tries, including the first one.
        base_delay: Wait before the second try; doubles after each failure.
        max_delay: Upper bound for a single wait.
        jitter: Randomize each wait in [0, delay] (full jitter).
        timeout: Seconds a single call may run, measured from when it starts;
            None waits forever. A timed-out call is abandoned, not interrupted.
        retry_on: Exception types that trigger another attempt.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: bool = True
    timeout: Optional[float] = 60.0
    retry_on: Tuple[Type[BaseException], ...] = DEFAULT_RETRY_ON

    @classmethod
    def from_config(cls, cfg: Any) -> "RetryPolicy":
        return cls(
            max_attempts=cfg.max_attempts,
            base_delay=cfg.base_delay,
            max_delay=cfg.max_delay,
            jitter=cfg.jitter,
            timeout=cfg.timeout,
        )

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        description: str = "call",
        **kwargs: Any,
    ) -> T:
        """
        Run fn(*args, **kwargs) under this policy.

        Raises the last exception once attempts are exhausted. Exceptions not
        listed in retry_on propagate immediately.
        """

        def _on_backoff(details: dict) -> None:
            logger.warning(
                f"{SYNC} {description} failed (attempt {details['tries']}/{self.max_attempts}), "
                f"retrying in {details['wait']:.2f}s: {details['exception']}"
            )

        def _on_giveup(details: dict) -> None:
            logger.warning(
                f"{SYNC} {description} giving up after {details['tries']} attempts: "
                f"{details['exception']}"
            )

        @backoff.on_exception(
            backoff.expo,
            self.retry_on,
            max_tries=self.max_attempts,
            jitter=backoff.full_jitter if self.jitter else None,
            on_backoff=_on_backoff,
            on_giveup=_on_giveup,
            logger=None,
            factor=self.base_delay,
            max_value=self.max_delay,
        )
        def _attempt() -> T:
            return self._run_once(fn, args, kwargs, description)

        return _attempt()

    def _run_once(self, fn: Callable[..., T], args: tuple, kwargs: dict, description: str) -> T:
        if self.timeout is None:
            return fn(*args, **kwargs)

        finished, result = _TimedCall(fn, args, kwargs, description).run(self.timeout)
        if not finished:
            raise OperationTimeoutError(f"{description} timed out after {self.timeout}s")
        return result


__all__ = ["RetryPolicy", "DEFAULT_RETRY_ON"]

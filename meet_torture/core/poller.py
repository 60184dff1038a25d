# meet_torture/core/poller.py
from __future__ import annotations

"""Condition polling
-------------------
`poll_until` evaluates a condition against a session handle until it yields
a result or the timeout elapses. Every DOM/script wait in the suite is a
condition handed to this loop.

A condition returns `None` or `False` for "not yet". Any other value,
including `0` and `""`, is a result and is returned to the caller.

Timeouts of zero or less evaluate the condition exactly once.
"""

from typing import Any, Callable, Optional, Tuple, TypeVar

from meet_torture.core.session import TRANSIENT_ERRORS
from meet_torture.utils.config import get_settings
from meet_torture.utils.logger import get_logger
from meet_torture.utils import timing

__all__ = ["TimeoutExceeded", "poll_until"]

S = TypeVar("S")
T = TypeVar("T")

log = get_logger(__name__)


class TimeoutExceeded(TimeoutError):
    """Raised when a condition is still unsatisfied at its deadline."""

    def __init__(
        self,
        message: Optional[str],
        *,
        timeout_ms: int,
        elapsed_ms: int,
        attempts: int,
        last_result: Any = None,
        last_error: Optional[BaseException] = None,
    ) -> None:
        self.message = message
        self.timeout_ms = timeout_ms
        self.elapsed_ms = elapsed_ms
        self.attempts = attempts
        self.last_result = last_result
        self.last_error = last_error
        super().__init__(self._render())

    @property
    def last_state(self) -> str:
        if self.last_error is not None:
            return f"last error: {self.last_error!r}"
        return f"last result: {self.last_result!r}"

    def _render(self) -> str:
        head = f"Timed out after {self.timeout_ms} ms"
        if self.message:
            head += f" waiting for: {self.message}"
        return f"{head} ({self.attempts} attempt(s), {self.elapsed_ms} ms elapsed, {self.last_state})"


def _satisfied(value: Any) -> bool:
    return value is not None and value is not False


def poll_until(
    session: S,
    condition: Callable[[S], Optional[T]],
    timeout_ms: int,
    *,
    interval_ms: Optional[int] = None,
    message: Optional[str] = None,
    ignoring: Tuple[type[BaseException], ...] = TRANSIENT_ERRORS,
) -> T:
    """
    Poll `condition(session)` until it returns something other than
    None/False, then return that value.

    Args:
        session: handle passed through to the condition (usually a Page)
        condition: callable inspecting the session
        timeout_ms: how long to keep polling
        interval_ms: pause between attempts; POLL_INTERVAL when None
        message: shown in the TimeoutExceeded raised on failure
        ignoring: exception types that count as "not yet" for one attempt

    Raises:
        TimeoutExceeded when the deadline passes without a result.
    """
    if interval_ms is None:
        interval_ms = get_settings().POLL_INTERVAL
    interval = max(1, interval_ms)
    start = timing.now_ms()
    deadline = start + max(0, timeout_ms)
    attempts = 0
    last_result: Any = None
    last_error: Optional[BaseException] = None

    while True:
        attempts += 1
        try:
            result = condition(session)
        except ignoring as exc:
            last_error = exc
        else:
            if _satisfied(result):
                if attempts > 1:
                    log.debug(f"Condition met after {attempts} attempts ({timing.now_ms() - start} ms)"
                              f"{' - ' + message if message else ''}")
                return result
            last_result = result
            last_error = None

        now = timing.now_ms()
        if now >= deadline:
            raise TimeoutExceeded(
                message,
                timeout_ms=timeout_ms,
                elapsed_ms=now - start,
                attempts=attempts,
                last_result=last_result,
                last_error=last_error,
            )
        timing.sleep_ms(min(interval, deadline - now))

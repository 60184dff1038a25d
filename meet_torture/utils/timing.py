# meet_torture/utils/timing.py
from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Type, TypeVar, ParamSpec

from meet_torture.utils.logger import get_logger

P = ParamSpec("P")
T = TypeVar("T")


# ---------------- Monotonic time helpers ----------------

def now_ms() -> int:
    """Monotonic time in milliseconds."""
    return time.monotonic_ns() // 1_000_000


def sleep_ms(ms: int) -> None:
    """Sleep for `ms` milliseconds (blocking)."""
    if ms <= 0:
        return
    time.sleep(ms / 1000.0)


# ---------------- Stopwatch ----------------

@dataclass
class Stopwatch:
    """Simple stopwatch usable as a context manager."""
    start_ms: Optional[int] = None

    def start(self) -> "Stopwatch":
        self.start_ms = now_ms()
        return self

    def elapsed_ms(self) -> int:
        if self.start_ms is None:
            return 0
        return max(0, now_ms() - self.start_ms)

    def __enter__(self) -> "Stopwatch":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


# ---------------- Backoff ----------------

def exp_backoff_delays_ms(
    attempts: int,
    initial_ms: int = 200,
    factor: float = 2.0,
    max_ms: int = 5000,
    jitter: float = 0.1,
) -> Iterable[int]:
    """
    Yield `attempts` backoff delays in ms.
    Exponential growth with optional jitter (fraction of delay).
    """
    delay = max(0, initial_ms)
    for _ in range(max(1, attempts)):
        jitter_amt = delay * jitter
        if jitter_amt > 0:
            delay_j = delay + random.uniform(-jitter_amt, jitter_amt)
        else:
            delay_j = delay
        yield int(min(max_ms, max(0, delay_j)))
        delay = min(max_ms, int(math.ceil(delay * factor)))


# ---------------- Retry ----------------

def retry(
    fn: Callable[P, T],
    /,
    *args: P.args,
    exceptions: tuple[Type[BaseException], ...] = (Exception,),
    tries: int = 3,
    initial_delay_ms: int = 200,
    max_delay_ms: int = 2000,
    factor: float = 2.0,
    jitter: float = 0.1,
    **kwargs: P.kwargs,
) -> T:
    """
    Retry a function with exponential backoff on given exceptions.

    Args:
        fn: callable to execute
        exceptions: tuple of exception types to catch
        tries: total attempts (>=1)
        initial_delay_ms, max_delay_ms, factor, jitter: backoff parameters

    Returns:
        fn(*args, **kwargs) result on success

    Raises:
        Last caught exception after exhausting retries.
    """
    log = get_logger(__name__)
    attempts = max(1, tries)

    if attempts > 1:
        delays = exp_backoff_delays_ms(
            attempts=attempts - 1,
            initial_ms=initial_delay_ms,
            factor=factor,
            max_ms=max_delay_ms,
            jitter=jitter,
        )
        for attempt, delay in enumerate(delays, start=1):
            try:
                return fn(*args, **kwargs)
            except exceptions as exc:  # type: ignore[misc]
                log.debug(f"Retry attempt {attempt}/{attempts - 1} after error: {exc!r} (sleep {delay} ms)")
                sleep_ms(delay)

    # last attempt propagates whatever it raises
    return fn(*args, **kwargs)


# ---------------- measure decorator ----------------

def measure(label: str = "", level: str = "DEBUG") -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to log the execution time of a function.
    Example:
        @measure("stop recording")
        def stop_recording(...): ...
    """
    log = get_logger(__name__)
    log_fn = getattr(log, level.lower(), log.info)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with Stopwatch() as sw:
                try:
                    return func(*args, **kwargs)
                finally:
                    ms = sw.elapsed_ms()
                    human = f"{ms} ms" if ms < 1000 else f"{ms/1000:.3f} s"
                    log_fn(f"{label or func.__name__} took {human}")
        wrapper.__name__ = func.__name__
        wrapper.__doc__ = func.__doc__
        return wrapper
    return decorator

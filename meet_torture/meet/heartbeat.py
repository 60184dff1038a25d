# meet_torture/meet/heartbeat.py
from __future__ import annotations

"""Conference heartbeat
----------------------
Periodically confirms every participant is still in the room with media
flowing. Runs on the calling thread: Playwright sync objects may only be
used from the thread that created them.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from meet_torture.meet.conference import is_ice_connected, is_in_muc
from meet_torture.meet.participant import Participant
from meet_torture.utils.logger import get_logger
from meet_torture.utils.timing import now_ms, sleep_ms


@dataclass
class HeartbeatFailure:
    at_ms: int
    participant: str
    reason: str


@dataclass
class HeartbeatTask:
    participants: Sequence[Participant]
    duration_ms: int
    period_ms: int = 1000
    delay_ms: int = 1000
    failures: List[HeartbeatFailure] = field(default_factory=list)
    beats: int = 0

    def check_once(self, elapsed_ms: int) -> None:
        for p in self.participants:
            if not is_in_muc(p.page):
                self.failures.append(HeartbeatFailure(elapsed_ms, p.name, "left the MUC"))
            elif not is_ice_connected(p.page):
                self.failures.append(HeartbeatFailure(elapsed_ms, p.name, "ICE not connected"))
        self.beats += 1

    def run(self) -> List[HeartbeatFailure]:
        """Block for `duration_ms`, checking every `period_ms` after `delay_ms`."""
        log = get_logger(__name__)
        start = now_ms()
        deadline = start + max(0, self.duration_ms)
        sleep_ms(min(self.delay_ms, deadline - start))

        while now_ms() < deadline:
            seen = len(self.failures)
            self.check_once(now_ms() - start)
            for f in self.failures[seen:]:
                log.warning(f"heartbeat @{f.at_ms} ms: {f.participant} {f.reason}")
            sleep_ms(min(self.period_ms, deadline - now_ms()))

        log.info(f"Heartbeat done: {self.beats} beat(s), {len(self.failures)} failure(s)")
        return self.failures

    @property
    def healthy(self) -> bool:
        return not self.failures

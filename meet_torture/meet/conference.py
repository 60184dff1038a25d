# meet_torture/meet/conference.py
from __future__ import annotations

"""Conference helpers
--------------------
Room-level state checks (MUC membership, ICE, transport protocol) and the
`Conference` holder that keeps the right number of participants joined.
"""

import uuid
from typing import Iterable, List, Optional

from playwright.sync_api import Browser, Page

from meet_torture.core.session import execute_script
from meet_torture.core.waits import execute_script_and_return_boolean, wait_for_boolean
from meet_torture.meet.participant import Participant
from meet_torture.utils.config import Settings, get_settings
from meet_torture.utils.logger import get_logger

log = get_logger(__name__)

# Appending one of these to the room URL forces media over the other transport.
DISABLE_UDP_URL_FRAGMENT = "config.webrtcIceUdpDisable=true"
DISABLE_TCP_URL_FRAGMENT = "config.webrtcIceTcpDisable=true"

_IN_MUC_SCRIPT = "typeof APP !== 'undefined' && !!APP.conference && APP.conference.isJoined() === true"
_ICE_CONNECTED_SCRIPT = (
    "typeof APP !== 'undefined' && !!APP.conference"
    " && APP.conference.getConnectionState() === 'connected'"
)
_PROTOCOL_SCRIPT = """() => {
  const stats = APP.conference.getStats();
  if (!stats || !stats.transport || !stats.transport.length) return null;
  return stats.transport[0].type;
}"""


def is_in_muc(page: Page) -> bool:
    return execute_script_and_return_boolean(page, _IN_MUC_SCRIPT)


def wait_for_participant_to_join_muc(page: Page, timeout_ms: int) -> None:
    wait_for_boolean(page, _IN_MUC_SCRIPT, timeout_ms)


def is_ice_connected(page: Page) -> bool:
    return execute_script_and_return_boolean(page, _ICE_CONNECTED_SCRIPT)


def wait_for_ice_connected(page: Page, timeout_ms: Optional[int] = None) -> None:
    wait_for_boolean(page, _ICE_CONNECTED_SCRIPT, timeout_ms if timeout_ms is not None else get_settings().ICE_TIMEOUT)


def get_protocol(page: Page) -> Optional[str]:
    """Transport of the active media connection ("udp"/"tcp"), lower-cased."""
    proto = execute_script(page, _PROTOCOL_SCRIPT)
    return proto.lower() if isinstance(proto, str) else None


def random_room_name(prefix: str = "torture") -> str:
    return f"{prefix}{uuid.uuid4().hex[:10]}"


class Conference:
    """Keeps participants 1..n joined to one room."""

    def __init__(self, browser: Browser, settings: Optional[Settings] = None, room: Optional[str] = None):
        self.browser = browser
        self.settings = settings or get_settings()
        self.room = room or self.settings.ROOM_NAME or random_room_name()
        self.participants: List[Participant] = []

    def participant(self, index: int) -> Participant:
        """1-based, participant(1) is the first to join."""
        while len(self.participants) < index:
            n = len(self.participants) + 1
            self.participants.append(Participant(f"participant{n}", self.browser, self.settings))
        return self.participants[index - 1]

    def join(self, index: int, fragments: Iterable[str] = ()) -> Participant:
        p = self.participant(index)
        p.join(self.room, fragments)
        wait_for_participant_to_join_muc(p.page, self.settings.JOIN_TIMEOUT)
        return p

    def ensure_participants(self, count: int) -> List[Participant]:
        """Join any of the first `count` participants not currently in the room."""
        for i in range(1, count + 1):
            if not self.participant(i).is_joined:
                self.join(i)
        joined = self.participants[:count]
        if count > 1:
            for p in joined:
                wait_for_ice_connected(p.page, self.settings.ICE_TIMEOUT)
        log.info(f"{count} participant(s) in {self.room}")
        return joined

    def ensure_two_participants(self) -> List[Participant]:
        return self.ensure_participants(2)

    def ensure_three_participants(self) -> List[Participant]:
        return self.ensure_participants(3)

    def wait_for_second_participant_to_connect(self, *fragments: str) -> Participant:
        """(Re)join participant2 with extra URL fragments and wait for media."""
        p2 = self.join(2, fragments)
        wait_for_ice_connected(p2.page, self.settings.ICE_TIMEOUT)
        return p2

    def close(self) -> None:
        for p in self.participants:
            p.hang_up()
        self.participants.clear()

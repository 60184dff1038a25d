"""
Meet package
------------
Participants, room-level checks and UI actions for the conference scenarios.
"""

from .participant import Participant, ParticipantError, launch_browser
from .conference import Conference

__all__ = [
    "Participant",
    "ParticipantError",
    "launch_browser",
    "Conference",
]

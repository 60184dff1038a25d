# meet_torture/video/operator.py
from __future__ import annotations

"""In-page frame recorder
------------------------
Python side of `resources/video_operator.js`: starts and stops recording of
remote <video> elements and pulls captured frames back as PNG bytes.
"""

import base64
from pathlib import Path
from typing import Iterable

from playwright.sync_api import Page

from meet_torture.core.session import execute_script
from meet_torture.core.waits import inject_script
from meet_torture.utils.logger import get_logger
from meet_torture.utils.timing import measure

SCRIPT_PATH = Path(__file__).parent / "resources" / "video_operator.js"


class VideoOperator:
    def __init__(self, page: Page, fps: int = 30):
        self.page = page
        self.fps = fps
        self.log = get_logger(__name__)

    def init(self) -> None:
        inject_script(self.page, SCRIPT_PATH)

    def record_all(self, ids: Iterable[str]) -> None:
        ids = list(ids)
        self.log.info(f"Recording {len(ids)} stream(s): {', '.join(ids)}")
        execute_script(self.page, "([ids, fps]) => window.VideoOperator.recordAll(ids, fps)", [ids, self.fps])

    def stop_recording(self) -> None:
        execute_script(self.page, "window.VideoOperator.stopRecording()")

    def frames_count(self, video_id: str) -> int:
        return int(execute_script(self.page, "(id) => window.VideoOperator.getFramesCount(id)", video_id) or 0)

    @measure("get_frame")
    def get_frame(self, video_id: str, index: int) -> bytes:
        data = execute_script(
            self.page,
            "([id, i]) => window.VideoOperator.getFrame(id, i)",
            [video_id, index],
        )
        if data is None:
            raise IndexError(f"No frame {index} recorded for {video_id}")
        return base64.b64decode(data)

    def real_fps(self) -> float:
        return float(execute_script(self.page, "window.VideoOperator.getRealFPS()") or 0.0)

    def raw_data_size_mb(self) -> float:
        return float(execute_script(self.page, "window.VideoOperator.getRawDataSize()") or 0.0)

    def dispose(self) -> None:
        execute_script(self.page, "window.VideoOperator && window.VideoOperator.dispose()")

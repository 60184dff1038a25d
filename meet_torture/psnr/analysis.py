# meet_torture/psnr/analysis.py
from __future__ import annotations

"""PSNR output analysis
----------------------
The scoring script prints one "<frame number> <psnr>" line per captured
frame. Frame numbers are stamped into the source video, so repeats mean a
frozen picture and gaps mean dropped frames.
"""

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from meet_torture.utils.logger import get_logger

# PSNR above 20 is indicative of good similarity: downscaling 720p to 360p
# scores ~27.2, to 180p ~21.9, to 90p ~20.1.
MIN_PSNR = 22.0

log = get_logger(__name__)


class PsnrParseError(ValueError):
    pass


@dataclass(frozen=True)
class FrameScore:
    frame_number: int
    psnr: float


def parse_line(line: str) -> FrameScore:
    parts = line.split()
    if len(parts) < 2:
        raise PsnrParseError(f"Expected '<frame> <psnr>', got {line!r}")
    try:
        return FrameScore(frame_number=int(parts[0]), psnr=float(parts[1]))
    except ValueError as exc:
        raise PsnrParseError(f"Unparseable PSNR line {line!r}") from exc


@dataclass
class FrameTracker:
    """Accumulates scores for one received stream."""
    total_psnr: float = 0.0
    scored: int = 0
    frozen: int = 0
    skipped: int = 0
    prev_frame: int = -1

    def add(self, score: FrameScore) -> None:
        n, prev = score.frame_number, self.prev_frame
        if prev != -1 and n == prev:
            log.debug(f"frame {n} repeated, counting as frozen")
            self.frozen += 1
        elif prev != -1 and n != prev + 1:
            if n < prev:
                # stamped numbers restart at 1
                gap = n - 1
                log.debug(f"roll over: previous frame was {prev}, current is {n}, skipped {gap}")
            else:
                gap = n - (prev + 1)
                log.debug(f"previous frame was {prev}, current is {n}, skipped {gap}")
            self.skipped += gap
        self.prev_frame = n
        self.total_psnr += score.psnr
        self.scored += 1

    def report(self, total_frames: int) -> "PsnrReport":
        avg = self.total_psnr / total_frames if total_frames else 0.0
        return PsnrReport(
            total_frames=total_frames,
            psnr=avg,
            num_frozen_frames=self.frozen,
            num_skipped_frames=self.skipped,
        )


class PsnrReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total_frames: int = Field(alias="totalFrames")
    psnr: float
    num_frozen_frames: int = Field(alias="numFrozenFrames")
    num_skipped_frames: int = Field(alias="numSkippedFrames")

    @property
    def frozen_pct(self) -> float:
        return self.num_frozen_frames / self.total_frames if self.total_frames else 0.0

    @property
    def skipped_pct(self) -> float:
        return self.num_skipped_frames / self.total_frames if self.total_frames else 0.0

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def write_report(report: PsnrReport, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.to_json(), encoding="utf-8")
    log.info(f"Wrote PSNR report: {path}")
    return path

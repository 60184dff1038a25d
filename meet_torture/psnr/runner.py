# meet_torture/psnr/runner.py
from __future__ import annotations

"""PSNR script runner
--------------------
Writes captured frames to disk, shells out to the scoring script for each
one, and folds the results into a PsnrReport.
"""

import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from meet_torture.psnr.analysis import MIN_PSNR, FrameScore, FrameTracker, PsnrReport, parse_line
from meet_torture.utils.logger import get_logger, log_with_context
from meet_torture.utils.timing import measure

log = get_logger(__name__)


class PsnrScriptError(RuntimeError):
    pass


class PsnrThresholdError(AssertionError):
    pass


class PsnrScript:
    """`script <frame> <input_dir> <resized_dir>` -> "<frame> <psnr>" lines."""

    def __init__(self, script: Path, input_dir: Path, resized_dir: Path):
        self.script = Path(script)
        self.input_dir = Path(input_dir)
        self.resized_dir = Path(resized_dir)

    def command(self, frame_path: Path) -> List[str]:
        # the script concatenates these with file names
        return [
            str(self.script),
            str(frame_path),
            f"{self.input_dir}/",
            f"{self.resized_dir}/",
        ]

    def run(self, frame_path: Path) -> List[FrameScore]:
        proc = subprocess.run(self.command(frame_path), capture_output=True, text=True)
        scores = []
        for line in proc.stdout.splitlines():
            log.debug(line)
            if line.strip():
                scores.append(parse_line(line))
        for line in proc.stderr.splitlines():
            log.debug(line)
        if proc.returncode != 0:
            raise PsnrScriptError(f"{self.script.name} failed with exit code {proc.returncode} on {frame_path}")
        return scores


@measure("score_stream", level="INFO")
def score_stream(
    video_id: str,
    frames_count: int,
    get_frame: Callable[[int], bytes],
    script: PsnrScript,
    output_dir: Path,
    min_psnr: float = MIN_PSNR,
    tracker: Optional[FrameTracker] = None,
) -> PsnrReport:
    """
    Score every captured frame of one stream.

    Raises PsnrThresholdError on the first frame not above `min_psnr`. Frames
    that pass are deleted right away; a failing frame stays on disk.
    """
    slog = log_with_context(log, video_id=video_id)
    tracker = tracker or FrameTracker()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    slog.info(f"frames count for {video_id}: {frames_count}")
    for i in range(frames_count):
        frame_path = output_dir / f"{video_id}-{i}.png"
        frame_path.write_bytes(get_frame(i))

        for score in script.run(frame_path):
            if not score.psnr > min_psnr:
                raise PsnrThresholdError(
                    f"Frame {score.frame_number} of {video_id} is below the PSNR threshold "
                    f"({score.psnr} <= {min_psnr})"
                )
            slog.debug(f"frame number {score.frame_number} had psnr {score.psnr}")
            tracker.add(score)

        frame_path.unlink()

    report = tracker.report(frames_count)
    slog.info(
        f"Average psnr: {report.psnr:.4f}, frozen: {report.num_frozen_frames} ({report.frozen_pct:.2%}), "
        f"skipped: {report.num_skipped_frames} ({report.skipped_pct:.2%})"
    )
    return report

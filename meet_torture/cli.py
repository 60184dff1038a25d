# meet_torture/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Inspect effective config and detected platform, and score already-captured
frames with the PSNR script outside of a browser run.
"""

import json
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click

from meet_torture.psnr.analysis import FrameTracker, PsnrParseError, PsnrReport, write_report
from meet_torture.psnr.runner import PsnrScript, PsnrScriptError
from meet_torture.utils.config import get_platform, get_settings
from meet_torture.utils.logger import bind, get_logger, set_log_level, unbind


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _frame_key(path: Path) -> Tuple[str, int]:
    """`<video_id>-<index>.png` -> (video_id, index); other names are their own stream."""
    video_id, sep, index = path.stem.rpartition("-")
    if sep and video_id and index.isdigit():
        return video_id, int(index)
    return path.stem, 0


def _collect_frames(paths: List[str]) -> Dict[str, List[Path]]:
    """Frames grouped per video id, each group in capture order."""
    files: List[Path] = []
    for p in (Path(x).resolve() for x in paths):
        if p.is_dir():
            files.extend(p.glob("*.png"))
        else:
            files.append(p)

    streams: Dict[str, List[Path]] = {}
    for fp in sorted(files, key=_frame_key):
        streams.setdefault(_frame_key(fp)[0], []).append(fp)
    return streams


def _report_path(json_out: str, video_id: str, several: bool) -> Path:
    path = Path(json_out).resolve()
    if several:
        path = path.with_name(f"{path.stem}-{video_id}{path.suffix}")
    return path


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="meet-torture")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    s = get_settings()
    _echo_json(s.model_dump(mode="json"))


@cli.command("platform")
def cmd_platform():
    """Print the detected operating system flags."""
    _echo_json(asdict(get_platform()))


@cli.command("psnr")
@click.argument("frames", nargs=-1, required=True)
@click.option("--script", "script_path", type=click.Path(dir_okay=False), default=None,
              help="Scoring script (defaults to PSNR_SCRIPT)")
@click.option("--input-dir", type=click.Path(file_okay=False), default=None,
              help="Stamped reference frames (defaults to PSNR_INPUT_FRAME_DIR)")
@click.option("--resized-dir", type=click.Path(file_okay=False), default=None,
              help="Scratch dir for resized frames (defaults to PSNR_RESIZED_FRAME_DIR)")
@click.option("--min-psnr", type=float, default=None, help="Override PSNR_MIN")
@click.option("--json-out", type=click.Path(dir_okay=False), default=None, help="Write the report to this file")
def cmd_psnr(
    frames: List[str],
    script_path: Optional[str],
    input_dir: Optional[str],
    resized_dir: Optional[str],
    min_psnr: Optional[float],
    json_out: Optional[str],
):
    """
    Score captured frames (PNG files or directories of them).

    Examples:
      meet-torture psnr test-reports/psnr/captured-frames
      meet-torture psnr frame-0.png frame-1.png --min-psnr 25 --json-out psnr.json
    """
    s = get_settings()
    log = get_logger(__name__)
    threshold = s.PSNR_MIN if min_psnr is None else min_psnr
    script = PsnrScript(
        Path(script_path) if script_path else s.PSNR_SCRIPT,
        Path(input_dir) if input_dir else s.PSNR_INPUT_FRAME_DIR,
        Path(resized_dir) if resized_dir else s.PSNR_RESIZED_FRAME_DIR,
    )

    streams = _collect_frames(frames)
    if not streams:
        click.echo("No frames found.")
        sys.exit(2)

    bind(run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"))
    reports: Dict[str, PsnrReport] = {}
    below = 0
    try:
        for video_id, files in streams.items():
            tracker = FrameTracker()
            for fp in files:
                for score in script.run(fp):
                    if not score.psnr > threshold:
                        below += 1
                        click.echo(f"LOW {fp.name} -> frame {score.frame_number} psnr {score.psnr}")
                    tracker.add(score)
            reports[video_id] = tracker.report(len(files))
    except (PsnrScriptError, PsnrParseError) as e:
        click.echo(f"ERR {e}")
        sys.exit(1)
    finally:
        unbind("run_id")

    several = len(reports) > 1
    if several:
        _echo_json({vid: r.model_dump(by_alias=True) for vid, r in reports.items()})
    else:
        _echo_json(next(iter(reports.values())).model_dump(by_alias=True))
    if json_out:
        for video_id, report in reports.items():
            out = write_report(report, _report_path(json_out, video_id, several))
            click.echo(f"Wrote report: {out}")

    log.debug(f"{below} frame(s) at or below {threshold}")
    sys.exit(0 if below == 0 else 1)


def main() -> None:
    cli(prog_name="meet-torture")


if __name__ == "__main__":
    main()

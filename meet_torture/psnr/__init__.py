"""
PSNR package
------------
Scores received video frames against the stamped source frames.
"""

from .analysis import MIN_PSNR, FrameScore, FrameTracker, PsnrParseError, PsnrReport, parse_line, write_report
from .runner import PsnrScript, PsnrScriptError, PsnrThresholdError, score_stream

__all__ = [
    "MIN_PSNR",
    "FrameScore",
    "FrameTracker",
    "PsnrParseError",
    "PsnrReport",
    "parse_line",
    "write_report",
    "PsnrScript",
    "PsnrScriptError",
    "PsnrThresholdError",
    "score_stream",
]

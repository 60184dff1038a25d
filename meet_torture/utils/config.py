# meet_torture/utils/config.py
from __future__ import annotations

import functools
import platform as _platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class BrowserType(str, Enum):
    chromium = "chromium"
    firefox = "firefox"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for the conference test suite.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below
    """

    # ---- Conference ----
    MEET_BASE_URL: Optional[str] = Field(default=None, description="Base URL of the deployment under test")
    ROOM_NAME: Optional[str] = Field(default=None, description="Fixed room name; random when unset")

    # ---- Browser configuration ----
    HEADLESS: bool = Field(default=True, description="Run the browser headless")
    BROWSER_TYPE: BrowserType = Field(default=BrowserType.chromium, description="Playwright browser")
    VIEWPORT_WIDTH: int = Field(default=1280, ge=320, le=7680)
    VIEWPORT_HEIGHT: int = Field(default=720, ge=320, le=4320)
    SLOW_MO: int = Field(default=0, ge=0, description="Slow down actions (ms) for debugging")
    FAKE_VIDEO_FILE: Optional[Path] = Field(default=None, description="y4m/mjpeg file fed as the fake camera")

    # ---- Timeouts (ms) ----
    PAGE_LOAD_TIMEOUT: int = Field(default=60000, ge=1000)
    DEFAULT_WAIT_TIMEOUT: int = Field(default=10000, ge=0)
    POLL_INTERVAL: int = Field(default=500, ge=1)
    JOIN_TIMEOUT: int = Field(default=10000, ge=0)
    ICE_TIMEOUT: int = Field(default=15000, ge=0)

    # ---- Retry ----
    MAX_RETRIES: int = Field(default=3, ge=0)
    RETRY_DELAY: int = Field(default=1000, ge=0)

    # ---- PSNR ----
    RUN_PSNR: bool = Field(default=False)
    PSNR_SCRIPT: Path = Field(default=Path("scripts/psnr-test.sh"))
    PSNR_INPUT_FRAME_DIR: Path = Field(default=Path("resources/psnr/stamped"))
    PSNR_OUTPUT_FRAME_DIR: Path = Field(default=Path("test-reports/psnr/captured-frames"))
    PSNR_RESIZED_FRAME_DIR: Path = Field(default=Path("test-reports/psnr/resized-frames"))
    PSNR_DURATION_MILLIS: int = Field(default=10000, ge=0)
    PSNR_MIN: float = Field(default=22.0, description="Frames must score above this")
    PSNR_RAMP_UP_SECONDS: int = Field(default=30, ge=0)
    PSNR_OUTPUT_DIR: Optional[Path] = None
    PSNR_OUTPUT_FILENAME: Optional[str] = None

    # ---- Reports / Logging ----
    REPORTS_DIR: Path = Field(default=Path("./test-reports"))
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./test-reports/meet-torture.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("MEET_BASE_URL", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, v: Optional[str]):
        if not v:
            return None
        return v.rstrip("/")

    @field_validator(
        "PSNR_SCRIPT",
        "PSNR_INPUT_FRAME_DIR",
        "PSNR_OUTPUT_FRAME_DIR",
        "PSNR_RESIZED_FRAME_DIR",
        "REPORTS_DIR",
        "LOG_FILE",
        mode="after",
    )
    @classmethod
    def _absolutize(cls, v: Path):
        return v if v.is_absolute() else Path.cwd() / v

    def ensure_dirs(self) -> None:
        """Create report directories (idempotent)."""
        for p in {self.REPORTS_DIR, self.LOG_FILE.parent}:
            p.mkdir(parents=True, exist_ok=True)

    def psnr_report_path(self) -> Optional[Path]:
        """Where the PSNR JSON report goes; None unless both dir and filename are set."""
        if self.PSNR_OUTPUT_DIR and self.PSNR_OUTPUT_FILENAME:
            return Path(self.PSNR_OUTPUT_DIR) / self.PSNR_OUTPUT_FILENAME
        return None

    # Convenience: Playwright launch options dict
    def playwright_launch_kwargs(self, plat: Optional["Platform"] = None) -> dict:
        plat = plat or get_platform()
        kwargs: dict = {
            "headless": self.HEADLESS,
            "slow_mo": self.SLOW_MO,
        }
        if self.BROWSER_TYPE == BrowserType.firefox:
            kwargs["firefox_user_prefs"] = {
                "media.navigator.streams.fake": True,
                "media.navigator.permission.disabled": True,
            }
            return kwargs

        args = [
            "--use-fake-ui-for-media-stream",
            "--use-fake-device-for-media-stream",
            "--autoplay-policy=no-user-gesture-required",
        ]
        if self.FAKE_VIDEO_FILE:
            args.append(f"--use-file-for-fake-video-capture={self.FAKE_VIDEO_FILE}")
        if plat.is_linux:
            # containers ship a tiny /dev/shm
            args.append("--disable-dev-shm-usage")
        kwargs["args"] = args
        return kwargs

    # Convenience: Playwright new_context kwargs
    def playwright_context_kwargs(self) -> dict:
        ctx: dict = {"viewport": {"width": self.VIEWPORT_WIDTH, "height": self.VIEWPORT_HEIGHT}}
        if self.BROWSER_TYPE == BrowserType.chromium:
            ctx["permissions"] = ["camera", "microphone"]
        return ctx


# --------- Platform detection ---------

@dataclass(frozen=True)
class Platform:
    """Operating system flags, computed once per process."""
    os_name: str
    is_linux: bool
    is_mac: bool


def detect_platform(os_name: Optional[str] = None) -> Platform:
    name = os_name if os_name is not None else _platform.system()
    if not name:
        return Platform(os_name="", is_linux=False, is_mac=False)
    return Platform(
        os_name=name,
        is_linux=name.startswith("Linux"),
        is_mac=name.startswith("Mac") or name == "Darwin",
    )


@functools.lru_cache(maxsize=1)
def get_platform() -> Platform:
    return detect_platform()


# --------- Public accessor (memoized) ---------

@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    return Settings()

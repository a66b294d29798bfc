from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

from normalize_page import NormalizePageConfig
from normalize_page.contracts import A4_HEIGHT_300DPI, A4_WIDTH_300DPI
from rasterize_pdf import RasterEngineName, RasterizeConfig
from watch_folder import ObserverConfig, WatcherConfig

REQUIRED_VARS = ("WATCH_FOLDER", "OUTPUT_FOLDER")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(Exception):
    def __init__(self, problems: list[str]) -> None:
        super().__init__(
            "Missing or invalid configuration: "
            + "; ".join(problems)
            + ". Copy .env.example to .env and set the folders."
        )
        self.problems = problems


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """
    Process-level settings, read once at startup.

    Stage configs are derived from this object; no stage module reads the
    environment itself.
    """

    watch_folder: Path
    output_folder: Path
    dpi: int = 300
    jpeg_quality: int = 90
    target_width: int = A4_WIDTH_300DPI
    target_height: int = A4_HEIGHT_300DPI
    retry_interval_ms: int = 5000
    max_retries: int = 3
    log_level: str = "info"
    log_folder: Path = Path("logs")
    use_polling: bool = False
    poppler_path: Path | None = None
    raster_engine: RasterEngineName = RasterEngineName.AUTO
    temp_folder: Path | None = None

    def raster_config(self) -> RasterizeConfig:
        return RasterizeConfig(
            dpi=self.dpi,
            engine=self.raster_engine,
            temp_root=self.temp_folder,
            poppler_path=self.poppler_path,
        )

    def page_config(self) -> NormalizePageConfig:
        return NormalizePageConfig(
            target_width=self.target_width,
            target_height=self.target_height,
            jpeg_quality=self.jpeg_quality,
        )

    def watcher_config(self) -> WatcherConfig:
        return WatcherConfig(
            output_folder=self.output_folder,
            retry_interval_s=self.retry_interval_ms / 1000.0,
            max_retries=self.max_retries,
        )

    def observer_config(self) -> ObserverConfig:
        return ObserverConfig(watch_folder=self.watch_folder, use_polling=self.use_polling)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _path(value: str | None) -> Path | None:
    if _blank(value):
        return None
    return Path(value.strip()).expanduser().resolve()


def _int(env: Mapping[str, str], key: str, default: int, problems: list[str], *, minimum: int, maximum: int | None = None) -> int:
    raw = env.get(key)
    if _blank(raw):
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        problems.append(f"{key} must be an integer, got {raw!r}")
        return default
    if value < minimum or (maximum is not None and value > maximum):
        bound = f">= {minimum}" if maximum is None else f"within {minimum}..{maximum}"
        problems.append(f"{key} must be {bound}, got {value}")
    return value


def _bool(env: Mapping[str, str], key: str, default: bool, problems: list[str]) -> bool:
    raw = env.get(key)
    if _blank(raw):
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    problems.append(f"{key} must be a boolean (true/false), got {raw!r}")
    return default


def load_config(
    environ: Mapping[str, str] | None = None,
    *,
    env_file: Path | None = None,
    use_dotenv: bool = True,
) -> ServiceConfig:
    """
    Build the service configuration from environment variables.

    When `environ` is None the process environment is used, after loading
    `env_file` (or a `.env` found from the working directory) without
    overriding variables that are already set. Raises ConfigError listing
    every missing or malformed variable.
    """

    if environ is None:
        if use_dotenv:
            load_dotenv(env_file if env_file is not None else find_dotenv(usecwd=True))
        environ = os.environ

    problems: list[str] = []
    for key in REQUIRED_VARS:
        if _blank(environ.get(key)):
            problems.append(f"{key} is required")

    dpi = _int(environ, "DPI", 300, problems, minimum=1)
    jpeg_quality = _int(environ, "JPEG_QUALITY", 90, problems, minimum=0, maximum=100)
    target_width = _int(environ, "TARGET_WIDTH", A4_WIDTH_300DPI, problems, minimum=1)
    target_height = _int(environ, "TARGET_HEIGHT", A4_HEIGHT_300DPI, problems, minimum=1)
    retry_interval_ms = _int(environ, "RETRY_INTERVAL", 5000, problems, minimum=0)
    max_retries = _int(environ, "MAX_RETRIES", 3, problems, minimum=0)
    use_polling = _bool(environ, "USE_POLLING", sys.platform == "win32", problems)

    log_level = (environ.get("LOG_LEVEL") or "info").strip().lower()
    if log_level == "warn":
        log_level = "warning"
    if log_level not in LOG_LEVELS:
        problems.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    engine_raw = (environ.get("RASTER_ENGINE") or RasterEngineName.AUTO.value).strip().lower()
    try:
        raster_engine = RasterEngineName(engine_raw)
    except ValueError:
        problems.append(
            f"RASTER_ENGINE must be one of {', '.join(e.value for e in RasterEngineName)}, got {engine_raw!r}"
        )
        raster_engine = RasterEngineName.AUTO

    if problems:
        raise ConfigError(problems)

    return ServiceConfig(
        watch_folder=_path(environ["WATCH_FOLDER"]),
        output_folder=_path(environ["OUTPUT_FOLDER"]),
        dpi=dpi,
        jpeg_quality=jpeg_quality,
        target_width=target_width,
        target_height=target_height,
        retry_interval_ms=retry_interval_ms,
        max_retries=max_retries,
        log_level=log_level,
        log_folder=_path(environ.get("LOG_FOLDER")) or Path("logs").resolve(),
        use_polling=use_polling,
        poppler_path=_path(environ.get("POPPLER_PATH")),
        raster_engine=raster_engine,
        temp_folder=_path(environ.get("TEMP_FOLDER")),
    )

from __future__ import annotations

import os
import shutil
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rasterize_pdf import RasterEngineName, resolve_engine_name
from rasterize_pdf.engines import find_pdftoppm

from .config import ServiceConfig

MIN_PYTHON = (3, 10)
MIN_FREE_MB = 500


class CheckStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class PreflightCheck:
    name: str
    status: CheckStatus
    current: str | None = None
    required: str | None = None
    install_hint: str | None = None


@dataclass(frozen=True, slots=True)
class PreflightReport:
    status: CheckStatus
    checks: list[PreflightCheck] = field(default_factory=list)

    @property
    def errors(self) -> list[PreflightCheck]:
        return [c for c in self.checks if c.status == CheckStatus.ERROR]

    @property
    def warnings(self) -> list[PreflightCheck]:
        return [c for c in self.checks if c.status == CheckStatus.WARNING]


def check_python_version() -> PreflightCheck:
    current = ".".join(str(p) for p in sys.version_info[:3])
    if sys.version_info[:2] < MIN_PYTHON:
        return PreflightCheck(
            name="Python",
            status=CheckStatus.ERROR,
            current=current,
            required=">= " + ".".join(str(p) for p in MIN_PYTHON),
            install_hint="Install Python 3.10 or newer",
        )
    return PreflightCheck(name="Python", status=CheckStatus.OK, current=current)


def _poppler_install_hint() -> str:
    if sys.platform == "win32":
        return "Download from https://github.com/oschwartz10612/poppler-windows/releases and set POPPLER_PATH"
    if sys.platform == "darwin":
        return "brew install poppler"
    return "sudo apt install poppler-utils  # Debian/Ubuntu\nsudo yum install poppler-utils  # RHEL/CentOS"


def check_rasterizer(config: ServiceConfig) -> PreflightCheck:
    engine = resolve_engine_name(config.raster_config())

    if engine == RasterEngineName.PDFTOPPM:
        exe = find_pdftoppm(config.poppler_path)
        if exe is None:
            return PreflightCheck(
                name="Poppler (pdftoppm)",
                status=CheckStatus.ERROR,
                required="pdftoppm",
                install_hint=_poppler_install_hint(),
            )
        return PreflightCheck(name="Poppler (pdftoppm)", status=CheckStatus.OK, current=exe)

    try:
        import pypdfium2 as pdfium  # type: ignore
    except ImportError:
        return PreflightCheck(
            name="pypdfium2",
            status=CheckStatus.ERROR,
            required="pypdfium2",
            install_hint="pip install pypdfium2",
        )
    return PreflightCheck(name="pypdfium2", status=CheckStatus.OK, current=getattr(pdfium, "__version__", "installed"))


def check_read_permission(folder: Path, label: str) -> PreflightCheck:
    name = f"Read access: {label}"
    if folder.is_dir() and os.access(folder, os.R_OK | os.X_OK):
        return PreflightCheck(name=name, status=CheckStatus.OK, current=str(folder))
    return PreflightCheck(
        name=name,
        status=CheckStatus.ERROR,
        current=str(folder),
        install_hint="Check that the folder exists and is readable",
    )


def check_write_permission(folder: Path, label: str) -> PreflightCheck:
    name = f"Write access: {label}"
    if folder.is_dir() and os.access(folder, os.W_OK | os.X_OK):
        return PreflightCheck(name=name, status=CheckStatus.OK, current=str(folder))
    return PreflightCheck(
        name=name,
        status=CheckStatus.ERROR,
        current=str(folder),
        install_hint=f'chmod +w "{folder}"  # Linux/macOS\nicacls "{folder}" /grant Users:F  # Windows',
    )


def check_disk_space(folder: Path, min_mb: int = MIN_FREE_MB) -> PreflightCheck:
    try:
        free_mb = shutil.disk_usage(folder).free // (1024 * 1024)
    except OSError:
        return PreflightCheck(
            name="Disk space",
            status=CheckStatus.WARNING,
            current="could not be determined",
            install_hint=f"Make sure at least {min_mb}MB are free",
        )
    status = CheckStatus.OK if free_mb >= min_mb else CheckStatus.WARNING
    return PreflightCheck(
        name="Disk space",
        status=status,
        current=f"{free_mb}MB free",
        required=f">= {min_mb}MB",
        install_hint=None if status == CheckStatus.OK else f"Free up space on {folder}",
    )


def run_preflight(config: ServiceConfig) -> PreflightReport:
    checks = [
        check_python_version(),
        check_rasterizer(config),
        check_read_permission(config.watch_folder, "watch folder"),
        check_write_permission(config.output_folder, "output folder"),
        check_disk_space(config.output_folder),
    ]

    if any(c.status == CheckStatus.ERROR for c in checks):
        status = CheckStatus.ERROR
    elif any(c.status == CheckStatus.WARNING for c in checks):
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.OK
    return PreflightReport(status=status, checks=checks)

"""Runtime configuration, read from the environment."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


APP_NAME = "taskqueue-mcp"

FILE_PATH_ENV = "TASK_MANAGER_FILE_PATH"
LOG_LEVEL_ENV = "TASKQUEUE_LOG_LEVEL"
LOG_FILE_ENV = "TASKQUEUE_LOG_FILE"


def app_data_dir(environ: Optional[Mapping[str, str]] = None, platform: Optional[str] = None) -> Path:
    """Platform-appropriate directory for the task collection."""
    environ = os.environ if environ is None else environ
    platform = platform or sys.platform
    home = Path.home()

    if platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    if platform == "win32":
        appdata = environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / APP_NAME

    xdg_data_home = environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / APP_NAME
    return home / ".local" / "share" / APP_NAME


@dataclass(slots=True)
class Settings:
    tasks_file: Path
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    environ = os.environ if environ is None else environ

    file_path = environ.get(FILE_PATH_ENV)
    tasks_file = Path(file_path).expanduser() if file_path else app_data_dir(environ) / "tasks.json"

    log_file = environ.get(LOG_FILE_ENV)
    return Settings(
        tasks_file=tasks_file,
        log_level=environ.get(LOG_LEVEL_ENV, "INFO").upper(),
        log_file=Path(log_file).expanduser() if log_file else None,
    )

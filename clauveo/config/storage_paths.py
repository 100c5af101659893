"""Helpers to resolve shared storage directories for the desktop bridge."""

import os
import tempfile
from pathlib import Path


APP_FOLDER_NAME = "Clauveo"
SCRATCH_FOLDER_NAME = "clauveo"
CONFIG_FILENAME = "config.yaml"


def _resolveAppDataBase() -> Path:
    """Return the per-user configuration directory on the current system."""

    base_path = os.environ.get("APPDATA") or os.environ.get("XDG_CONFIG_HOME")
    if base_path:
        return Path(base_path)
    if os.name == "nt":
        return Path.home() / "AppData" / "Roaming"
    return Path.home() / ".config"


def getAppDataRoot() -> Path:
    """Return the base directory reserved for the app configuration."""

    return _resolveAppDataBase() / APP_FOLDER_NAME


def getConfigFilePath() -> Path:
    """Return the default location of the YAML configuration file."""

    return getAppDataRoot() / CONFIG_FILENAME


def getScratchRoot(create: bool = False) -> Path:
    """Return the folder under which request scratch directories are created."""

    directory = Path(tempfile.gettempdir()) / SCRATCH_FOLDER_NAME
    if create:
        directory.mkdir(parents=True, exist_ok=True)
    return directory

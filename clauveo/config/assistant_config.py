"""Configuration helper for the external assistant command-line tool."""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import yaml

from clauveo.config.storage_paths import getConfigFilePath, getScratchRoot


class AssistantConfigurationError(RuntimeError):
    """Raised when the configuration file cannot be read or is malformed."""


_TRUE_VALUES = {"1", "true", "yes", "on"}


class AssistantConfiguration:
    """Resolve how the assistant binary is located and invoked.

    Values are read from the environment first, then from the optional YAML
    file, then from the class defaults.
    """

    DEFAULT_BINARY: str = "claude"
    DEFAULT_SEARCH_PATHS: tuple = ("~/.local/bin",)
    DEFAULT_INVOCATION_MODE: str = "auto"
    DEFAULT_COMPATIBILITY_SHELL: tuple = ("wsl",)
    DEFAULT_LOCK_TIMEOUT_SECONDS: float = 5.0
    DEFAULT_PROBE_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_LOG_LEVEL: str = "INFO"
    INVOCATION_MODES: tuple = ("auto", "native", "compatibility_shell")

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[Path] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Persist the environment mapping and load the YAML settings."""

        self._environ: MutableMapping[str, str] = (
            dict(environ) if environ is not None else dict(os.environ)
        )
        self._config_path: Optional[Path] = None
        if settings is not None:
            self._settings: Dict[str, Any] = dict(settings)
        else:
            self._settings = self._load_settings_file(config_path)

    def _load_settings_file(self, config_path: Optional[Path]) -> Dict[str, Any]:
        """Read the YAML configuration, tolerating a missing default file."""

        explicit = config_path is not None or bool(self._environ.get("CLAUVEO_CONFIG", "").strip())
        if config_path is not None:
            path = Path(config_path).expanduser()
        elif explicit:
            path = Path(self._environ["CLAUVEO_CONFIG"].strip()).expanduser()
        else:
            path = getConfigFilePath()

        if not path.exists():
            if explicit:
                raise AssistantConfigurationError(f"Configuration file '{path}' does not exist.")
            return {}

        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise AssistantConfigurationError(f"Configuration file '{path}' is not valid YAML.") from exc
        except OSError as exc:
            raise AssistantConfigurationError(f"Configuration file '{path}' could not be read.") from exc

        self._config_path = path
        if loaded is None:
            return {}
        if not isinstance(loaded, Mapping):
            raise AssistantConfigurationError(
                f"Configuration file '{path}' must contain a mapping at the top level."
            )
        return dict(loaded)

    def get_config_path(self) -> Optional[Path]:
        """Return the YAML file the settings were loaded from, if any."""

        return self._config_path

    def _raw(self, env_key: str, setting_key: str) -> Any:
        """Return the environment value, else the YAML value, else ``None``."""

        value = self._environ.get(env_key)
        if value is not None and value.strip():
            return value.strip()
        return self._settings.get(setting_key)

    def get_binary_name(self) -> str:
        """Return the executable name of the assistant CLI."""

        raw = self._raw("CLAUVEO_ASSISTANT_BINARY", "binary_name")
        return str(raw).strip() if raw and str(raw).strip() else self.DEFAULT_BINARY

    def get_additional_search_paths(self) -> List[Path]:
        """Return the ordered directories prepended to the child ``PATH``."""

        raw = self._raw("CLAUVEO_SEARCH_PATHS", "additional_search_paths")
        if raw is None:
            entries: List[str] = list(self.DEFAULT_SEARCH_PATHS)
        elif isinstance(raw, str):
            entries = raw.split(os.pathsep)
        elif isinstance(raw, (list, tuple)):
            entries = [str(item) for item in raw]
        else:
            entries = list(self.DEFAULT_SEARCH_PATHS)
        return [Path(entry.strip()).expanduser() for entry in entries if entry and entry.strip()]

    def get_invocation_mode(self) -> str:
        """Return ``auto``, ``native`` or ``compatibility_shell``."""

        raw = self._raw("CLAUVEO_INVOCATION_MODE", "invocation_mode")
        mode = str(raw).strip().lower() if raw else ""
        if mode in self.INVOCATION_MODES:
            return mode
        return self.DEFAULT_INVOCATION_MODE

    def get_compatibility_shell(self) -> List[str]:
        """Return the command prefix used to reach the compatibility layer."""

        raw = self._raw("CLAUVEO_COMPAT_SHELL", "compatibility_shell")
        if isinstance(raw, str):
            parts = shlex.split(raw)
        elif isinstance(raw, (list, tuple)):
            parts = [str(item) for item in raw if str(item).strip()]
        else:
            parts = []
        return parts or list(self.DEFAULT_COMPATIBILITY_SHELL)

    def get_scratch_root(self) -> Path:
        """Return the parent folder of per-request scratch directories."""

        raw = self._raw("CLAUVEO_SCRATCH_ROOT", "scratch_root")
        if raw and str(raw).strip():
            return Path(str(raw).strip()).expanduser()
        return getScratchRoot()

    def _get_float(self, env_key: str, setting_key: str, default: float) -> float:
        raw = self._raw(env_key, setting_key)
        if raw is None:
            return default
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return default
        return value if value > 0 else default

    def get_session_lock_timeout(self) -> float:
        """Return how long session operations wait for exclusive access."""

        return self._get_float(
            "CLAUVEO_SESSION_LOCK_TIMEOUT",
            "session_lock_timeout_seconds",
            self.DEFAULT_LOCK_TIMEOUT_SECONDS,
        )

    def get_probe_timeout(self) -> float:
        """Return the timeout applied to the ``--version`` availability probe."""

        return self._get_float(
            "CLAUVEO_PROBE_TIMEOUT",
            "probe_timeout_seconds",
            self.DEFAULT_PROBE_TIMEOUT_SECONDS,
        )

    def should_mark_session_error_on_failure(self) -> bool:
        """Return whether a failed session send moves the completed session to ``Error``."""

        raw = self._raw("CLAUVEO_MARK_SESSION_ERROR", "mark_session_error_on_failure")
        if isinstance(raw, bool):
            return raw
        if raw is None:
            return False
        return str(raw).strip().lower() in _TRUE_VALUES

    def get_log_level(self) -> str:
        """Return the logging level name used by the entry point."""

        raw = self._raw("CLAUVEO_LOG_LEVEL", "log_level")
        return str(raw).strip().upper() if raw and str(raw).strip() else self.DEFAULT_LOG_LEVEL


__all__ = ["AssistantConfiguration", "AssistantConfigurationError"]

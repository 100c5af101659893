"""Invoke the external assistant command-line tool on the host platform."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import os
from pathlib import Path, PureWindowsPath
import shutil
import subprocess
import sys
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from clauveo.config.assistant_config import AssistantConfiguration


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ProcessBridgeError(RuntimeError):
    """Raised when the assistant CLI cannot complete a request."""


class ProcessSpawnError(ProcessBridgeError):
    """Raised when the assistant binary cannot be launched."""


class ProcessExitError(ProcessBridgeError):
    """Raised when the assistant binary exits with a failure status."""

    def __init__(self, stderr: str, returncode: int) -> None:
        super().__init__(f"Assistant CLI error: {stderr}")
        self.stderr = stderr
        self.returncode = returncode


def _decode_output(raw: Union[bytes, str, None]) -> str:
    """Decode process output, replacing invalid UTF-8 sequences."""

    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


class ProcessBridge(ABC):
    """Build and run assistant invocations for one platform capability profile."""

    CHAT_SUBCOMMAND = "chat"
    ATTACH_FLAG = "--attach"
    VERSION_FLAG = "--version"

    def __init__(
        self,
        configuration: AssistantConfiguration,
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
        base_environ: Optional[Mapping[str, str]] = None,
        which: Optional[Callable[..., Optional[str]]] = None,
    ) -> None:
        """Store configuration and the process runner used for invocations."""

        self._config = configuration
        self._runner = runner or subprocess.run
        self._base_environ = dict(base_environ) if base_environ is not None else None
        self._which = which or shutil.which

    def build_environment(self) -> Dict[str, str]:
        """Return the child environment with the search paths prepended to ``PATH``."""

        environment = dict(os.environ) if self._base_environ is None else dict(self._base_environ)
        extra = [str(path) for path in self._config.get_additional_search_paths()]
        existing = [entry for entry in environment.get("PATH", "").split(os.pathsep) if entry]
        environment["PATH"] = os.pathsep.join(extra + [entry for entry in existing if entry not in extra])
        return environment

    def translate_path(self, path: PathLike) -> str:
        """Return the attachment path as seen by the assistant binary."""

        return str(path)

    def build_chat_arguments(self, message: str, attachments: Sequence[PathLike]) -> List[str]:
        """Return ``chat <message>`` followed by one ``--attach`` pair per file."""

        arguments = [self.CHAT_SUBCOMMAND, message]
        for attachment in attachments:
            arguments.extend([self.ATTACH_FLAG, self.translate_path(attachment)])
        return arguments

    @abstractmethod
    def build_command(self, arguments: Sequence[str], environment: Mapping[str, str]) -> List[str]:
        """Return the full command line for the given assistant arguments."""

    @abstractmethod
    def describe(self) -> str:
        """Return a short label used in log and error messages."""

    def send(
        self,
        message: str,
        attachments: Sequence[PathLike],
        working_directory: Optional[PathLike] = None,
    ) -> str:
        """Run the assistant and return its standard output.

        Blocks until the process exits. There is no timeout and no retry.
        """

        if working_directory is not None and not Path(working_directory).is_dir():
            raise ProcessSpawnError(f"Project path '{working_directory}' is not an existing directory.")

        environment = self.build_environment()
        command = self.build_command(self.build_chat_arguments(message, attachments), environment)
        logger.info(
            "Invoking assistant through %s with %d attachment(s)", self.describe(), len(attachments)
        )
        try:
            result = self._runner(
                command,
                cwd=str(working_directory) if working_directory is not None else None,
                env=environment,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            logger.error("Could not launch %s: %s", command[0], exc)
            raise ProcessSpawnError(
                f"Failed to execute '{command[0]}' ({self.describe()}): {exc}. "
                "Make sure the assistant CLI is installed and reachable through the configured search paths."
            ) from exc

        if result.returncode != 0:
            stderr = _decode_output(result.stderr)
            logger.warning("Assistant exited with status %s", result.returncode)
            raise ProcessExitError(stderr, result.returncode)
        return _decode_output(result.stdout)

    def is_available(self) -> bool:
        """Return whether ``--version`` succeeds with the same dispatch as ``send``."""

        environment = self.build_environment()
        command = self.build_command([self.VERSION_FLAG], environment)
        try:
            result = self._runner(
                command,
                env=environment,
                capture_output=True,
                check=False,
                timeout=self._config.get_probe_timeout(),
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.info("Assistant CLI is not available through %s: %s", self.describe(), exc)
            return False
        return result.returncode == 0


class NativeProcessBridge(ProcessBridge):
    """Run the assistant binary directly on platforms that support it."""

    def build_command(self, arguments: Sequence[str], environment: Mapping[str, str]) -> List[str]:
        binary = self._config.get_binary_name()
        resolved = self._which(binary, path=environment.get("PATH"))
        return [resolved or binary, *arguments]

    def describe(self) -> str:
        return "native binary"


class CompatibilityShellBridge(ProcessBridge):
    """Run the assistant through a compatibility shell such as ``wsl``."""

    MOUNT_ROOT = "/mnt"

    def translate_path(self, path: PathLike) -> str:
        """Map ``C:\\dir\\file`` to ``/mnt/c/dir/file`` for the Linux side."""

        windows_path = PureWindowsPath(str(path))
        if not windows_path.drive or not windows_path.drive.endswith(":"):
            return str(path)
        drive_letter = windows_path.drive[0].lower()
        remainder = list(windows_path.parts[1:])
        return "/".join([self.MOUNT_ROOT, drive_letter, *remainder])

    def build_command(self, arguments: Sequence[str], environment: Mapping[str, str]) -> List[str]:
        return [*self._config.get_compatibility_shell(), self._config.get_binary_name(), *arguments]

    def describe(self) -> str:
        return f"compatibility shell '{' '.join(self._config.get_compatibility_shell())}'"


def select_process_bridge(
    configuration: AssistantConfiguration,
    platform: Optional[str] = None,
    runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
) -> ProcessBridge:
    """Choose the bridge matching the configured mode and host platform."""

    mode = configuration.get_invocation_mode()
    host = platform or sys.platform
    if mode == "auto":
        mode = "compatibility_shell" if host.startswith("win") else "native"
    bridge_class = CompatibilityShellBridge if mode == "compatibility_shell" else NativeProcessBridge
    logger.debug("Selected %s for platform %s", bridge_class.__name__, host)
    return bridge_class(configuration, runner=runner)


__all__ = [
    "CompatibilityShellBridge",
    "NativeProcessBridge",
    "ProcessBridge",
    "ProcessBridgeError",
    "ProcessExitError",
    "ProcessSpawnError",
    "select_process_bridge",
]

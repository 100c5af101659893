"""Tests for building and running assistant CLI invocations."""

from __future__ import annotations

import os
from pathlib import Path
import subprocess
import sys
from typing import Any, Dict, List, Optional

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from clauveo.config.assistant_config import AssistantConfiguration
from clauveo.services.process_bridge import (
    CompatibilityShellBridge,
    NativeProcessBridge,
    ProcessExitError,
    ProcessSpawnError,
    select_process_bridge,
)


class RecordingRunner:
    """Capture subprocess calls and return a canned result."""

    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"", error: Optional[BaseException] = None) -> None:
        self.calls: List[Dict[str, Any]] = []
        self._returncode = returncode
        self._stdout = stdout
        self._stderr = stderr
        self._error = error

    def __call__(self, command, **kwargs):
        self.calls.append({"command": list(command), **kwargs})
        if self._error is not None:
            raise self._error
        return subprocess.CompletedProcess(command, self._returncode, self._stdout, self._stderr)


def _configuration(**settings: Any) -> AssistantConfiguration:
    settings.setdefault("additional_search_paths", ["/opt/assistant/bin"])
    return AssistantConfiguration(environ={}, settings=settings)


def _native(runner: RecordingRunner, **settings: Any) -> NativeProcessBridge:
    return NativeProcessBridge(
        _configuration(**settings),
        runner=runner,
        base_environ={"PATH": os.pathsep.join(["/usr/bin", "/bin"])},
        which=lambda name, path=None: None,
    )


def test_send_builds_chat_command_with_attachments(tmp_path: Path) -> None:
    """The message is positional and each file gets its own --attach flag."""

    runner = RecordingRunner(stdout=b"All good")
    bridge = _native(runner)
    frames = [tmp_path / "frame_1.jpg", tmp_path / "frame_3.jpg"]

    reply = bridge.send("Fix this", frames, working_directory=tmp_path)

    assert reply == "All good"
    call = runner.calls[0]
    assert call["command"] == [
        "claude",
        "chat",
        "Fix this",
        "--attach",
        str(frames[0]),
        "--attach",
        str(frames[1]),
    ]
    assert call["cwd"] == str(tmp_path)
    assert "timeout" not in call


def test_search_paths_are_prepended_to_path() -> None:
    """Configured directories come first and existing entries are kept."""

    runner = RecordingRunner()
    bridge = _native(runner, additional_search_paths=["/opt/assistant/bin", "/usr/bin"])
    bridge.send("hi", [])

    path_entries = runner.calls[0]["env"]["PATH"].split(os.pathsep)
    assert path_entries == ["/opt/assistant/bin", "/usr/bin", "/bin"]


def test_binary_is_resolved_against_augmented_path() -> None:
    """The native bridge uses the binary found through the augmented PATH."""

    seen_paths: List[Optional[str]] = []

    def fake_which(name: str, path: Optional[str] = None) -> Optional[str]:
        seen_paths.append(path)
        return "/opt/assistant/bin/claude"

    runner = RecordingRunner()
    bridge = NativeProcessBridge(_configuration(), runner=runner, base_environ={"PATH": "/usr/bin"}, which=fake_which)
    bridge.send("hi", [])

    assert runner.calls[0]["command"][0] == "/opt/assistant/bin/claude"
    assert seen_paths[0].split(os.pathsep)[0] == "/opt/assistant/bin"


def test_non_zero_exit_raises_with_stderr_text() -> None:
    runner = RecordingRunner(returncode=2, stderr=b"rate limited")
    bridge = _native(runner)

    with pytest.raises(ProcessExitError) as excinfo:
        bridge.send("hi", [])

    assert excinfo.value.stderr == "rate limited"
    assert excinfo.value.returncode == 2
    assert "rate limited" in str(excinfo.value)


def test_invalid_utf8_output_is_replaced() -> None:
    """Undecodable bytes never make the call fail."""

    runner = RecordingRunner(stdout=b"ok \xff\xfe done")
    reply = _native(runner).send("hi", [])
    assert reply.startswith("ok ")
    assert "\ufffd" in reply


def test_missing_binary_raises_spawn_error_with_guidance() -> None:
    runner = RecordingRunner(error=FileNotFoundError(2, "No such file or directory"))

    with pytest.raises(ProcessSpawnError) as excinfo:
        _native(runner).send("hi", [])

    assert "installed" in str(excinfo.value)


def test_missing_project_path_is_reported_before_launch(tmp_path: Path) -> None:
    runner = RecordingRunner()
    with pytest.raises(ProcessSpawnError):
        _native(runner).send("hi", [], working_directory=tmp_path / "missing")
    assert runner.calls == []


@pytest.mark.parametrize(
    "runner",
    [
        RecordingRunner(error=FileNotFoundError(2, "missing")),
        RecordingRunner(error=subprocess.TimeoutExpired("claude", 10)),
        RecordingRunner(returncode=127),
    ],
)
def test_probe_returns_false_instead_of_raising(runner: RecordingRunner) -> None:
    assert _native(runner).is_available() is False


def test_probe_reports_missing_binary_with_real_subprocess(tmp_path: Path) -> None:
    """Nothing named like the binary exists on the search path, so the launch fails."""

    configuration = _configuration(
        binary_name="clauveo-assistant-that-does-not-exist",
        additional_search_paths=[str(tmp_path)],
    )
    bridge = NativeProcessBridge(configuration, base_environ={"PATH": str(tmp_path)})

    assert bridge.is_available() is False


def test_compatibility_shell_keeps_host_working_directory(tmp_path: Path) -> None:
    runner = RecordingRunner()
    bridge = CompatibilityShellBridge(_configuration(), runner=runner, base_environ={})

    bridge.send("hi", [], working_directory=tmp_path)

    assert runner.calls[0]["cwd"] == str(tmp_path)


def test_probe_uses_same_dispatch_as_send() -> None:
    """The --version probe goes through the compatibility shell too."""

    runner = RecordingRunner(stdout=b"1.0.0")
    bridge = CompatibilityShellBridge(_configuration(compatibility_shell=["wsl", "-e"]), runner=runner, base_environ={})

    assert bridge.is_available() is True
    call = runner.calls[0]
    assert call["command"] == ["wsl", "-e", "claude", "--version"]
    assert call["env"]["PATH"].split(os.pathsep)[0] == "/opt/assistant/bin"
    assert call["timeout"] == AssistantConfiguration.DEFAULT_PROBE_TIMEOUT_SECONDS


def test_compatibility_shell_translates_drive_paths() -> None:
    runner = RecordingRunner()
    bridge = CompatibilityShellBridge(_configuration(), runner=runner, base_environ={})

    bridge.send("hi", ["C:\\Users\\dev\\AppData\\Local\\Temp\\clauveo\\frame_1.jpg", "/tmp/frame_2.jpg"])

    assert runner.calls[0]["command"] == [
        "wsl",
        "claude",
        "chat",
        "hi",
        "--attach",
        "/mnt/c/Users/dev/AppData/Local/Temp/clauveo/frame_1.jpg",
        "--attach",
        "/tmp/frame_2.jpg",
    ]


@pytest.mark.parametrize(
    "mode, platform, expected",
    [
        ("auto", "win32", CompatibilityShellBridge),
        ("auto", "linux", NativeProcessBridge),
        ("auto", "darwin", NativeProcessBridge),
        ("native", "win32", NativeProcessBridge),
        ("compatibility_shell", "darwin", CompatibilityShellBridge),
    ],
)
def test_select_process_bridge_by_mode_and_platform(mode: str, platform: str, expected: type) -> None:
    bridge = select_process_bridge(_configuration(invocation_mode=mode), platform=platform)
    assert type(bridge) is expected

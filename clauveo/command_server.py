"""JSON-lines command loop used by the desktop front-end.

Each request is one line on stdin::

    {"id": 7, "op": "send_to_assistant", "args": {"message": "...", "frames": []}}

and each response is one line on stdout::

    {"id": 7, "ok": true, "result": "..."}
    {"id": 7, "ok": false, "error": "..."}

Requests run on a thread pool so a long assistant call never blocks status
queries. Responses may therefore arrive out of order; match them by ``id``.

Usage:
    python -m clauveo
    python -m clauveo --op status
    python -m clauveo --op send_to_assistant --args '{"message": "Why is this failing?"}'
"""

from __future__ import annotations

import argparse
from concurrent.futures import Future, ThreadPoolExecutor
import json
import logging
import sys
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TextIO, Tuple

from clauveo.config.assistant_config import AssistantConfiguration, AssistantConfigurationError
from clauveo.controllers.main_controller import MainController
from clauveo.controllers.recording_controller import RecordingController
from clauveo.dtos.recording_dto import RecordingSession, session_to_dict


logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any]], Tuple[Any, Optional[str]]]

DEFAULT_WORKERS = 4

# Command names used by earlier front-end builds.
OPERATION_ALIASES = {
    "start_recording_session": "start",
    "stop_recording_session": "stop",
    "get_recording_status": "status",
    "process_recording_metadata": "submit_metadata",
    "cleanup_recording_files": "cleanup",
    "send_to_claude_cli": "send_to_assistant",
    "check_claude_cli_installed": "check_assistant_available",
}


class CommandArgumentError(ValueError):
    """Raised when a request carries missing or mistyped arguments."""


def _string_arg(args: Mapping[str, Any], key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    value = args.get(key, default)
    if value is None:
        if required:
            raise CommandArgumentError(f"Missing argument '{key}'.")
        return None
    if not isinstance(value, str):
        raise CommandArgumentError(f"Argument '{key}' must be a string.")
    return value


def _string_list_arg(args: Mapping[str, Any], key: str) -> List[str]:
    value = args.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise CommandArgumentError(f"Argument '{key}' must be a list of strings.")
    return value


def _int_arg(args: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = args.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise CommandArgumentError(f"Argument '{key}' must be an integer.")
    return value


def _session_result(result: Tuple[Optional[RecordingSession], Optional[str]]) -> Tuple[Any, Optional[str]]:
    session, error = result
    return (session_to_dict(session) if session is not None else None), error


class CommandServer:
    """Dispatch front-end requests to the recording controller."""

    def __init__(
        self,
        controller: RecordingController,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
        max_workers: int = DEFAULT_WORKERS,
    ) -> None:
        """Store the controller and the streams used for the protocol."""

        self._controller = controller
        self._input = input_stream or sys.stdin
        self._output = output_stream or sys.stdout
        self._max_workers = max(1, max_workers)
        self._write_lock = threading.Lock()
        self._handlers: Dict[str, Handler] = {
            "start": lambda args: _session_result(controller.start()),
            "stop": lambda args: _session_result(controller.stop()),
            "status": lambda args: _session_result(controller.status()),
            "submit_metadata": lambda args: _session_result(controller.submit_metadata(args.get("metadata"))),
            "mark_error": lambda args: _session_result(
                controller.mark_error(_string_arg(args, "message", required=True))
            ),
            "cleanup": lambda args: controller.cleanup(_string_arg(args, "session_id", required=True)),
            "send_to_assistant": lambda args: controller.send_to_assistant(
                _string_arg(args, "message", default=""),
                _string_list_arg(args, "frames"),
                _string_arg(args, "transcript", default=""),
                _string_arg(args, "project_path"),
            ),
            "check_assistant_available": lambda args: (controller.check_assistant_available(), None),
            "analyze_recording": lambda args: _session_result(
                controller.analyze_recording(
                    _string_arg(args, "transcript", default=""),
                    _string_list_arg(args, "text_content"),
                    _int_arg(args, "frame_count"),
                )
            ),
            "send_session_to_assistant": lambda args: controller.send_session_to_assistant(
                _string_list_arg(args, "frames"),
                _string_arg(args, "project_path"),
            ),
            "follow_up_questions": lambda args: controller.follow_up_questions(),
        }

    @property
    def operations(self) -> List[str]:
        """Return the supported operation names."""

        return sorted(self._handlers)

    def handle(self, request: Any) -> Dict[str, Any]:
        """Run one request and return its response object."""

        if not isinstance(request, Mapping):
            return {"id": None, "ok": False, "error": "Requests must be JSON objects."}

        request_id = request.get("id")
        op = request.get("op")
        op = OPERATION_ALIASES.get(op, op) if isinstance(op, str) else op
        handler = self._handlers.get(op) if isinstance(op, str) else None
        if handler is None:
            return {"id": request_id, "ok": False, "error": f"Unknown operation: {request.get('op')!r}"}

        args = request.get("args") or {}
        if not isinstance(args, Mapping):
            return {"id": request_id, "ok": False, "error": "'args' must be a JSON object."}

        try:
            result, error = handler(args)
        except CommandArgumentError as exc:
            return {"id": request_id, "ok": False, "error": str(exc)}
        except Exception as exc:
            logger.exception("Unexpected failure while running '%s'", op)
            return {"id": request_id, "ok": False, "error": f"Unexpected error: {exc}"}

        if error is not None:
            return {"id": request_id, "ok": False, "error": error}
        return {"id": request_id, "ok": True, "result": result}

    def _write(self, response: Mapping[str, Any]) -> None:
        line = json.dumps(response, ensure_ascii=False)
        with self._write_lock:
            self._output.write(line + "\n")
            self._output.flush()

    def _process_line(self, line: str) -> None:
        try:
            request = json.loads(line)
        except json.JSONDecodeError as exc:
            self._write({"id": None, "ok": False, "error": f"Malformed request: {exc.msg}"})
            return
        self._write(self.handle(request))

    @staticmethod
    def _report_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Request could not be answered", exc_info=exc)

    def serve_forever(self) -> None:
        """Read requests until end of input, then wait for pending work."""

        logger.info("Command server listening on stdin with %d worker(s)", self._max_workers)
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="clauveo-cmd") as executor:
            for raw_line in self._input:
                line = raw_line.strip()
                if not line:
                    continue
                future = executor.submit(self._process_line, line)
                future.add_done_callback(self._report_failure)
        logger.info("Input closed, command server stopped")


def resolve_log_level(name: Optional[str]) -> Tuple[int, bool]:
    """Return the numeric level for ``name`` and whether the name was valid.

    Unknown names fall back to ``INFO``.
    """

    level = logging.getLevelName((name or "").strip().upper())
    if isinstance(level, int):
        return level, True
    return logging.INFO, False


def build_parser() -> argparse.ArgumentParser:
    """Return the command line parser for the entry point."""

    parser = argparse.ArgumentParser(description="Desktop bridge between recordings and the assistant CLI.")
    parser.add_argument("--config", help="Path to a YAML configuration file.")
    parser.add_argument("--log-level", help="Logging level (overrides the configuration).")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Concurrent request workers.")
    parser.add_argument("--op", help="Run a single operation and exit.")
    parser.add_argument("--args", default="{}", help="JSON arguments for --op.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for ``python -m clauveo``."""

    options = build_parser().parse_args(argv)

    try:
        configuration = AssistantConfiguration(config_path=options.config)
    except AssistantConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    level_name = options.log_level or configuration.get_log_level()
    level, known_level = resolve_log_level(level_name)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not known_level:
        logger.warning("Unknown log level %r, using INFO", level_name)

    controller = MainController(configuration)
    server = CommandServer(controller.recording, max_workers=options.workers)

    if options.op:
        try:
            args = json.loads(options.args)
        except json.JSONDecodeError as exc:
            print(f"Invalid --args JSON: {exc.msg}", file=sys.stderr)
            return 2
        response = server.handle({"id": None, "op": options.op, "args": args})
        print(json.dumps(response, ensure_ascii=False))
        return 0 if response["ok"] else 1

    server.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())

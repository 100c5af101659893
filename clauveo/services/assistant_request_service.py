"""Coordinate staging and the assistant CLI for a single request."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from pathlib import Path
import shutil
from typing import Iterator, Optional, Sequence
import uuid

from clauveo.services.payload_stager import PayloadStager
from clauveo.services.process_bridge import ProcessBridge
from clauveo.services.recording_prompt_builder import compose_assistant_message


logger = logging.getLogger(__name__)


class AssistantRequestService:
    """Stage frames, call the assistant and always remove the scratch folder.

    The service never touches the recording session; a failed request only
    surfaces as the exception raised to the caller.
    """

    SCRATCH_PREFIX = "request-"

    def __init__(
        self,
        bridge: ProcessBridge,
        scratch_root: Path,
        stager: Optional[PayloadStager] = None,
    ) -> None:
        """Store the collaborators used to fulfil assistant requests."""

        self._bridge = bridge
        self._scratch_root = scratch_root
        self._stager = stager or PayloadStager()

    def new_scratch_directory(self) -> Path:
        """Return a unique, not yet created, scratch directory path."""

        return self._scratch_root / f"{self.SCRATCH_PREFIX}{uuid.uuid4().hex}"

    @contextmanager
    def _scratch_directory(self) -> Iterator[Path]:
        """Yield a fresh scratch path and remove it on every exit path."""

        scratch_dir = self.new_scratch_directory()
        try:
            yield scratch_dir
        finally:
            try:
                shutil.rmtree(scratch_dir)
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning("Could not remove scratch directory %s: %s", scratch_dir, exc)

    def send_to_assistant(
        self,
        message: str,
        frames: Sequence[str],
        transcript: str = "",
        project_path: Optional[str] = None,
    ) -> str:
        """Send the message and staged frames to the assistant and return its reply."""

        with self._scratch_directory() as scratch_dir:
            attachments = self._stager.stage(frames, scratch_dir)
            composed = compose_assistant_message(message, transcript, len(attachments))
            working_directory = project_path if project_path and project_path.strip() else None
            return self._bridge.send(composed, attachments, working_directory)

    def is_assistant_available(self) -> bool:
        """Return whether the assistant CLI responds to the availability probe."""

        return self._bridge.is_available()

    def cleanup_session_files(self, session_id: str) -> bool:
        """Remove ``<scratch_root>/<session_id>`` when such a folder exists.

        Request scratch folders share the root, so ids carrying the request
        prefix are refused along with anything that looks like a path.
        """

        if not session_id or session_id in (".", "..") or Path(session_id).name != session_id:
            raise ValueError(f"Invalid session identifier: {session_id!r}")
        if session_id.startswith(self.SCRATCH_PREFIX):
            raise ValueError(f"'{session_id}' names an assistant request folder, not a session.")
        session_dir = self._scratch_root / session_id
        if not session_dir.is_dir():
            return False
        try:
            shutil.rmtree(session_dir)
        except OSError as exc:
            logger.warning("Could not remove files for session %s: %s", session_id, exc)
            return False
        return True


__all__ = ["AssistantRequestService"]

"""Controller exposing the recording and assistant commands to the front-end."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from clauveo.dtos.recording_dto import RecordingSession, RecordingState, metadata_to_dict
from clauveo.services.assistant_request_service import AssistantRequestService
from clauveo.services.payload_stager import PayloadStagerError
from clauveo.services.process_bridge import ProcessBridgeError
from clauveo.services.recording_prompt_builder import (
    build_contextual_prompt,
    build_follow_up_questions,
)
from clauveo.services.recording_session_service import (
    RecordingSessionService,
    RecordingSessionServiceError,
)
from clauveo.services.transcript_analysis_service import TranscriptAnalysisService


logger = logging.getLogger(__name__)

SessionResult = Tuple[Optional[RecordingSession], Optional[str]]


class RecordingController:
    """Translate service results into ``(value, error_message)`` pairs."""

    def __init__(
        self,
        session_service: RecordingSessionService,
        request_service: AssistantRequestService,
        analysis_service: Optional[TranscriptAnalysisService] = None,
        mark_session_error_on_failure: bool = False,
    ) -> None:
        """Store the services used by the command surface."""

        self._session_service = session_service
        self._request_service = request_service
        self._analysis_service = analysis_service or TranscriptAnalysisService()
        self._mark_session_error_on_failure = mark_session_error_on_failure

    def start(self) -> SessionResult:
        """Begin recording."""

        try:
            return self._session_service.start(), None
        except RecordingSessionServiceError as exc:
            return None, str(exc)

    def stop(self) -> SessionResult:
        """Stop recording and wait for metadata."""

        try:
            return self._session_service.stop(), None
        except RecordingSessionServiceError as exc:
            return None, str(exc)

    def status(self) -> SessionResult:
        """Return the current session snapshot."""

        try:
            return self._session_service.status(), None
        except RecordingSessionServiceError as exc:
            return None, str(exc)

    def submit_metadata(self, raw: Any) -> SessionResult:
        """Attach metadata produced by the analysis step."""

        try:
            return self._session_service.submit_metadata(raw), None
        except RecordingSessionServiceError as exc:
            return None, str(exc)

    def mark_error(self, message: str) -> SessionResult:
        """Flag the session as failed with the provided message."""

        try:
            return self._session_service.mark_error(message), None
        except RecordingSessionServiceError as exc:
            return None, str(exc)

    def cleanup(self, session_id: str) -> Tuple[Optional[str], Optional[str]]:
        """Remove leftover files for a session and acknowledge the request."""

        try:
            removed = self._request_service.cleanup_session_files(session_id)
        except ValueError as exc:
            return None, str(exc)
        if removed:
            logger.info("Removed files for session %s", session_id)
        return f"Cleaned up files for session: {session_id}", None

    def send_to_assistant(
        self,
        message: str,
        frames: Sequence[str],
        transcript: str = "",
        project_path: Optional[str] = None,
    ) -> Tuple[Optional[str], Optional[str]]:
        """Forward the request to the assistant CLI and return its reply."""

        try:
            reply = self._request_service.send_to_assistant(message, frames, transcript, project_path)
        except (PayloadStagerError, ProcessBridgeError) as exc:
            return None, str(exc)
        return reply, None

    def check_assistant_available(self) -> bool:
        """Return whether the assistant CLI can be launched."""

        return self._request_service.is_assistant_available()

    def analyze_recording(
        self,
        transcript: str,
        text_content: Sequence[str] = (),
        frame_count: int = 0,
    ) -> SessionResult:
        """Derive metadata for the current session and submit it."""

        session, error = self.status()
        if session is None:
            return None, error
        metadata = self._analysis_service.analyze(
            session.id,
            transcript or "",
            list(text_content or ()),
            frame_count,
            session.duration or 0,
        )
        return self.submit_metadata(metadata_to_dict(metadata))

    def send_session_to_assistant(
        self,
        frames: Sequence[str],
        project_path: Optional[str] = None,
    ) -> Tuple[Optional[str], Optional[str]]:
        """Send the contextual prompt built from the completed session."""

        session, error = self.status()
        if session is None:
            return None, error
        if session.metadata is None:
            return None, "There is no analysed recording to send. Finish a recording first."
        prompt = build_contextual_prompt(session.metadata)
        reply, error = self.send_to_assistant(prompt, frames, "", project_path)
        if error is not None and self._mark_session_error_on_failure:
            self._mark_completed_session_failed(error)
        return reply, error

    def _mark_completed_session_failed(self, message: str) -> None:
        try:
            self._session_service.mark_error(message, expected_state=RecordingState.COMPLETED)
        except RecordingSessionServiceError as exc:
            logger.warning("Could not mark the session as failed: %s", exc)

    def follow_up_questions(self) -> Tuple[List[str], Optional[str]]:
        """Return clarifying questions for the completed session."""

        session, error = self.status()
        if session is None:
            return [], error
        if session.metadata is None:
            return [], None
        return build_follow_up_questions(session.metadata), None

"""Business logic for the single recording session lifecycle."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
import logging
import threading
from typing import Any, Callable, Iterator, Optional

from clauveo.dtos.recording_dto import (
    RecordingSession,
    RecordingState,
    RecordingStatus,
    recording_metadata_from_dict,
)


logger = logging.getLogger(__name__)


class RecordingSessionServiceError(RuntimeError):
    """Raised when a session-level operation cannot be completed."""


class LockUnavailableError(RecordingSessionServiceError):
    """Raised when exclusive access to the session cannot be obtained."""


class MetadataParseError(RecordingSessionServiceError):
    """Raised when the submitted metadata does not match the expected shape."""


class RecordingSessionService:
    """Guard the recording session and expose its state transitions.

    Every operation holds a non-reentrant lock for its whole duration and
    returns an independent snapshot, so concurrent readers observe either the
    state before or after a transition.
    """

    DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0

    def __init__(
        self,
        session: Optional[RecordingSession] = None,
        lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Store the initial session and the lock guarding it."""

        self._session = session or RecordingSession()
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout_seconds
        self._clock = clock or self._utcnow

    @staticmethod
    def _utcnow() -> datetime:
        """Return the current UTC timestamp."""

        return datetime.now(timezone.utc)

    @contextmanager
    def _exclusive(self) -> Iterator[RecordingSession]:
        """Hold the session lock, failing if it is not released in time."""

        if not self._lock.acquire(timeout=self._lock_timeout):
            logger.error(
                "Session lock was not released within %.1f seconds", self._lock_timeout
            )
            raise LockUnavailableError(
                "The recording session is unavailable. Restart the application to recover."
            )
        try:
            yield self._session
        finally:
            self._lock.release()

    def _snapshot(self) -> RecordingSession:
        return replace(self._session)

    def start(self) -> RecordingSession:
        """Move the session to ``Recording`` and stamp the start time."""

        with self._exclusive() as session:
            session.status = RecordingStatus.recording()
            session.start_time = self._clock()
            session.duration = None
            session.metadata = None
            logger.info("Recording session %s started", session.id)
            return self._snapshot()

    def stop(self) -> RecordingSession:
        """Move the session to ``Processing`` and record the elapsed seconds."""

        with self._exclusive() as session:
            session.status = RecordingStatus.processing()
            session.metadata = None
            if session.start_time is not None:
                elapsed = (self._clock() - session.start_time).total_seconds()
                session.duration = max(0, int(elapsed))
            logger.info("Recording session %s stopped after %s seconds", session.id, session.duration)
            return self._snapshot()

    def submit_metadata(self, raw: Any) -> RecordingSession:
        """Attach the analysis metadata and mark the session ``Completed``.

        The session is left untouched when ``raw`` cannot be parsed.
        """

        with self._exclusive() as session:
            try:
                metadata = recording_metadata_from_dict(raw)
            except (TypeError, ValueError) as exc:
                logger.warning("Rejected metadata for session %s: %s", session.id, exc)
                raise MetadataParseError(f"Failed to parse metadata: {exc}") from exc
            session.metadata = metadata
            session.status = RecordingStatus.completed()
            return self._snapshot()

    def mark_error(
        self,
        message: str,
        expected_state: Optional[RecordingState] = None,
    ) -> RecordingSession:
        """Move the session to ``Error`` with a user-displayable message.

        With ``expected_state`` the transition only happens while the session
        is still in that state; otherwise the snapshot is returned unchanged.
        """

        with self._exclusive() as session:
            if expected_state is not None and session.status.state is not expected_state:
                logger.info(
                    "Recording session %s left %s, not marking it as failed",
                    session.id,
                    expected_state.value,
                )
                return self._snapshot()
            session.status = RecordingStatus.error(message)
            session.metadata = None
            logger.info("Recording session %s marked as failed: %s", session.id, message)
            return self._snapshot()

    def status(self) -> RecordingSession:
        """Return a snapshot of the current session."""

        with self._exclusive():
            return self._snapshot()

"""Package for the recording session data transfer objects."""

from clauveo.dtos.recording_dto import (
    RecordingMetadata,
    RecordingSession,
    RecordingState,
    RecordingStatus,
    TechnicalContext,
    UiElement,
    UserContext,
    VisualContext,
)

__all__ = [
    "RecordingMetadata",
    "RecordingSession",
    "RecordingState",
    "RecordingStatus",
    "TechnicalContext",
    "UiElement",
    "UserContext",
    "VisualContext",
]

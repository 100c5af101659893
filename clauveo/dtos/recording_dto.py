"""Data transfer objects for recording sessions and their analysis metadata."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union


class RecordingState(str, Enum):
    """Lifecycle states of a recording session."""

    IDLE = "Idle"
    RECORDING = "Recording"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    ERROR = "Error"


@dataclass(frozen=True)
class RecordingStatus:
    """Represent a lifecycle state, carrying a message for ``Error``."""

    state: RecordingState
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "RecordingStatus":
        return cls(RecordingState.IDLE)

    @classmethod
    def recording(cls) -> "RecordingStatus":
        return cls(RecordingState.RECORDING)

    @classmethod
    def processing(cls) -> "RecordingStatus":
        return cls(RecordingState.PROCESSING)

    @classmethod
    def completed(cls) -> "RecordingStatus":
        return cls(RecordingState.COMPLETED)

    @classmethod
    def error(cls, message: str) -> "RecordingStatus":
        return cls(RecordingState.ERROR, message)

    def to_wire(self) -> Union[str, Dict[str, str]]:
        """Return ``"Idle"``-style names, or ``{"Error": message}``."""

        if self.state is RecordingState.ERROR:
            return {RecordingState.ERROR.value: self.message or ""}
        return self.state.value


@dataclass(frozen=True)
class UiElement:
    """Represent an interactive element detected in a frame."""

    element_type: str
    text: str
    state: str
    timestamp: float


@dataclass(frozen=True)
class UserContext:
    """Describe what the user said during the recording."""

    transcript: str
    intent_keywords: Tuple[str, ...]
    user_emotion: str
    request_type: str


@dataclass(frozen=True)
class VisualContext:
    """Describe what was visible on screen during the recording."""

    frames_analyzed: int
    ui_elements_detected: Tuple[UiElement, ...]
    color_palette: Tuple[str, ...]
    layout_analysis: str
    text_content: Tuple[str, ...]


@dataclass(frozen=True)
class TechnicalContext:
    """Describe the technical hints derived from the recording."""

    detected_framework: str
    error_patterns: Tuple[str, ...]
    suggested_focus: Tuple[str, ...]


@dataclass(frozen=True)
class RecordingMetadata:
    """Aggregate the analysis produced for a finished recording."""

    session_id: str
    timestamp: str
    duration_seconds: int
    user_context: UserContext
    visual_context: VisualContext
    technical_context: TechnicalContext


@dataclass
class RecordingSession:
    """Represent the single recording session tracked by the application."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: RecordingStatus = field(default_factory=RecordingStatus.idle)
    start_time: Optional[datetime] = None
    duration: Optional[int] = None
    metadata: Optional[RecordingMetadata] = None


def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise ValueError(f"missing field `{key}`")
    return payload[key]


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = _require(payload, key)
    if not isinstance(value, str):
        raise TypeError(f"field `{key}` must be a string")
    return value


def _require_count(payload: Mapping[str, Any], key: str) -> int:
    value = _require(payload, key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise TypeError(f"field `{key}` must be a non-negative integer")
    return value


def _require_number(payload: Mapping[str, Any], key: str) -> float:
    value = _require(payload, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"field `{key}` must be a number")
    return float(value)


def _require_str_list(payload: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = _require(payload, key)
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise TypeError(f"field `{key}` must be a list of strings")
    return tuple(value)


def _require_mapping(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = _require(payload, key)
    if not isinstance(value, Mapping):
        raise TypeError(f"field `{key}` must be an object")
    return value


def ui_element_from_dict(payload: Mapping[str, Any]) -> UiElement:
    """Create a UI element, accepting the front-end ``type`` alias."""

    if not isinstance(payload, Mapping):
        raise TypeError("UI elements must be objects")
    type_key = "element_type" if "element_type" in payload else "type"
    return UiElement(
        element_type=_require_str(payload, type_key),
        text=_require_str(payload, "text"),
        state=_require_str(payload, "state"),
        timestamp=_require_number(payload, "timestamp"),
    )


def recording_metadata_from_dict(payload: Union[Mapping[str, Any], str, bytes]) -> RecordingMetadata:
    """Create metadata from the structured value sent by the front-end.

    Raises ``ValueError`` or ``TypeError`` when a field is missing or has the
    wrong type. A JSON document is decoded before validation.
    """

    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    if not isinstance(payload, Mapping):
        raise TypeError("metadata must be an object")

    user = _require_mapping(payload, "user_context")
    visual = _require_mapping(payload, "visual_context")
    technical = _require_mapping(payload, "technical_context")

    raw_elements = _require(visual, "ui_elements_detected")
    if not isinstance(raw_elements, (list, tuple)):
        raise TypeError("field `ui_elements_detected` must be a list")

    return RecordingMetadata(
        session_id=_require_str(payload, "session_id"),
        timestamp=_require_str(payload, "timestamp"),
        duration_seconds=_require_count(payload, "duration_seconds"),
        user_context=UserContext(
            transcript=_require_str(user, "transcript"),
            intent_keywords=_require_str_list(user, "intent_keywords"),
            user_emotion=_require_str(user, "user_emotion"),
            request_type=_require_str(user, "request_type"),
        ),
        visual_context=VisualContext(
            frames_analyzed=_require_count(visual, "frames_analyzed"),
            ui_elements_detected=tuple(ui_element_from_dict(item) for item in raw_elements),
            color_palette=_require_str_list(visual, "color_palette"),
            layout_analysis=_require_str(visual, "layout_analysis"),
            text_content=_require_str_list(visual, "text_content"),
        ),
        technical_context=TechnicalContext(
            detected_framework=_require_str(technical, "detected_framework"),
            error_patterns=_require_str_list(technical, "error_patterns"),
            suggested_focus=_require_str_list(technical, "suggested_focus"),
        ),
    )


def metadata_to_dict(metadata: RecordingMetadata) -> Dict[str, Any]:
    """Serialize metadata using the keys expected by the front-end."""

    user = metadata.user_context
    visual = metadata.visual_context
    technical = metadata.technical_context
    return {
        "session_id": metadata.session_id,
        "timestamp": metadata.timestamp,
        "duration_seconds": metadata.duration_seconds,
        "user_context": {
            "transcript": user.transcript,
            "intent_keywords": list(user.intent_keywords),
            "user_emotion": user.user_emotion,
            "request_type": user.request_type,
        },
        "visual_context": {
            "frames_analyzed": visual.frames_analyzed,
            "ui_elements_detected": [
                {
                    "element_type": element.element_type,
                    "text": element.text,
                    "state": element.state,
                    "timestamp": element.timestamp,
                }
                for element in visual.ui_elements_detected
            ],
            "color_palette": list(visual.color_palette),
            "layout_analysis": visual.layout_analysis,
            "text_content": list(visual.text_content),
        },
        "technical_context": {
            "detected_framework": technical.detected_framework,
            "error_patterns": list(technical.error_patterns),
            "suggested_focus": list(technical.suggested_focus),
        },
    }


def session_to_dict(session: RecordingSession) -> Dict[str, Any]:
    """Serialize a session snapshot for the front-end."""

    return {
        "id": session.id,
        "status": session.status.to_wire(),
        "start_time": session.start_time.isoformat() if session.start_time else None,
        "duration": session.duration,
        "metadata": metadata_to_dict(session.metadata) if session.metadata else None,
    }

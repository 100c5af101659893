"""Keyword analysis that derives recording metadata from plain text.

Only keyword rules over the transcript and the on-screen text supplied by the
front-end are applied; frames themselves are never inspected.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Callable, List, Optional, Sequence

from clauveo.dtos.recording_dto import (
    RecordingMetadata,
    TechnicalContext,
    UiElement,
    UserContext,
    VisualContext,
)


INTENT_KEYWORDS_PATTERN = re.compile(
    r"\b(bug|error|fix|issue|problem|feature|enhancement|add|create|update|delete|improve)\b"
)
EMOTION_PATTERNS = (
    ("frustrated", re.compile(r"\b(frustrated|annoyed|stuck|broken|not working|failing)\b", re.IGNORECASE)),
    ("excited", re.compile(r"\b(excited|great|awesome|love|amazing)\b", re.IGNORECASE)),
    ("confused", re.compile(r"\b(confused|unclear|don't understand|not sure)\b", re.IGNORECASE)),
)
REQUEST_TYPE_PATTERNS = (
    ("bug_fix", re.compile(r"\b(bug|error|issue|problem|fix|broken|not working)\b", re.IGNORECASE)),
    ("feature_request", re.compile(r"\b(feature|add|create|new|enhancement|improve)\b", re.IGNORECASE)),
    ("refactoring", re.compile(r"\b(refactor|optimize|clean|better)\b", re.IGNORECASE)),
    ("question", re.compile(r"\b(question|help|how|what|why)\b", re.IGNORECASE)),
)
FRAMEWORK_MARKERS = (
    ("react", ("react", "jsx")),
    ("vue", ("vue", "vuejs")),
    ("angular", ("angular",)),
    ("svelte", ("svelte",)),
    ("nextjs", ("next", "nextjs")),
)
ERROR_PATTERN_MARKERS = (
    ("undefined_null_reference", ("undefined", "null")),
    ("missing_resource", ("404", "not found")),
    ("validation_error", ("validation", "required")),
    ("authentication_issue", ("login", "authentication")),
    ("cors_issue", ("cors", "cross-origin")),
)
UI_ELEMENT_MARKERS = (
    ("button", "clickable", ("button", "click")),
    ("error_message", "visible", ("error", "warning")),
    ("form", "editable", ("form", "input")),
)
DEFAULT_COLOR_PALETTE = ("#ffffff", "#000000", "#007bff", "#28a745", "#dc3545", "#ffc107")
DEFAULT_LAYOUT = "web_application"


class TranscriptAnalysisService:
    """Build ``RecordingMetadata`` with simple keyword heuristics."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def extract_keywords(transcript: str) -> List[str]:
        """Return the distinct intent keywords in order of first appearance."""

        seen: List[str] = []
        for match in INTENT_KEYWORDS_PATTERN.findall(transcript.lower()):
            if match not in seen:
                seen.append(match)
        return seen

    @staticmethod
    def classify_emotion(transcript: str) -> str:
        for emotion, pattern in EMOTION_PATTERNS:
            if pattern.search(transcript):
                return emotion
        return "neutral"

    @staticmethod
    def classify_request(transcript: str) -> str:
        for request_type, pattern in REQUEST_TYPE_PATTERNS:
            if pattern.search(transcript):
                return request_type
        return "general"

    @staticmethod
    def detect_ui_elements(text_lines: Sequence[str]) -> List[UiElement]:
        """Return one element per marker hit, using the line index as seconds."""

        elements: List[UiElement] = []
        for index, line in enumerate(text_lines):
            words = line.lower().split()
            for element_type, state, markers in UI_ELEMENT_MARKERS:
                if any(marker in words for marker in markers):
                    elements.append(UiElement(element_type, line, state, float(index)))
        return elements

    @staticmethod
    def detect_framework(text_lines: Sequence[str]) -> str:
        combined = " ".join(text_lines).lower()
        for framework, markers in FRAMEWORK_MARKERS:
            if any(marker in combined for marker in markers):
                return framework
        return "unknown"

    @staticmethod
    def detect_error_patterns(text_lines: Sequence[str], transcript: str) -> List[str]:
        combined = " ".join([*text_lines, transcript]).lower()
        return [name for name, markers in ERROR_PATTERN_MARKERS if any(marker in combined for marker in markers)]

    @staticmethod
    def suggest_focus(elements: Sequence[UiElement], transcript: str) -> List[str]:
        focus: List[str] = []
        element_types = {element.element_type for element in elements}
        if "form" in element_types:
            focus.append("form_handling")
        if "button" in element_types:
            focus.append("event_handling")
        if "error_message" in element_types:
            focus.append("error_handling")
        lowered = transcript.lower()
        if "api" in lowered:
            focus.append("api_integration")
        if "style" in lowered or "css" in lowered:
            focus.append("styling")
        return focus

    @staticmethod
    def collect_text_content(text_lines: Sequence[str]) -> List[str]:
        """Return distinct words longer than two characters."""

        words: List[str] = []
        for line in text_lines:
            for word in line.split():
                if len(word) > 2 and word not in words:
                    words.append(word)
        return words

    def analyze(
        self,
        session_id: str,
        transcript: str,
        text_lines: Sequence[str] = (),
        frame_count: int = 0,
        duration_seconds: int = 0,
    ) -> RecordingMetadata:
        """Return metadata for a finished recording."""

        elements = self.detect_ui_elements(text_lines)
        return RecordingMetadata(
            session_id=session_id,
            timestamp=self._clock().isoformat(),
            duration_seconds=max(0, int(duration_seconds)),
            user_context=UserContext(
                transcript=transcript,
                intent_keywords=tuple(self.extract_keywords(transcript)),
                user_emotion=self.classify_emotion(transcript),
                request_type=self.classify_request(transcript),
            ),
            visual_context=VisualContext(
                frames_analyzed=max(0, int(frame_count)),
                ui_elements_detected=tuple(elements),
                color_palette=DEFAULT_COLOR_PALETTE,
                layout_analysis=DEFAULT_LAYOUT,
                text_content=tuple(self.collect_text_content(text_lines)),
            ),
            technical_context=TechnicalContext(
                detected_framework=self.detect_framework(text_lines),
                error_patterns=tuple(self.detect_error_patterns(text_lines, transcript)),
                suggested_focus=tuple(self.suggest_focus(elements, transcript)),
            ),
        )


__all__ = ["TranscriptAnalysisService"]

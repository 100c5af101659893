"""Tests for the keyword based recording analysis."""

from datetime import datetime, timezone
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[2]))

from clauveo.services.transcript_analysis_service import TranscriptAnalysisService


FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _service() -> TranscriptAnalysisService:
    return TranscriptAnalysisService(clock=lambda: FIXED_TIME)


def test_bug_report_transcript_is_classified() -> None:
    """A frustrated bug report yields bug_fix with the matching keywords."""

    metadata = _service().analyze(
        "session-9",
        "I'm stuck, the login form has a bug and the API call returns an error",
        ["Login button", "Error - user is undefined", "React DevTools"],
        frame_count=3,
        duration_seconds=20,
    )

    user = metadata.user_context
    assert user.intent_keywords == ("bug", "error")
    assert user.user_emotion == "frustrated"
    assert user.request_type == "bug_fix"

    technical = metadata.technical_context
    assert technical.detected_framework == "react"
    assert "undefined_null_reference" in technical.error_patterns
    assert "authentication_issue" in technical.error_patterns
    assert technical.suggested_focus == ("event_handling", "error_handling", "api_integration")

    assert metadata.session_id == "session-9"
    assert metadata.timestamp == FIXED_TIME.isoformat()
    assert metadata.visual_context.frames_analyzed == 3


def test_ui_elements_keep_line_order_and_offsets() -> None:
    elements = TranscriptAnalysisService.detect_ui_elements(["click the button", "fill the form input"])

    assert [(element.element_type, element.timestamp) for element in elements] == [
        ("button", 0.0),
        ("form", 1.0),
    ]


def test_neutral_general_request_without_screen_text() -> None:
    metadata = _service().analyze("s", "Just recording my screen")

    assert metadata.user_context.user_emotion == "neutral"
    assert metadata.user_context.request_type == "general"
    assert metadata.technical_context.detected_framework == "unknown"
    assert metadata.visual_context.ui_elements_detected == ()
    assert metadata.visual_context.layout_analysis == "web_application"


def test_text_content_keeps_distinct_longer_words() -> None:
    words = TranscriptAnalysisService.collect_text_content(["Save to db", "Save changes"])
    assert words == ["Save", "changes"]

"""Utilities to assemble the messages sent to the assistant CLI."""

from __future__ import annotations

from typing import List

from clauveo.dtos.recording_dto import RecordingMetadata


MAX_TEXT_CONTENT_ITEMS = 10

_REQUEST_TYPE_SECTIONS = {
    "bug_fix": (
        "## Bug Fix Context\n"
        "The user has identified a bug in their application. Focus on:\n"
        "- Debugging strategies\n"
        "- Common causes of this type of issue\n"
        "- Step-by-step troubleshooting\n"
        "- Code fixes with explanations\n"
        "- Testing to ensure the fix works"
    ),
    "feature_request": (
        "## Feature Request Context\n"
        "The user wants to add new functionality. Focus on:\n"
        "- Implementation approach\n"
        "- Best practices for this type of feature\n"
        "- Code structure and organization\n"
        "- Integration with existing code\n"
        "- User experience considerations"
    ),
    "refactoring": (
        "## Refactoring Context\n"
        "The user wants to improve existing code. Focus on:\n"
        "- Code quality improvements\n"
        "- Performance optimizations\n"
        "- Maintainability enhancements\n"
        "- Migration strategies"
    ),
    "question": (
        "## Question Context\n"
        "The user needs explanation or guidance. Focus on:\n"
        "- Clear explanations\n"
        "- Code examples\n"
        "- Step-by-step instructions"
    ),
}

_FRUSTRATED_TONE_SECTION = (
    "## Tone Adjustment\n"
    "The user seems frustrated. Please:\n"
    "- Be extra clear and patient in explanations\n"
    "- Provide step-by-step guidance\n"
    "- Offer multiple solution approaches\n"
    "- Include debugging tips"
)


def compose_assistant_message(message: str, transcript: str, screenshot_count: int) -> str:
    """Combine the user message, the quoted transcript and the screenshot count."""

    noun = "screenshot" if screenshot_count == 1 else "screenshots"
    parts = []
    if message and message.strip():
        parts.append(message.strip())
    if transcript and transcript.strip():
        parts.append(
            f'The user said: "{transcript.strip()}". '
            f"I've attached {screenshot_count} {noun} from the screen recording."
        )
    else:
        parts.append(f"I've attached {screenshot_count} {noun} from the screen recording.")
    return "\n\n".join(parts)


def build_recording_prompt(metadata: RecordingMetadata) -> str:
    """Create the base analysis prompt from the recording metadata."""

    user = metadata.user_context
    visual = metadata.visual_context
    technical = metadata.technical_context

    elements = ", ".join(f'{element.element_type}: "{element.text}"' for element in visual.ui_elements_detected)
    text_content = ", ".join(visual.text_content[:MAX_TEXT_CONTENT_ITEMS])
    focus = ", ".join(technical.suggested_focus)

    context = (
        "## Context\n"
        f"- **Recording Duration**: {metadata.duration_seconds} seconds\n"
        f'- **User Said**: "{user.transcript}"\n'
        f"- **Request Type**: {user.request_type}\n"
        f"- **User Emotion**: {user.user_emotion}\n"
        f"- **Detected Framework**: {technical.detected_framework}"
    )
    visual_section = (
        "## Visual Analysis\n"
        f"- **Frames Analyzed**: {visual.frames_analyzed}\n"
        f"- **UI Elements Detected**: {elements}\n"
        f"- **Text Content**: {text_content}\n"
        f"- **Layout**: {visual.layout_analysis}"
    )
    technical_section = (
        "## Technical Context\n"
        f"- **Error Patterns**: {', '.join(technical.error_patterns)}\n"
        f"- **Suggested Focus**: {focus}\n"
        f"- **Keywords**: {', '.join(user.intent_keywords)}"
    )
    task = (
        "## Your Task\n"
        "Based on this analysis, provide:\n\n"
        "1. **Issue Analysis**: What is the likely problem or request?\n"
        "2. **Root Cause**: What's causing this issue?\n"
        "3. **Solution**: Step-by-step solution approach\n"
        "4. **Code Examples**: Specific code fixes or implementations\n"
        "5. **Prevention**: How to avoid this issue in the future\n"
        "6. **Testing**: How to test the solution\n\n"
        "Format your response in markdown with clear sections and code blocks."
    )

    header = "You are a senior developer helping to analyze a screen recording and provide code solutions."
    return "\n\n".join([header, context, visual_section, technical_section, task])


def build_contextual_prompt(metadata: RecordingMetadata) -> str:
    """Extend the base prompt with request-type guidance and tone hints."""

    sections = [build_recording_prompt(metadata)]
    request_section = _REQUEST_TYPE_SECTIONS.get(metadata.user_context.request_type)
    if request_section:
        sections.append(request_section)
    if metadata.user_context.user_emotion == "frustrated":
        sections.append(_FRUSTRATED_TONE_SECTION)
    return "\n\n".join(sections)


def build_follow_up_questions(metadata: RecordingMetadata) -> List[str]:
    """Return clarifying questions the front-end may offer to the user."""

    questions: List[str] = []
    technical = metadata.technical_context
    if technical.detected_framework == "unknown":
        questions.append("What framework or technology stack are you using?")
    if metadata.user_context.request_type == "bug_fix":
        questions.append("What error messages do you see in the console?")
        questions.append("When did this issue first appear?")
    if "api_integration" in technical.suggested_focus:
        questions.append("What API endpoint are you trying to access?")
        questions.append("Are you seeing any network errors in the developer tools?")
    return questions


__all__ = [
    "build_contextual_prompt",
    "build_follow_up_questions",
    "build_recording_prompt",
    "compose_assistant_message",
]

# ABOUTME: Builds one structured-generation request per task: instruction text, response schema, tools, thinking budget.
# ABOUTME: Pure; TASK_SCHEMAS declares every field the orchestrator reads as required.

from dataclasses import dataclass
from enum import Enum

from google.genai import types

from core.config import (
    EXPLANATION_MAX_CHARS,
    MAX_PROMPT_LENGTH,
    PLAN_DAYS,
    PLAN_MODEL,
    REPORT_MODEL,
    REPORT_THINKING_BUDGET,
    STATUS_MODEL,
)
from core.schemas import CATEGORIES_BY_SECTION, Category, Section


class GenerationTask(str, Enum):
    RESEARCH_REPORT = "research_report"
    SUSTAINABILITY_PLAN = "sustainability_plan"
    PLANETARY_STATUS = "planetary_status"
    SPEECH_SYNTHESIS = "speech_synthesis"
    IMAGE_SYNTHESIS = "image_synthesis"


def _string() -> types.Schema:
    return types.Schema(type=types.Type.STRING)


def _string_list() -> types.Schema:
    return types.Schema(type=types.Type.ARRAY, items=_string())


REPORT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "topic": _string(),
        "summary": _string(),
        "introduction": _string(),
        "explanation": _string(),
        "background": _string(),
        "causes": _string_list(),
        "impacts": _string_list(),
        "solutions": _string_list(),
        "examples": _string_list(),
        "preventionTips": _string_list(),
        "conclusion": _string(),
        "visualPrompt": _string(),
        "category": types.Schema(
            type=types.Type.STRING, enum=[c.value for c in Category]
        ),
        "section": types.Schema(
            type=types.Type.STRING, enum=[s.value for s in Section]
        ),
    },
    required=[
        "topic",
        "summary",
        "introduction",
        "explanation",
        "background",
        "causes",
        "impacts",
        "solutions",
        "examples",
        "preventionTips",
        "conclusion",
        "visualPrompt",
        "category",
        "section",
    ],
)

PLAN_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": _string(),
        "days": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "day": types.Schema(type=types.Type.INTEGER),
                    "task": _string(),
                    "impact": _string(),
                },
                required=["day", "task", "impact"],
            ),
        ),
    },
    required=["title", "days"],
)

STATUS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "localTemp": _string(),
        "localCondition": _string(),
        "globalAvgTemp": _string(),
        "news": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "title": _string(),
                    "description": _string(),
                    "url": _string(),
                },
            ),
        ),
    },
    required=["localTemp", "localCondition", "globalAvgTemp", "news"],
)

TASK_SCHEMAS: dict[GenerationTask, types.Schema] = {
    GenerationTask.RESEARCH_REPORT: REPORT_SCHEMA,
    GenerationTask.SUSTAINABILITY_PLAN: PLAN_SCHEMA,
    GenerationTask.PLANETARY_STATUS: STATUS_SCHEMA,
}

REPORT_INSTRUCTION = """Act as a world-class environmental scientist. Analyze the following environmental problem: "{prompt}" in the context of "{section}" (category "{category}").

Use Google Search to find current scientific data and statistics.

Response requirements in {language}:
1. Topic: Professional title.
2. Summary: Simple 2-sentence overview.
3. Introduction: 2-3 paragraph overview.
4. Explanation: Provide a deep technical analysis. IMPORTANT: Keep this field under {max_chars} characters to ensure the JSON remains valid and fits within the response window.
5. Background: Context and history.
6. Causes: Primary drivers.
7. Impacts: Biological and societal impacts.
8. Solutions: Practical remediation steps.
9. Examples: Global case studies.
10. Prevention Tips: Long-term strategies.
11. Conclusion: Future outlook.
12. Visual Prompt: Detailed ENGLISH prompt for a scientific diagram.

CRITICAL: Ensure the response is VALID JSON. Do not let strings exceed {max_chars} characters."""

PLAN_INSTRUCTION = """Create a personalized {days}-day sustainability plan for: "{goal}". Language: {language}. Return JSON.
Number the days 1 to {days}; each day has one concrete task and a short note on its environmental impact."""

STATUS_INSTRUCTION = """Fetch current planetary status and environmental news. Coordinates: {latitude},{longitude}. Return JSON in {language}."""


@dataclass(frozen=True)
class GenerationRequest:
    """Everything needed for one structured generate_content call."""

    task: GenerationTask
    model: str
    instruction: str
    output_schema: types.Schema
    grounded: bool = False
    thinking_budget: int | None = None

    def to_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=self.output_schema,
            tools=[types.Tool(google_search=types.GoogleSearch())] if self.grounded else None,
            thinking_config=(
                types.ThinkingConfig(thinking_budget=self.thinking_budget)
                if self.thinking_budget is not None
                else None
            ),
        )


def sanitize_prompt_text(raw: str | None) -> str:
    """Truncate to MAX_PROMPT_LENGTH, drop null bytes and escape double quotes so text stays inside its quoted slot. Non-str input becomes ''."""
    if not isinstance(raw, str):
        return ""
    bounded = raw[:MAX_PROMPT_LENGTH]
    return bounded.replace("\x00", "").replace('"', '\\"').strip()


def _section_value(section) -> str:
    return section.value if isinstance(section, Section) else str(section)


def _category_value(section) -> str:
    """Category label paired with a section; unknown sections fall back to the section text."""
    try:
        return CATEGORIES_BY_SECTION[Section(_section_value(section))].value
    except ValueError:
        return _section_value(section)


def build_report_request(prompt: str, section, language: str) -> GenerationRequest:
    return GenerationRequest(
        task=GenerationTask.RESEARCH_REPORT,
        model=REPORT_MODEL,
        instruction=REPORT_INSTRUCTION.format(
            prompt=sanitize_prompt_text(prompt),
            section=_section_value(section),
            category=_category_value(section),
            language=language,
            max_chars=EXPLANATION_MAX_CHARS,
        ),
        output_schema=REPORT_SCHEMA,
        grounded=True,
        thinking_budget=REPORT_THINKING_BUDGET,
    )


def build_plan_request(goal: str, language: str) -> GenerationRequest:
    return GenerationRequest(
        task=GenerationTask.SUSTAINABILITY_PLAN,
        model=PLAN_MODEL,
        instruction=PLAN_INSTRUCTION.format(
            days=PLAN_DAYS, goal=sanitize_prompt_text(goal), language=language
        ),
        output_schema=PLAN_SCHEMA,
    )


def build_status_request(
    latitude: float | None, longitude: float | None, language: str
) -> GenerationRequest:
    return GenerationRequest(
        task=GenerationTask.PLANETARY_STATUS,
        model=STATUS_MODEL,
        instruction=STATUS_INSTRUCTION.format(
            latitude="unknown" if latitude is None else latitude,
            longitude="unknown" if longitude is None else longitude,
            language=language,
        ),
        output_schema=STATUS_SCHEMA,
        grounded=True,
    )


_BUILDERS = {
    GenerationTask.RESEARCH_REPORT: build_report_request,
    GenerationTask.SUSTAINABILITY_PLAN: build_plan_request,
    GenerationTask.PLANETARY_STATUS: build_status_request,
}


def build_request(task: GenerationTask, **parameters) -> GenerationRequest:
    """Build the request for a structured task from its named parameters."""
    try:
        builder = _BUILDERS[task]
    except KeyError:
        raise ValueError(f"{task} is not a structured generation task") from None
    return builder(**parameters)

# ABOUTME: Response orchestrator: build request -> Gemini call -> strict parse or one repair -> schema check -> grounding.
# ABOUTME: Backend failures are classified (quota vs upstream); unparseable output raises MalformedResponseError. No retries.

import base64
import json
import logging
import time
from typing import TypeVar

from google import genai
from google.genai import types
from pydantic import ValidationError

from core.config import (
    ILLUSTRATION_MODEL,
    PRO_IMAGE_MODEL,
    SPEECH_MODEL,
    SPEECH_VOICE,
)
from core.schemas import (
    EcoStatus,
    EnvironmentalReport,
    GroundedResult,
    ImageSize,
    Section,
    SustainabilityPlan,
)
from core.telemetry import log_run
from eco_research.audio import SpeechAudio, decode_inline_audio
from eco_research.errors import (
    ErrorClassifier,
    GenerationError,
    MalformedResponseError,
    SubstringErrorClassifier,
    UpstreamFailureError,
)
from eco_research.grounding import extract_sources
from eco_research.json_repair import repair
from eco_research.request_builder import (
    GenerationRequest,
    GenerationTask,
    build_request,
)

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=GroundedResult)


def parse_payload(text: str) -> tuple[object, bool]:
    """Strict json.loads, then at most one repair pass. Returns (payload, repaired)."""
    try:
        return json.loads(text), False
    except json.JSONDecodeError as exc:
        logger.warning("Initial JSON parse failed, attempting repair: %s", exc)
    try:
        return json.loads(repair(text)), True
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            f"Response is not valid JSON after repair: {exc}", raw_text=text
        ) from exc


def _token_counts(response) -> tuple[int, int]:
    usage = getattr(response, "usage_metadata", None)
    if not usage:
        return 0, 0
    return (
        getattr(usage, "prompt_token_count", 0) or 0,
        getattr(usage, "candidates_token_count", 0) or 0,
    )


def _first_inline_data(response) -> types.Blob | None:
    candidates = getattr(response, "candidates", None)
    if not candidates or not candidates[0].content or not candidates[0].content.parts:
        return None
    for part in candidates[0].content.parts:
        if part.inline_data and part.inline_data.data:
            return part.inline_data
    return None


def _as_data_uri(blob: types.Blob | None) -> str:
    if blob is None:
        return ""
    data = blob.data
    encoded = data if isinstance(data, str) else base64.b64encode(data).decode("ascii")
    return f"data:{blob.mime_type or 'image/png'};base64,{encoded}"


class ResponseOrchestrator:
    """Entry point per generation task. The genai client is injected; nothing is shared between calls."""

    def __init__(
        self, client: genai.Client, classifier: ErrorClassifier | None = None
    ):
        self._client = client
        self._classifier = classifier or SubstringErrorClassifier()

    async def _call_backend(
        self, *, model: str, contents, config: types.GenerateContentConfig
    ) -> types.GenerateContentResponse:
        try:
            return await self._client.aio.models.generate_content(
                model=model, contents=contents, config=config
            )
        except Exception as exc:
            classified = self._classifier.classify(exc)
            if classified is exc:
                raise
            raise classified from exc

    async def _run_structured(
        self, request: GenerationRequest, result_type: type[ResultT]
    ) -> ResultT:
        start = time.perf_counter()
        prompt_tokens = completion_tokens = 0
        repaired = False
        try:
            response = await self._call_backend(
                model=request.model,
                contents=request.instruction,
                config=request.to_config(),
            )
            prompt_tokens, completion_tokens = _token_counts(response)
            text = response.text or "{}"
            payload, repaired = parse_payload(text)
            try:
                result = result_type.model_validate(payload)
            except ValidationError as exc:
                raise MalformedResponseError(
                    f"Response does not match the {request.task.value} schema: {exc}",
                    raw_text=text,
                ) from exc
        except GenerationError as exc:
            log_run(
                task=request.task.value,
                model=request.model,
                latency_ms=(time.perf_counter() - start) * 1000,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                success=False,
                outcome=type(exc).__name__,
                repaired=repaired,
            )
            raise

        result.sources = extract_sources(response) if request.grounded else []
        log_run(
            task=request.task.value,
            model=request.model,
            latency_ms=(time.perf_counter() - start) * 1000,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            success=True,
            outcome="ok",
            repaired=repaired,
            source_count=len(result.sources),
        )
        return result

    async def fetch_research_report(
        self, prompt: str, section: Section | str, language: str
    ) -> EnvironmentalReport:
        request = build_request(
            GenerationTask.RESEARCH_REPORT,
            prompt=prompt,
            section=section,
            language=language,
        )
        return await self._run_structured(request, EnvironmentalReport)

    async def fetch_sustainability_plan(
        self, goal: str, language: str
    ) -> SustainabilityPlan:
        request = build_request(
            GenerationTask.SUSTAINABILITY_PLAN, goal=goal, language=language
        )
        return await self._run_structured(request, SustainabilityPlan)

    async def fetch_planetary_status(
        self, latitude: float | None, longitude: float | None, language: str
    ) -> EcoStatus:
        request = build_request(
            GenerationTask.PLANETARY_STATUS,
            latitude=latitude,
            longitude=longitude,
            language=language,
        )
        return await self._run_structured(request, EcoStatus)

    async def synthesize_speech(self, text: str) -> SpeechAudio:
        """Narrate text with the prebuilt TTS voice; returns mono 16-bit PCM."""
        config = types.GenerateContentConfig(
            response_modalities=[types.Modality.AUDIO],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=SPEECH_VOICE
                    )
                )
            ),
        )
        start = time.perf_counter()
        response = await self._call_backend(
            model=SPEECH_MODEL, contents=text, config=config
        )
        blob = _first_inline_data(response)
        prompt_tokens, completion_tokens = _token_counts(response)
        log_run(
            task=GenerationTask.SPEECH_SYNTHESIS.value,
            model=SPEECH_MODEL,
            latency_ms=(time.perf_counter() - start) * 1000,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            success=blob is not None,
            outcome="ok" if blob is not None else "no_audio",
        )
        if blob is None:
            logger.error("Speech response carried no inline audio")
            raise UpstreamFailureError("Audio synthesis failed")
        return SpeechAudio(pcm=decode_inline_audio(blob.data))

    async def _generate_image(
        self, model: str, contents: str, config: types.GenerateContentConfig
    ) -> str:
        start = time.perf_counter()
        response = await self._call_backend(model=model, contents=contents, config=config)
        blob = _first_inline_data(response)
        prompt_tokens, completion_tokens = _token_counts(response)
        log_run(
            task=GenerationTask.IMAGE_SYNTHESIS.value,
            model=model,
            latency_ms=(time.perf_counter() - start) * 1000,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            success=blob is not None,
            outcome="ok" if blob is not None else "no_image",
        )
        return _as_data_uri(blob)

    async def generate_illustration(self, visual_prompt: str) -> str:
        """Diagram for a report's visual prompt as a data URI, or '' if no image came back."""
        return await self._generate_image(
            ILLUSTRATION_MODEL,
            f"Educational diagram: {visual_prompt}. Focus on clarity and labeling.",
            types.GenerateContentConfig(),
        )

    async def generate_pro_image(self, prompt: str, size: ImageSize | str) -> str:
        size_value = size.value if isinstance(size, ImageSize) else ImageSize(size).value
        return await self._generate_image(
            PRO_IMAGE_MODEL,
            prompt,
            types.GenerateContentConfig(
                image_config=types.ImageConfig(aspect_ratio="1:1", image_size=size_value),
            ),
        )

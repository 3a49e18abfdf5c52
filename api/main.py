# ABOUTME: FastAPI app: POST /research, /plan, /status, /speech, /images; habit tracker CRUD under /habits.
# ABOUTME: 429 on quota exhaustion, 502 on upstream or malformed model output; orchestrator injected via Depends.

import logging
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from google import genai
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from core.config import CORS_ORIGINS, DEFAULT_LANGUAGE, GEMINI_API_KEY, LANGUAGES
from core.database import Habit, get_session, list_habits, toggle_habit
from core.schemas import (
    EcoStatus,
    EnvironmentalReport,
    ImageSize,
    Section,
    SustainabilityPlan,
)
from eco_research import (
    MalformedResponseError,
    QuotaExceededError,
    ResponseOrchestrator,
    UpstreamFailureError,
)

QUOTA_MESSAGE = "API quota exceeded. Wait a moment or switch to a paid key to continue."
UNRESPONSIVE_MESSAGE = "The AI service is unresponsive. Please try again."
MALFORMED_MESSAGE = "The AI model returned an incomplete response. Please try again."


@lru_cache
def get_orchestrator() -> ResponseOrchestrator:
    """Process-wide orchestrator over one explicitly constructed genai client. A missing API key is an upstream failure."""
    try:
        client = genai.Client(api_key=GEMINI_API_KEY)
    except ValueError as exc:
        raise UpstreamFailureError(f"Gemini client unavailable: {exc}") from exc
    return ResponseOrchestrator(client)


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": error, "message": message}
    )


def _generation_failure(exc: Exception, operation: str) -> JSONResponse:
    """Map a typed generation failure to the HTTP body the UI branches on."""
    if isinstance(exc, QuotaExceededError):
        logging.warning("%s hit the API quota", operation)
        return _error_response(429, "quota_exceeded", QUOTA_MESSAGE)
    if isinstance(exc, MalformedResponseError):
        logging.error("%s returned malformed output: %s", operation, exc)
        return _error_response(502, "malformed_response", MALFORMED_MESSAGE)
    logging.error("%s failed", operation, exc_info=exc)
    return _error_response(502, "upstream_failure", UNRESPONSIVE_MESSAGE)


app = FastAPI(title="Eco Research Assistant API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_GENERATION_ERRORS = (QuotaExceededError, MalformedResponseError, UpstreamFailureError)


@app.exception_handler(UpstreamFailureError)
async def _upstream_failure_handler(request: Request, exc: UpstreamFailureError):
    """Failures raised while resolving dependencies (e.g. building the client)."""
    return _generation_failure(exc, request.url.path)


class ResearchRequest(BaseModel):
    prompt: str
    section: Section = Section.CLIMATE
    language: str = DEFAULT_LANGUAGE


class PlanRequest(BaseModel):
    goal: str
    language: str = DEFAULT_LANGUAGE


class StatusRequest(BaseModel):
    latitude: float | None = None
    longitude: float | None = None
    language: str = DEFAULT_LANGUAGE


class SpeechRequest(BaseModel):
    text: str


class IllustrationRequest(BaseModel):
    prompt: str


class ImageRequest(BaseModel):
    prompt: str
    size: ImageSize = ImageSize.ONE_K


class HabitCreateRequest(BaseModel):
    name: str


def _blank(text: str) -> bool:
    return not (text and text.strip())


@app.get("/languages")
def get_languages():
    """Supported report languages as [{code, name, native_name}]."""
    return [
        {"code": code, "name": name, "native_name": native}
        for code, (name, native) in LANGUAGES.items()
    ]


@app.post("/research", response_model=EnvironmentalReport)
async def post_research(
    req: ResearchRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
):
    """Generate a grounded research report for an environmental problem."""
    if _blank(req.prompt):
        return _error_response(400, "invalid_input", "Describe an environmental problem.")
    try:
        return await orchestrator.fetch_research_report(
            req.prompt.strip(), req.section, req.language
        )
    except _GENERATION_ERRORS as exc:
        return _generation_failure(exc, "fetch_research_report")


@app.post("/plan", response_model=SustainabilityPlan)
async def post_plan(
    req: PlanRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
):
    """Generate a 7-day sustainability plan for a personal goal."""
    if _blank(req.goal):
        return _error_response(400, "invalid_input", "Enter a sustainability goal.")
    try:
        return await orchestrator.fetch_sustainability_plan(req.goal.strip(), req.language)
    except _GENERATION_ERRORS as exc:
        return _generation_failure(exc, "fetch_sustainability_plan")


@app.post("/status", response_model=EcoStatus)
async def post_status(
    req: StatusRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
):
    try:
        return await orchestrator.fetch_planetary_status(
            req.latitude, req.longitude, req.language
        )
    except _GENERATION_ERRORS as exc:
        return _generation_failure(exc, "fetch_planetary_status")


@app.post("/speech")
async def post_speech(
    req: SpeechRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
):
    """Narrate text; returns a WAV file."""
    if _blank(req.text):
        return _error_response(400, "invalid_input", "Nothing to narrate.")
    try:
        audio = await orchestrator.synthesize_speech(req.text.strip())
    except _GENERATION_ERRORS as exc:
        return _generation_failure(exc, "synthesize_speech")
    return Response(content=audio.to_wav(), media_type="audio/wav")


@app.post("/images/illustration")
async def post_illustration(
    req: IllustrationRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
):
    """Render the report's visual prompt as a diagram. url is '' when the model returned no image."""
    try:
        url = await orchestrator.generate_illustration(req.prompt)
    except _GENERATION_ERRORS as exc:
        return _generation_failure(exc, "generate_illustration")
    return {"url": url}


@app.post("/images")
async def post_image(
    req: ImageRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
):
    if _blank(req.prompt):
        return _error_response(400, "invalid_input", "Enter an image prompt.")
    try:
        url = await orchestrator.generate_pro_image(req.prompt.strip(), req.size)
    except _GENERATION_ERRORS as exc:
        return _generation_failure(exc, "generate_pro_image")
    return {"url": url, "prompt": req.prompt.strip(), "size": req.size.value}


def _habit_to_json(habit: Habit) -> dict:
    return {
        "id": str(habit.id),
        "name": habit.name,
        "completed": habit.completed,
        "streak": habit.streak,
    }


@app.get("/habits")
def get_habits():
    """List tracked habits; the defaults are seeded on first use."""
    try:
        with get_session() as session:
            return {"habits": [_habit_to_json(h) for h in list_habits(session)]}
    except SQLAlchemyError:
        logging.exception("get_habits failed (database error)")
        return JSONResponse(status_code=500, content={"message": "Could not load habits."})


@app.post("/habits", status_code=201)
def post_habit(req: HabitCreateRequest):
    if _blank(req.name):
        return _error_response(400, "invalid_input", "Habit name cannot be empty.")
    try:
        with get_session() as session:
            habit = Habit(name=req.name.strip())
            session.add(habit)
            session.commit()
            session.refresh(habit)
            return _habit_to_json(habit)
    except SQLAlchemyError:
        logging.exception("post_habit failed (database error)")
        return JSONResponse(status_code=500, content={"message": "Could not save habit."})


@app.post("/habits/{habit_id}/toggle")
def post_toggle_habit(habit_id: UUID):
    """Flip today's completion and adjust the streak."""
    try:
        with get_session() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return JSONResponse(status_code=404, content={"message": "Habit not found."})
            toggle_habit(habit)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            return _habit_to_json(habit)
    except SQLAlchemyError:
        logging.exception("post_toggle_habit failed (database error)")
        return JSONResponse(status_code=500, content={"message": "Could not update habit."})


@app.delete("/habits/{habit_id}", status_code=204)
def delete_habit(habit_id: UUID):
    try:
        with get_session() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return JSONResponse(status_code=404, content={"message": "Habit not found."})
            session.delete(habit)
            session.commit()
    except SQLAlchemyError:
        logging.exception("delete_habit failed (database error)")
        return JSONResponse(status_code=500, content={"message": "Could not delete habit."})
    return Response(status_code=204)

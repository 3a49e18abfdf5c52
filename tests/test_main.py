# ABOUTME: FastAPI TestClient tests for /research, /plan, /status, /speech, /images and /habits.
# ABOUTME: Orchestrator replaced via dependency_overrides; habits use an in-memory SQLite engine.

from contextlib import contextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine, select
from sqlmodel.pool import StaticPool

from api.main import app, get_orchestrator
from core.database import Habit
from core.schemas import (
    EcoStatus,
    EnvironmentalReport,
    GroundingSource,
    ImageSize,
    NewsItem,
    PlanDay,
    Section,
    SustainabilityPlan,
)
from eco_research import (
    MalformedResponseError,
    QuotaExceededError,
    UpstreamFailureError,
)
from eco_research.audio import SpeechAudio


def _report(**overrides) -> EnvironmentalReport:
    fields = dict(
        topic="Ocean Acidification",
        summary="pH is falling.",
        introduction="Intro.",
        explanation="Carbonic acid.",
        background="History.",
        causes=["CO2"],
        impacts=["Coral loss"],
        solutions=["Cut emissions"],
        examples=["Oyster hatcheries"],
        prevention_tips=["Drive less"],
        conclusion="Act now.",
        visual_prompt="Diagram of CO2 uptake",
        category="Water",
        section="Water",
        sources=[GroundingSource(title="NOAA", uri="https://www.noaa.gov")],
    )
    fields.update(overrides)
    return EnvironmentalReport(**fields)


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    for name in (
        "fetch_research_report",
        "fetch_sustainability_plan",
        "fetch_planetary_status",
        "synthesize_speech",
        "generate_illustration",
        "generate_pro_image",
    ):
        setattr(mock, name, AsyncMock())
    app.dependency_overrides[get_orchestrator] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_orchestrator, None)


@pytest.fixture
def client(orchestrator):
    return TestClient(app)


@pytest.fixture
def in_memory_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def fake_get_session(in_memory_engine):
    """Patch api.main.get_session so habit routes use the in-memory DB."""

    @contextmanager
    def _fake():
        with Session(in_memory_engine) as s:
            yield s

    with patch("api.main.get_session", _fake):
        yield _fake


def test_research_success_returns_camel_case_report(client, orchestrator):
    orchestrator.fetch_research_report.return_value = _report()
    resp = client.post(
        "/research",
        json={"prompt": "ocean acidification", "section": "Water", "language": "English"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["section"] == "Water"
    assert data["preventionTips"] == ["Drive less"]
    assert data["visualPrompt"] == "Diagram of CO2 uptake"
    assert data["sources"] == [{"title": "NOAA", "uri": "https://www.noaa.gov"}]
    orchestrator.fetch_research_report.assert_awaited_once_with(
        "ocean acidification", Section.WATER, "English"
    )


def test_research_400_on_blank_prompt(client, orchestrator):
    resp = client.post("/research", json={"prompt": "   "})
    assert resp.status_code == 400
    orchestrator.fetch_research_report.assert_not_awaited()


def test_research_422_on_unknown_section(client):
    resp = client.post("/research", json={"prompt": "smog", "section": "Soil"})
    assert resp.status_code == 422


def test_research_429_on_quota(client, orchestrator):
    orchestrator.fetch_research_report.side_effect = QuotaExceededError()
    resp = client.post("/research", json={"prompt": "smog"})
    assert resp.status_code == 429
    assert resp.json()["error"] == "quota_exceeded"


def test_missing_api_key_is_502_upstream_failure():
    """Without the override the real dependency builds the client; a missing key must not surface as a 500."""
    get_orchestrator.cache_clear()
    try:
        with patch("api.main.genai.Client", side_effect=ValueError("Missing key inputs argument!")):
            resp = TestClient(app).post("/research", json={"prompt": "smog"})
    finally:
        get_orchestrator.cache_clear()
    assert resp.status_code == 502
    assert resp.json()["error"] == "upstream_failure"


def test_research_502_on_upstream_failure(client, orchestrator):
    orchestrator.fetch_research_report.side_effect = UpstreamFailureError("503 unavailable")
    resp = client.post("/research", json={"prompt": "smog"})
    assert resp.status_code == 502
    assert resp.json()["error"] == "upstream_failure"


def test_research_502_on_malformed_response(client, orchestrator):
    orchestrator.fetch_research_report.side_effect = MalformedResponseError("bad json")
    resp = client.post("/research", json={"prompt": "smog"})
    assert resp.status_code == 502
    assert resp.json()["error"] == "malformed_response"


def test_plan_success(client, orchestrator):
    orchestrator.fetch_sustainability_plan.return_value = SustainabilityPlan(
        title="Green week",
        days=[PlanDay(day=i, task=f"T{i}", impact=f"I{i}") for i in range(1, 8)],
    )
    resp = client.post("/plan", json={"goal": "Less plastic", "language": "Urdu"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == "Green week"
    assert len(data["days"]) == 7
    assert data["sources"] == []
    orchestrator.fetch_sustainability_plan.assert_awaited_once_with("Less plastic", "Urdu")


def test_plan_429_on_quota(client, orchestrator):
    orchestrator.fetch_sustainability_plan.side_effect = QuotaExceededError()
    resp = client.post("/plan", json={"goal": "Less plastic"})
    assert resp.status_code == 429


def test_status_success(client, orchestrator):
    orchestrator.fetch_planetary_status.return_value = EcoStatus(
        local_temp="18°C",
        local_condition="Cloudy",
        global_avg_temp="15.1°C",
        news=[NewsItem(title="Heatwave", description="Records", url="https://n.example")],
    )
    resp = client.post("/status", json={"latitude": 51.5, "longitude": -0.1})
    assert resp.status_code == 200
    assert resp.json()["localTemp"] == "18°C"
    orchestrator.fetch_planetary_status.assert_awaited_once_with(51.5, -0.1, "English")


def test_speech_returns_wav(client, orchestrator):
    orchestrator.synthesize_speech.return_value = SpeechAudio(pcm=b"\x00\x00" * 240)
    resp = client.post("/speech", json={"text": "Hello planet"})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "audio/wav"
    assert resp.content[:4] == b"RIFF"


def test_speech_502_when_no_audio(client, orchestrator):
    orchestrator.synthesize_speech.side_effect = UpstreamFailureError("Audio synthesis failed")
    resp = client.post("/speech", json={"text": "Hello"})
    assert resp.status_code == 502


def test_illustration_returns_url(client, orchestrator):
    orchestrator.generate_illustration.return_value = "data:image/png;base64,AAAA"
    resp = client.post("/images/illustration", json={"prompt": "carbon cycle"})
    assert resp.status_code == 200
    assert resp.json() == {"url": "data:image/png;base64,AAAA"}


def test_pro_image_passes_size(client, orchestrator):
    orchestrator.generate_pro_image.return_value = "data:image/png;base64,AAAA"
    resp = client.post("/images", json={"prompt": "forest", "size": "2K"})
    assert resp.status_code == 200
    assert resp.json()["size"] == "2K"
    orchestrator.generate_pro_image.assert_awaited_once_with("forest", ImageSize.TWO_K)


def test_pro_image_422_on_unknown_size(client):
    resp = client.post("/images", json={"prompt": "forest", "size": "8K"})
    assert resp.status_code == 422


def test_languages_lists_english_and_urdu(client):
    resp = client.get("/languages")
    names = {lang["name"] for lang in resp.json()}
    assert {"English", "Urdu", "Japanese"} <= names


def test_get_habits_seeds_defaults(client, fake_get_session):
    resp = client.get("/habits")
    assert resp.status_code == 200
    habits = {h["name"]: h for h in resp.json()["habits"]}
    assert set(habits) == {"Reusable Bottle", "Composting", "Cold Wash Only"}
    assert habits["Composting"]["streak"] == 12
    assert not any(h["completed"] for h in habits.values())


def test_toggle_habit_updates_streak(client, fake_get_session, in_memory_engine):
    with Session(in_memory_engine) as session:
        habit = Habit(name="Bike to work", streak=2)
        session.add(habit)
        session.commit()
        habit_id = str(habit.id)

    resp = client.post(f"/habits/{habit_id}/toggle")
    assert resp.status_code == 200
    assert resp.json()["completed"] is True
    assert resp.json()["streak"] == 3

    resp = client.post(f"/habits/{habit_id}/toggle")
    assert resp.json()["completed"] is False
    assert resp.json()["streak"] == 2


def test_toggle_unknown_habit_404(client, fake_get_session):
    resp = client.post("/habits/00000000-0000-0000-0000-000000000000/toggle")
    assert resp.status_code == 404


def test_create_and_delete_habit(client, fake_get_session, in_memory_engine):
    resp = client.post("/habits", json={"name": "  Meatless Monday "})
    assert resp.status_code == 201
    created = resp.json()
    assert created["name"] == "Meatless Monday"
    assert created["streak"] == 0

    resp = client.delete(f"/habits/{created['id']}")
    assert resp.status_code == 204
    with Session(in_memory_engine) as session:
        assert list(session.exec(select(Habit))) == []


def test_create_habit_400_on_blank_name(client, fake_get_session):
    resp = client.post("/habits", json={"name": " "})
    assert resp.status_code == 400

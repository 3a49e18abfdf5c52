# ABOUTME: Live integration tests for the orchestrator; real Gemini calls, GEMINI_API_KEY required.
# ABOUTME: Deselected by default; run with: pytest tests/test_evals.py -m integration.

import asyncio
import os

import pytest
from google import genai

from core.schemas import EcoStatus, EnvironmentalReport, Section, SustainabilityPlan
from eco_research import ResponseOrchestrator

pytestmark = pytest.mark.skipif(
    not (os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")),
    reason="GEMINI_API_KEY not set",
)


def _orchestrator() -> ResponseOrchestrator:
    return ResponseOrchestrator(genai.Client())


@pytest.mark.integration
def test_evals_research_report_ocean_acidification():
    """'ocean acidification' in Water -> schema-valid report tagged Water, with grounding sources."""
    result = asyncio.run(
        _orchestrator().fetch_research_report("ocean acidification", Section.WATER, "English")
    )
    assert isinstance(result, EnvironmentalReport)
    assert result.section is Section.WATER
    assert result.causes and result.solutions
    assert all(s.uri and s.title for s in result.sources)


@pytest.mark.integration
def test_evals_sustainability_plan_has_seven_days():
    result = asyncio.run(
        _orchestrator().fetch_sustainability_plan("Cut household plastic waste", "English")
    )
    assert isinstance(result, SustainabilityPlan)
    assert len(result.days) == 7


@pytest.mark.integration
@pytest.mark.extra_evals
def test_evals_planetary_status_other_language():
    result = asyncio.run(_orchestrator().fetch_planetary_status(48.85, 2.35, "French"))
    assert isinstance(result, EcoStatus)
    assert result.local_temp

# ABOUTME: Eco research core package; exposes ResponseOrchestrator and the typed generation errors.
# ABOUTME: Build the orchestrator with an explicit genai.Client (see api.main.get_orchestrator).

from eco_research.errors import (
    GenerationError,
    MalformedResponseError,
    QuotaExceededError,
    UpstreamFailureError,
)
from eco_research.orchestrator import ResponseOrchestrator

__all__ = [
    "GenerationError",
    "MalformedResponseError",
    "QuotaExceededError",
    "ResponseOrchestrator",
    "UpstreamFailureError",
]

# ABOUTME: Generation telemetry: structured JSON log line per backend call and cost estimation.
# ABOUTME: Pricing is per 1M tokens (USD) by model id; unknown models are costed at zero.

import json
from dataclasses import dataclass
from datetime import datetime, timezone


# (input, output) pricing per 1M tokens (USD)
MODEL_PRICING_PER_1M: dict[str, tuple[float, float]] = {
    "gemini-3-pro-preview": (2.00, 12.00),
    "gemini-3-flash-preview": (0.50, 3.00),
    "gemini-2.5-flash": (0.30, 2.50),
    "gemini-2.5-flash-preview-tts": (0.50, 10.00),
}


def estimate_cost_usd(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimate cost in USD for one call to the given model."""
    input_cost, output_cost = MODEL_PRICING_PER_1M.get(model, (0.0, 0.0))
    return (prompt_tokens / 1_000_000) * input_cost + (
        completion_tokens / 1_000_000
    ) * output_cost


@dataclass
class TelemetryLogEntry:
    """Structured telemetry entry for one generation call."""

    timestamp: str
    task: str
    model: str
    latency_ms: float
    prompt_tokens: int
    completion_tokens: int
    estimated_cost_usd: float
    success: bool
    outcome: str
    repaired: bool = False
    source_count: int = 0

    def to_json(self) -> str:
        return json.dumps(
            {
                "timestamp": self.timestamp,
                "task": self.task,
                "model": self.model,
                "latency_ms": round(self.latency_ms, 2),
                "prompt_tokens": self.prompt_tokens,
                "completion_tokens": self.completion_tokens,
                "estimated_cost_usd": f"{self.estimated_cost_usd:.6f}",
                "success": self.success,
                "outcome": self.outcome,
                "repaired": self.repaired,
                "source_count": self.source_count,
            }
        )


def log_run(
    *,
    task: str,
    model: str,
    latency_ms: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool,
    outcome: str,
    repaired: bool = False,
    source_count: int = 0,
) -> None:
    """Print a structured JSON log line to stdout for one generation call."""
    entry = TelemetryLogEntry(
        timestamp=datetime.now(tz=timezone.utc).isoformat(),
        task=task,
        model=model,
        latency_ms=latency_ms,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        estimated_cost_usd=estimate_cost_usd(model, prompt_tokens, completion_tokens),
        success=success,
        outcome=outcome,
        repaired=repaired,
        source_count=source_count,
    )
    print(entry.to_json(), flush=True)

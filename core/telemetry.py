# ABOUTME: Model-call telemetry: structured JSON log line and cost calculation per remote function run.
# ABOUTME: Gemini 2.5 Flash-Lite pricing: $0.10/1M input, $0.40/1M output.

import json
from dataclasses import dataclass
from datetime import datetime, timezone


# Gemini 2.5 Flash-Lite pricing per 1M tokens (USD)
INPUT_COST_PER_1M = 0.10
OUTPUT_COST_PER_1M = 0.40


def estimate_cost_usd(prompt_tokens: int, completion_tokens: int) -> float:
    """Estimate cost in USD for Gemini 2.5 Flash-Lite."""
    return (prompt_tokens / 1_000_000) * INPUT_COST_PER_1M + (
        completion_tokens / 1_000_000
    ) * OUTPUT_COST_PER_1M


@dataclass
class TelemetryLogEntry:
    """Structured telemetry entry for one model call."""

    timestamp: str
    function: str
    latency_ms: float
    prompt_tokens: int
    completion_tokens: int
    estimated_cost_usd: float
    success: bool

    def to_json(self) -> str:
        return json.dumps(
            {
                "timestamp": self.timestamp,
                "function": self.function,
                "latency_ms": round(self.latency_ms, 2),
                "prompt_tokens": self.prompt_tokens,
                "completion_tokens": self.completion_tokens,
                "estimated_cost_usd": f"{self.estimated_cost_usd:.6f}",
                "success": self.success,
            }
        )


def log_run(
    *,
    function: str,
    latency_ms: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool,
) -> None:
    """Print a structured JSON log line to stdout for one model call."""
    entry = TelemetryLogEntry(
        timestamp=datetime.now(tz=timezone.utc).isoformat(),
        function=function,
        latency_ms=latency_ms,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        estimated_cost_usd=estimate_cost_usd(prompt_tokens, completion_tokens),
        success=success,
    )
    print(entry.to_json(), flush=True)

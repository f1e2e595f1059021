# ABOUTME: Raw model/remote text cleanup: strip a Markdown code fence wrapping the body and parse the remaining JSON.
# ABOUTME: Shared by coach agents (model output) and the client gateway (function responses).

import json
import re
from typing import Any

# Only a fence around the whole body counts; backticks inside string values are left alone.
_CODE_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL | re.IGNORECASE)


def strip_code_fences(raw: str) -> str:
    """Unwrap a ```json / ``` fenced body; unfenced text is only trimmed."""
    match = _CODE_FENCE_RE.match(raw)
    if match:
        return match.group(1).strip()
    return raw.strip()


def parse_json_text(raw: str | None) -> Any:
    """Parse JSON after fence stripping. Raises ValueError (json.JSONDecodeError) when it is still not JSON."""
    if raw is None:
        raise ValueError("Empty response")
    return json.loads(strip_code_fences(raw))

# ABOUTME: Call-and-parse wrapper around the remote functions: invoke(name, payload) -> parsed JSON body.
# ABOUTME: Blocking requests run in a worker thread; every failure surfaces as GatewayError, never retried.

import asyncio
import logging
from typing import Any, Callable

import requests

from core.config import API_URL, REQUEST_TIMEOUT_SECONDS
from core.text import parse_json_text

logger = logging.getLogger(__name__)

SMART_GRADE = "smart-grade"
GOAL_PARSE = "goal-parse"
REALITY_CHECK = "reality-check"
ONBOARDING_CHAT = "onboarding-chat"


class GatewayError(Exception):
    """A remote function call failed: transport, non-2xx status, or a body that is not JSON."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: requests.Response) -> str:
    try:
        body = parse_json_text(response.text)
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return f"Function call failed with status {response.status_code}"


class LLMGateway:
    """Stateless: no session affinity and no caching of identical calls."""

    def __init__(
        self,
        api_url: str = API_URL,
        headers: Callable[[], dict[str, str]] | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.api_url = api_url.rstrip("/")
        self._headers = headers or dict
        self.timeout = timeout

    def _post(self, name: str, payload: dict[str, Any]) -> requests.Response:
        return requests.post(
            f"{self.api_url}/functions/{name}",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )

    async def invoke(self, name: str, payload: dict[str, Any]) -> Any:
        try:
            response = await asyncio.to_thread(self._post, name, payload)
        except requests.RequestException as e:
            logger.warning("%s: transport failure: %s", name, e)
            raise GatewayError(f"Could not reach the API: {e}") from e
        if not 200 <= response.status_code < 300:
            message = _error_message(response)
            logger.warning("%s: status %s: %s", name, response.status_code, message)
            raise GatewayError(message, status_code=response.status_code)
        try:
            return parse_json_text(response.text)
        except ValueError as e:
            logger.warning("%s: response is not JSON", name)
            raise GatewayError(f"Invalid response from {name}: {e}") from e

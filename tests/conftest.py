# ABOUTME: Pytest hooks and shared fixtures. Sets SECRET_KEY for tests before app/config load.
# ABOUTME: ScriptedGateway stands in for the remote functions so client controllers run headless.

import asyncio
import copy
import os
from collections import defaultdict, deque

import pytest
from dotenv import load_dotenv

load_dotenv()

# Required by core.config before any test imports api.main.
os.environ.setdefault("SECRET_KEY", "test-secret-for-pytest")


class ScriptedGateway:
    """Fake LLMGateway: records every invoke and answers from per-function scripts.

    queue() answers one call in order; always() answers any call once the queue is empty.
    A gate (asyncio.Event) holds the answer until the test sets it.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self._queued = defaultdict(deque)
        self._always = {}

    def queue(self, name, response=None, *, error=None, gate=None):
        self._queued[name].append((response, error, gate))

    def always(self, name, response=None, *, error=None):
        self._always[name] = (response, error, None)

    def calls_to(self, name) -> list[dict]:
        return [payload for called, payload in self.calls if called == name]

    async def invoke(self, name, payload):
        self.calls.append((name, copy.deepcopy(payload)))
        if self._queued[name]:
            response, error, gate = self._queued[name].popleft()
        elif name in self._always:
            response, error, gate = self._always[name]
        else:
            raise AssertionError(f"unexpected call to {name}")
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if error is not None:
            raise error
        return copy.deepcopy(response)


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def grade_body():
    """A smart-grade response body with a weak 'specific' dimension."""
    return {
        "score": 42,
        "scores": {
            "specific": 50,
            "measurable": 85,
            "achievable": 90,
            "relevant": 80,
            "time_bound": 30,
        },
        "tips": {
            "specific": "Be more concrete",
            "measurable": None,
            "achievable": None,
            "relevant": None,
            "time_bound": "Add a deadline",
        },
    }


@pytest.fixture
def profile_body():
    return {
        "lifeAreas": ["health", "career"],
        "direction": "Run a half marathon and get promoted within a year.",
        "values": "Honesty and consistency.",
        "blockers": "Long work hours leave little energy.",
        "weeklyHours": 5,
    }

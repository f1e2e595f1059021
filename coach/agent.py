# ABOUTME: Google ADK agents for smart-grade, goal-parse and reality-check, plus the stateless onboarding chat.
# ABOUTME: Each call validates model JSON against core.schemas and logs one telemetry line to stdout.

import time
import uuid
from datetime import date
from typing import TypeVar

from google import genai
from google.adk import Agent, Runner
from google.adk.agents.readonly_context import ReadonlyContext
from google.adk.sessions.in_memory_session_service import InMemorySessionService
from google.genai import types
from pydantic import BaseModel, ValidationError

from coach.prompts import (
    GOAL_PARSE_INSTRUCTION,
    ONBOARDING_INSTRUCTION,
    ONBOARDING_OPENING_PROMPT,
    REALITY_CHECK_INSTRUCTION,
    SMART_GRADE_INSTRUCTION,
)
from core.config import (
    GEMINI_MODEL,
    GOAL_PARSE_MIN_LENGTH,
    MAX_USER_INPUT_LENGTH,
    MIN_GOAL_LENGTH,
    ONBOARDING_START_TOKEN,
)
from core.schemas import (
    ChatTurn,
    GoalParseResult,
    OnboardingDone,
    OnboardingMessage,
    RealityCheckRequest,
    RealityCheckResult,
    SmartGradeRequest,
    SmartGradeResult,
    onboarding_reply_adapter,
)
from core.telemetry import log_run
from core.text import strip_code_fences

APP_NAME = "prova"
_USER_ID = "user"

T = TypeVar("T", bound=BaseModel)


def _sanitize_user_input(raw: str | None) -> str:
    """Truncate raw input to limit, then strip null bytes and escape angle brackets to prevent tag breakout. Non-str input is normalized to empty string."""
    if not isinstance(raw, str):
        return ""
    bounded = raw[:MAX_USER_INPUT_LENGTH]
    return bounded.replace("\x00", "").replace("<", "&lt;").replace(">", "&gt;").strip()


def _with_today(instruction: str):
    """Build an instruction provider that appends today's date so durations and deadlines are judged against it."""

    def _provider(_ctx: ReadonlyContext) -> str:
        return f"{instruction}\n\nToday's date is {date.today().isoformat()}."

    return _provider


def _create_agent(name: str, instruction: str, output_schema: type[BaseModel]) -> Agent:
    return Agent(
        model=GEMINI_MODEL,
        name=name,
        instruction=_with_today(instruction),
        output_schema=output_schema,
    )


smart_grade_agent = _create_agent("smart_grade", SMART_GRADE_INSTRUCTION, SmartGradeResult)
goal_parse_agent = _create_agent("goal_parse", GOAL_PARSE_INSTRUCTION, GoalParseResult)
reality_check_agent = _create_agent("reality_check", REALITY_CHECK_INSTRUCTION, RealityCheckResult)

_session_service = InMemorySessionService()
_runners = {
    agent.name: Runner(
        agent=agent,
        app_name=APP_NAME,
        session_service=_session_service,
        auto_create_session=True,
    )
    for agent in (smart_grade_agent, goal_parse_agent, reality_check_agent)
}

_genai_client: genai.Client | None = None


def _get_genai_client() -> genai.Client:
    """Create the Gemini client on first use (reads GEMINI_API_KEY / GOOGLE_API_KEY)."""
    global _genai_client
    if _genai_client is None:
        _genai_client = genai.Client()
    return _genai_client


def _run_agent(function: str, prompt: str, schema: type[T]) -> T:
    """Run one agent in a fresh session and validate its final text against schema.
    Raises ValueError when the model gives no valid JSON."""
    runner = _runners[function]
    content = types.Content(role="user", parts=[types.Part(text=prompt)])

    start = time.perf_counter()
    prompt_tokens = 0
    completion_tokens = 0
    final_text: str | None = None

    for event in runner.run(
        user_id=_USER_ID,
        session_id=str(uuid.uuid4()),
        new_message=content,
    ):
        if event.usage_metadata:
            prompt_tokens += getattr(event.usage_metadata, "prompt_token_count", 0) or 0
            completion_tokens += (
                getattr(event.usage_metadata, "candidates_token_count", 0) or 0
            )
        if event.is_final_response() and event.content and event.content.parts:
            for part in event.content.parts:
                if part.text:
                    final_text = part.text.strip()
                    break
            if final_text:
                break

    latency_ms = (time.perf_counter() - start) * 1000
    result: T | None = None
    if final_text:
        try:
            result = schema.model_validate_json(strip_code_fences(final_text))
        except ValidationError:
            result = None

    log_run(
        function=function,
        latency_ms=latency_ms,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        success=result is not None,
    )
    if result is None:
        raise ValueError(f"Agent did not return valid {schema.__name__} JSON")
    return result


def _profile_lines(request: SmartGradeRequest) -> str:
    profile = request.user_profile
    if profile is None:
        return "User profile: not available"
    areas = ", ".join(_sanitize_user_input(a) for a in profile.life_areas) or "none given"
    return (
        f"User life areas: {areas}\n"
        f"User direction: {_sanitize_user_input(profile.direction) or 'not given'}\n"
        f"User values: {_sanitize_user_input(profile.values) or 'not given'}"
    )


def _proof_types_line(proof_types: list[str]) -> str:
    cleaned = [_sanitize_user_input(p) for p in proof_types]
    return ", ".join(p for p in cleaned if p) or "none selected"


def grade_goal(request: SmartGradeRequest) -> SmartGradeResult:
    """Score the goal on the five SMART dimensions. Goals under MIN_GOAL_LENGTH get a zero grade without a model call."""
    goal = _sanitize_user_input(request.goal_text)
    if len(goal) < MIN_GOAL_LENGTH:
        return SmartGradeResult(score=0)
    description = _sanitize_user_input(request.proof_description)
    prompt = "\n".join(
        [
            f"<goal>\n{goal}\n</goal>",
            f"Proof types: {_proof_types_line(request.proof_types)}",
            f"<proof>\n{description}\n</proof>" if description else "Proof description: none",
            f"Interpreted frequency: {_sanitize_user_input(request.parsed_frequency) or 'unknown'}",
            _profile_lines(request),
        ]
    )
    return _run_agent(smart_grade_agent.name, prompt, SmartGradeResult)


def parse_goal(goal_text: str) -> GoalParseResult:
    """Extract frequency/duration hints. Very short text yields an empty result without a model call."""
    goal = _sanitize_user_input(goal_text)
    if len(goal) < GOAL_PARSE_MIN_LENGTH:
        return GoalParseResult()
    return _run_agent(goal_parse_agent.name, f"<goal>\n{goal}\n</goal>", GoalParseResult)


def check_reality(request: RealityCheckRequest) -> RealityCheckResult:
    prompt = "\n".join(
        [
            f"<goal>\n{_sanitize_user_input(request.goal_text)}\n</goal>",
            f"Proof types: {_proof_types_line(request.proof_types)}",
            f"Frequency: {_sanitize_user_input(request.parsed_frequency) or 'not stated'}",
        ]
    )
    return _run_agent(reality_check_agent.name, prompt, RealityCheckResult)


def _user_content(text: str) -> types.Content:
    return types.Content(role="user", parts=[types.Part(text=text)])


def _chat_contents(history: list[ChatTurn], message: str) -> list[types.Content]:
    """Replay history as Gemini contents, then the new message.
    Gemini rejects histories that open with a model turn, so one is prefixed with a placeholder user turn."""
    contents = [
        types.Content(
            role=turn.role,
            parts=[
                types.Part(
                    text=_sanitize_user_input(turn.text) if turn.role == "user" else turn.text
                )
            ],
        )
        for turn in history
    ]
    if contents and contents[0].role == "model":
        contents.insert(0, _user_content(ONBOARDING_START_TOKEN))
    contents.append(_user_content(message))
    return contents


def onboarding_chat(
    history: list[ChatTurn], message: str
) -> OnboardingMessage | OnboardingDone:
    """Run one onboarding turn. An empty message opens the conversation and always yields a message reply."""
    sanitized = _sanitize_user_input(message)
    opening = not sanitized
    contents = ONBOARDING_OPENING_PROMPT if opening else _chat_contents(history, sanitized)
    config = types.GenerateContentConfig(
        system_instruction=ONBOARDING_INSTRUCTION,
        response_mime_type="application/json",
    )

    start = time.perf_counter()
    response = _get_genai_client().models.generate_content(
        model=GEMINI_MODEL,
        contents=contents,
        config=config,
    )
    latency_ms = (time.perf_counter() - start) * 1000
    usage = response.usage_metadata
    prompt_tokens = (getattr(usage, "prompt_token_count", 0) or 0) if usage else 0
    completion_tokens = (getattr(usage, "candidates_token_count", 0) or 0) if usage else 0

    try:
        reply = onboarding_reply_adapter.validate_json(strip_code_fences(response.text or ""))
    except ValidationError:
        reply = None
    log_run(
        function="onboarding_chat",
        latency_ms=latency_ms,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        success=reply is not None,
    )
    if reply is None:
        raise ValueError("Model did not return a valid onboarding reply")
    if opening and isinstance(reply, OnboardingDone):
        return OnboardingMessage(text=reply.text)
    return reply

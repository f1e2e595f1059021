# ABOUTME: Goal-creation form core: GoalDraft state, debounced SMART grading, goal parsing and the reality check.
# ABOUTME: Section visibility is derived from the draft on every read; there is no stored "current step".

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError

from client.debounce import Debouncer
from client.gateway import GOAL_PARSE, REALITY_CHECK, SMART_GRADE, GatewayError, LLMGateway
from client.session import SessionContext
from core.config import (
    ACCEPTABLE_DIMENSION_SCORE,
    FAIR_SCORE,
    GRADE_DEBOUNCE_SECONDS,
    MIN_GOAL_LENGTH,
    PROOF_SECTION_MIN_LENGTH,
    PROOF_TYPES,
)
from core.schemas import (
    SMART_DIMENSIONS,
    GoalParseRequest,
    GoalParseResult,
    RealityCheckRequest,
    RealityCheckResult,
    SmartGradeRequest,
    SmartGradeResult,
)

logger = logging.getLogger(__name__)


class Section(str, Enum):
    GOAL = "goal"
    PROOF_TYPE = "proof_type"
    REALITY_CHECK = "reality_check"
    INVITE = "invite"


@dataclass
class GoalDraft:
    """Client-memory goal draft; discarded with the screen."""

    goal_text: str = ""
    proof_types: list[str] = field(default_factory=list)
    proof_description: str = ""
    parsed_goal: GoalParseResult | None = None
    smart_grade: SmartGradeResult | None = None
    reality_check: RealityCheckResult | None = None
    reality_done: bool = False

    @property
    def parsed_frequency(self) -> str | None:
        return self.parsed_goal.human_readable if self.parsed_goal else None


def show_proof_types(draft: GoalDraft) -> bool:
    return len(draft.goal_text.strip()) > PROOF_SECTION_MIN_LENGTH


def show_reality_check(draft: GoalDraft) -> bool:
    return len(draft.proof_types) > 0


def show_invite(draft: GoalDraft) -> bool:
    return draft.reality_done


def visible_sections(draft: GoalDraft) -> list[Section]:
    sections = [Section.GOAL]
    if show_proof_types(draft):
        sections.append(Section.PROOF_TYPE)
    if show_reality_check(draft):
        sections.append(Section.REALITY_CHECK)
    if show_invite(draft):
        sections.append(Section.INVITE)
    return sections


def score_band(score: int) -> str:
    """Colour band for a 0-100 score: good, fair or poor."""
    if score >= ACCEPTABLE_DIMENSION_SCORE:
        return "good"
    if score >= FAIR_SCORE:
        return "fair"
    return "poor"


def visible_tips(
    result: SmartGradeResult, threshold: int = ACCEPTABLE_DIMENSION_SCORE
) -> dict[str, str]:
    """Tips worth showing: non-null and for a dimension scoring below threshold."""
    tips = {}
    for dim in SMART_DIMENSIONS:
        tip = getattr(result.tips, dim)
        if tip and getattr(result.scores, dim) < threshold:
            tips[dim] = tip
    return tips


class GoalFormController:
    """Drives one goal-creation screen.

    Grading fires on a trailing-edge debounce after goal blur or any proof change.
    A goal-blur tick also parses the goal in parallel with the first grade and, when
    the parse yields a readable frequency, grades a second time with it. In-flight
    calls are never cancelled, so the last response to land wins.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        session: SessionContext | None = None,
        debounce_s: float = GRADE_DEBOUNCE_SECONDS,
    ):
        self.draft = GoalDraft()
        self.grade_error: str | None = None
        self.reality_error: str | None = None
        self.checking_reality = False
        self.parse_hint_dismissed = False
        self._gateway = gateway
        self._session = session
        self._debouncer = Debouncer(debounce_s)
        self._grading_calls = 0
        self._parse_requested = False

    @property
    def grading(self) -> bool:
        return self._grading_calls > 0

    @property
    def show_proof_types(self) -> bool:
        return show_proof_types(self.draft)

    @property
    def show_reality_check(self) -> bool:
        return show_reality_check(self.draft)

    @property
    def show_invite(self) -> bool:
        return show_invite(self.draft)

    def visible_sections(self) -> list[Section]:
        return visible_sections(self.draft)

    @property
    def parse_hint(self) -> str | None:
        if self.parse_hint_dismissed:
            return None
        return self.draft.parsed_frequency

    def dismiss_parse_hint(self) -> None:
        self.parse_hint_dismissed = True

    def set_goal_text(self, text: str) -> None:
        self.draft.goal_text = text

    def on_goal_blur(self) -> None:
        if len(self.draft.goal_text.strip()) < MIN_GOAL_LENGTH:
            return
        self._parse_requested = True
        self._debouncer.trigger(self._tick)

    def toggle_proof_type(self, proof_type: str) -> None:
        if proof_type not in PROOF_TYPES:
            raise ValueError(f"Unknown proof type: {proof_type}")
        if proof_type in self.draft.proof_types:
            self.draft.proof_types = [p for p in self.draft.proof_types if p != proof_type]
        else:
            self.draft.proof_types = [*self.draft.proof_types, proof_type]
        self._debouncer.trigger(self._tick)

    def set_proof_description(self, text: str) -> None:
        self.draft.proof_description = text
        self._debouncer.trigger(self._tick)

    async def settle(self) -> None:
        """Wait for any pending debounce window and the calls it dispatched."""
        await self._debouncer.settle()

    async def _tick(self) -> None:
        parse = self._parse_requested
        self._parse_requested = False
        if not parse:
            await self._grade(self.draft.parsed_goal)
            return
        # The goal may have been shortened since the blur armed this tick.
        if len(self.draft.goal_text.strip()) < MIN_GOAL_LENGTH:
            return
        self.parse_hint_dismissed = False
        parsed, _ = await asyncio.gather(self._parse(), self._grade(None))
        if parsed is not None:
            self.draft.parsed_goal = parsed
            if parsed.human_readable:
                await self._grade(parsed)

    async def _grade(self, parsed: GoalParseResult | None) -> None:
        text = self.draft.goal_text
        if len(text.strip()) < MIN_GOAL_LENGTH:
            return
        request = SmartGradeRequest(
            goal_text=text,
            proof_types=list(self.draft.proof_types),
            proof_description=self.draft.proof_description,
            user_profile=self._session.grading_context() if self._session else None,
            parsed_frequency=parsed.human_readable if parsed else None,
        )
        self._grading_calls += 1
        self.grade_error = None
        try:
            data = await self._gateway.invoke(SMART_GRADE, request.model_dump(by_alias=True))
            self.draft.smart_grade = SmartGradeResult.model_validate(data)
        except (GatewayError, ValidationError) as e:
            self.grade_error = str(e)
        finally:
            self._grading_calls -= 1

    async def _parse(self) -> GoalParseResult | None:
        """A failed parse means "no frequency found", never an error to show."""
        request = GoalParseRequest(goal_text=self.draft.goal_text)
        try:
            data = await self._gateway.invoke(GOAL_PARSE, request.model_dump(by_alias=True))
            return GoalParseResult.model_validate(data)
        except (GatewayError, ValidationError) as e:
            logger.info("goal parse yielded no hint: %s", e)
            return None

    async def run_reality_check(self) -> None:
        """Manual trigger. No-op without a proof type or while a check is running."""
        if self.checking_reality or not self.show_reality_check:
            return
        self.checking_reality = True
        self.reality_error = None
        request = RealityCheckRequest(
            goal_text=self.draft.goal_text,
            proof_types=list(self.draft.proof_types),
            parsed_frequency=self.draft.parsed_frequency,
        )
        try:
            data = await self._gateway.invoke(REALITY_CHECK, request.model_dump(by_alias=True))
            self.draft.reality_check = RealityCheckResult.model_validate(data)
            self.draft.reality_done = True
        except (GatewayError, ValidationError) as e:
            self.reality_error = str(e)
        finally:
            self.checking_reality = False

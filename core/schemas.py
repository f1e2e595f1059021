# ABOUTME: Pydantic models for the remote function contracts (smart-grade, goal-parse, reality-check, onboarding-chat).
# ABOUTME: Used as ADK output schemas, FastAPI request/response bodies and client-side response parsing.

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

SMART_DIMENSIONS = ("specific", "measurable", "achievable", "relevant", "time_bound")


class WireModel(BaseModel):
    """Base for bodies that travel as camelCase JSON but read as snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DimensionScores(BaseModel):
    specific: int = Field(default=0, ge=0, le=100)
    measurable: int = Field(default=0, ge=0, le=100)
    achievable: int = Field(default=0, ge=0, le=100)
    relevant: int = Field(default=0, ge=0, le=100)
    time_bound: int = Field(default=0, ge=0, le=100)


class DimensionTips(BaseModel):
    """One short improvement tip per SMART dimension; null when the dimension is already fine."""

    specific: Optional[str] = None
    measurable: Optional[str] = None
    achievable: Optional[str] = None
    relevant: Optional[str] = None
    time_bound: Optional[str] = None


class SmartGradeResult(BaseModel):
    """Structured output from the smart-grade agent."""

    score: int = Field(description="Overall SMART score.", ge=0, le=100)
    scores: DimensionScores = Field(default_factory=DimensionScores)
    tips: DimensionTips = Field(default_factory=DimensionTips)


class UserProfileContext(WireModel):
    """Profile slice sent along with grading so the model can judge relevance."""

    life_areas: list[str] = Field(default_factory=list)
    direction: str = ""
    values: str = ""


class SmartGradeRequest(WireModel):
    goal_text: str
    proof_types: list[str] = Field(default_factory=list)
    proof_description: str = ""
    user_profile: Optional[UserProfileContext] = None
    parsed_frequency: Optional[str] = None


class GoalParseRequest(WireModel):
    goal_text: str


class GoalParseResult(WireModel):
    """Frequency/duration hints extracted from free goal text."""

    frequency_count: Optional[int] = Field(default=None, description="Times per unit, if stated.")
    frequency_unit: Optional[Literal["day", "week", "month"]] = None
    duration_value: Optional[str] = Field(
        default=None, description='e.g. "8 weeks" or "until March 2026".'
    )
    human_readable: Optional[str] = Field(default=None, description='e.g. "3x per week".')


class RealityCheckRequest(WireModel):
    goal_text: str
    proof_types: list[str] = Field(default_factory=list)
    parsed_frequency: Optional[str] = None


class RealityCheckResult(BaseModel):
    """Structured output from the reality-check agent."""

    likelihood: int = Field(description="Percent chance the commitment is kept.", ge=0, le=100)
    pitfalls: list[str] = Field(default_factory=list, description="2-3 common failure points.")
    suggestions: list[str] = Field(default_factory=list, description="1-2 concrete improvements.")


class ExtractedProfile(WireModel):
    """Onboarding profile extracted from the interview."""

    life_areas: list[str] = Field(description="1-5 short life-area tags.", min_length=1, max_length=5)
    direction: str = Field(description="1-2 sentence 6-12 month vision.")
    values: str = Field(description="Core values in one sentence.")
    blockers: str = Field(description="Main obstacles in one sentence.")
    weekly_hours: int = Field(description="Realistic hours per week for new habits.", ge=0)


class StoredProfile(ExtractedProfile):
    """Profile as held by the profile store, with the onboarding flag."""

    onboarding_done: bool = False


class ChatTurn(BaseModel):
    role: Literal["user", "model"]
    text: str


class OnboardingChatRequest(BaseModel):
    history: list[ChatTurn] = Field(default_factory=list)
    message: str = ""


class OnboardingMessage(BaseModel):
    type: Literal["message"] = "message"
    text: str


class OnboardingDone(BaseModel):
    type: Literal["done"] = "done"
    text: str
    profile: ExtractedProfile


OnboardingReply = Annotated[
    Union[OnboardingMessage, OnboardingDone], Field(discriminator="type")
]
onboarding_reply_adapter = TypeAdapter(OnboardingReply)

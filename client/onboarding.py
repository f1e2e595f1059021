# ABOUTME: Onboarding conversation engine: LLM-directed chat until the model returns a profile, then summary edits.
# ABOUTME: Keeps the display transcript and the API replay history as two separate append-only sequences.

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import ValidationError

from client.gateway import ONBOARDING_CHAT, GatewayError, LLMGateway
from client.session import SessionContext, SessionError
from core.config import SUMMARY_TRANSITION_SECONDS
from core.schemas import (
    ChatTurn,
    ExtractedProfile,
    OnboardingDone,
    OnboardingMessage,
    onboarding_reply_adapter,
)

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "Sorry, something went wrong on my side. Could you say that again?"
LIFE_AREA_SEPARATOR = "·"


class Phase(str, Enum):
    CHAT = "chat"
    SUMMARY = "summary"
    SAVED = "saved"


@dataclass
class DisplayMessage:
    role: Literal["app", "user", "typing"]
    text: str = ""


class OnboardingConversation:
    """One onboarding screen's conversation.

    history is the strict replay log sent with every call (user/model turns only);
    transcript is what the user sees, including the transient typing entry. A turn
    that fails is never added to history, and neither is the final "done" exchange.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        summary_delay_s: float = SUMMARY_TRANSITION_SECONDS,
    ):
        self.transcript: list[DisplayMessage] = []
        self.history: list[ChatTurn] = []
        self.phase = Phase.CHAT
        self.profile: ExtractedProfile | None = None
        self.closing_text: str | None = None
        self.follow_up: str | None = None
        self.error: str | None = None
        self.saving = False
        self._gateway = gateway
        self._summary_delay_s = summary_delay_s
        self._typing = False

    @property
    def typing(self) -> bool:
        return self._typing

    def _start_typing(self) -> None:
        self._typing = True
        self.transcript.append(DisplayMessage(role="typing"))

    def _stop_typing(self) -> None:
        self._typing = False
        if self.transcript and self.transcript[-1].role == "typing":
            self.transcript.pop()

    async def _call(
        self, history: list[ChatTurn], message: str
    ) -> OnboardingMessage | OnboardingDone:
        payload = {
            "history": [turn.model_dump() for turn in history],
            "message": message,
        }
        data = await self._gateway.invoke(ONBOARDING_CHAT, payload)
        return onboarding_reply_adapter.validate_python(data)

    async def start(self) -> None:
        """Opening call with empty history and message; the reply opens both sequences."""
        if self.transcript or self._typing:
            return
        self._start_typing()
        try:
            reply = await self._call([], "")
        except (GatewayError, ValidationError) as e:
            logger.warning("onboarding opening failed: %s", e)
            self._stop_typing()
            self.transcript.append(DisplayMessage(role="app", text=APOLOGY_TEXT))
            return
        self._stop_typing()
        # The entry call cannot end the conversation; any reply is treated as the opening question.
        self.transcript.append(DisplayMessage(role="app", text=reply.text))
        self.history.append(ChatTurn(role="model", text=reply.text))

    async def send(self, text: str) -> None:
        text = text.strip()
        if not text or self._typing or self.phase is not Phase.CHAT or self.closing_text is not None:
            return
        self.transcript.append(DisplayMessage(role="user", text=text))
        self._start_typing()
        try:
            reply = await self._call(list(self.history), text)
        except (GatewayError, ValidationError) as e:
            logger.warning("onboarding turn failed: %s", e)
            self._stop_typing()
            self.transcript.append(DisplayMessage(role="app", text=APOLOGY_TEXT))
            return
        self._stop_typing()
        self.transcript.append(DisplayMessage(role="app", text=reply.text))
        if isinstance(reply, OnboardingMessage):
            self.history.append(ChatTurn(role="user", text=text))
            self.history.append(ChatTurn(role="model", text=reply.text))
            return
        self.closing_text = reply.text
        await asyncio.sleep(self._summary_delay_s)
        self.profile = reply.profile
        self.phase = Phase.SUMMARY

    async def refine(self, text: str) -> None:
        """Free-text correction after the summary is shown, sent with the full history.
        A done reply replaces the profile; a message reply is kept as follow_up."""
        text = text.strip()
        if not text or self._typing or self.phase is not Phase.SUMMARY:
            return
        self._typing = True
        self.error = None
        try:
            reply = await self._call(list(self.history), text)
        except (GatewayError, ValidationError) as e:
            logger.warning("onboarding refinement failed: %s", e)
            self.error = str(e)
            return
        finally:
            self._typing = False
        if isinstance(reply, OnboardingDone):
            self.profile = reply.profile
            self.follow_up = None
            return
        self.history.append(ChatTurn(role="user", text=text))
        self.history.append(ChatTurn(role="model", text=reply.text))
        self.follow_up = reply.text

    def edit_field(self, name: str, value: Any) -> None:
        """Override one profile field, leaving the others untouched.

        life_areas accepts a list or a "·"-separated string; weekly_hours accepts an
        int or integer text. An edit the profile schema rejects is ignored.
        """
        if self.profile is None:
            raise RuntimeError("No profile to edit yet")
        if name not in ExtractedProfile.model_fields:
            raise ValueError(f"Unknown profile field: {name}")
        if name == "life_areas" and isinstance(value, str):
            value = [part.strip() for part in value.split(LIFE_AREA_SEPARATOR) if part.strip()]
        elif name == "weekly_hours":
            try:
                value = int(value)
            except (TypeError, ValueError):
                return
        try:
            self.profile = ExtractedProfile.model_validate({**self.profile.model_dump(), name: value})
        except ValidationError as e:
            logger.info("profile edit to %s ignored: %s", name, e.errors()[0]["msg"])

    async def confirm(self, session: SessionContext) -> bool:
        """Hand the profile to the profile store. Returns True once saved."""
        if self.profile is None or self.saving:
            return False
        self.saving = True
        self.error = None
        try:
            await session.save_profile(self.profile)
        except (SessionError, ValidationError) as e:
            logger.warning("profile save failed: %s", e)
            self.error = str(e)
            return False
        finally:
            self.saving = False
        self.phase = Phase.SAVED
        return True

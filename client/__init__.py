# ABOUTME: Client core of the app: gateway to the remote functions, session context, goal form and onboarding engine.
# ABOUTME: Rendering lives in ui/; everything here is plain asyncio so it can be driven and tested headless.

from client.gateway import GatewayError, LLMGateway
from client.goal_form import GoalFormController
from client.onboarding import OnboardingConversation
from client.session import SessionContext

__all__ = [
    "GatewayError",
    "GoalFormController",
    "LLMGateway",
    "OnboardingConversation",
    "SessionContext",
]

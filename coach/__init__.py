# ABOUTME: Coach package: model side of the remote functions the client invokes by name.
# ABOUTME: Use grade_goal / parse_goal / check_reality / onboarding_chat from coach.agent.

from coach.agent import check_reality, grade_goal, onboarding_chat, parse_goal

__all__ = ["check_reality", "grade_goal", "onboarding_chat", "parse_goal"]

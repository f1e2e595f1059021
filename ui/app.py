# ABOUTME: Streamlit UI: login/signup, then onboarding chat + profile summary, then the goal-creation form.
# ABOUTME: Thin driver over client/ controllers kept in session_state; each action runs to completion with asyncio.run.

import asyncio
from typing import Callable

import streamlit as st

from client.gateway import LLMGateway
from client.goal_form import GoalFormController, Section, score_band, visible_tips
from client.onboarding import LIFE_AREA_SEPARATOR, OnboardingConversation, Phase
from client.session import SessionContext, SessionError
from core.config import API_URL, PROOF_TYPES
from core.schemas import SMART_DIMENSIONS, ExtractedProfile, SmartGradeResult

SESSION_KEY = "session"
ONBOARDING_KEY = "onboarding"
GOAL_FORM_KEY = "goal_form"

_DIMENSION_LABELS = {
    "specific": "Specific",
    "measurable": "Measurable",
    "achievable": "Achievable",
    "relevant": "Relevant",
    "time_bound": "Time-bound",
}
_BAND_ICONS = {"good": "🟢", "fair": "🟡", "poor": "🔴"}
_PROOF_LABELS = {
    "photo": "📷 Photo",
    "video": "📹 Video",
    "screenshot": "📸 Screenshot",
    "text": "📝 Text",
    "voice": "🎤 Voice",
}


def _profile_rows(profile: ExtractedProfile) -> list[tuple[str, str, str]]:
    """(field, label, display value) for each summary row."""
    return [
        ("life_areas", "🎯 Focus areas", f" {LIFE_AREA_SEPARATOR} ".join(profile.life_areas)),
        ("direction", "✨ Direction", profile.direction),
        ("values", "💡 Values", profile.values),
        ("blockers", "⚡ Blockers", profile.blockers),
        ("weekly_hours", "⏱ Weekly time", f"~{profile.weekly_hours} hrs / week"),
    ]


def _dimension_line(result: SmartGradeResult, dim: str) -> str:
    score = getattr(result.scores, dim)
    return f"{_BAND_ICONS[score_band(score)]} {_DIMENSION_LABELS[dim]}: {score}"


def _session() -> SessionContext:
    if SESSION_KEY not in st.session_state:
        session = SessionContext(API_URL)
        session.sign_out()
        st.session_state[SESSION_KEY] = session
    return st.session_state[SESSION_KEY]


def _gateway(session: SessionContext) -> LLMGateway:
    return LLMGateway(API_URL, headers=session.auth_headers)


def _sign_out_and_rerun(session: SessionContext) -> None:
    session.sign_out()
    for key in (ONBOARDING_KEY, GOAL_FORM_KEY):
        st.session_state.pop(key, None)
    st.rerun()


def _render_login_signup(session: SessionContext) -> None:
    st.title("Prova")
    st.write("Sign in or create an account to continue.")
    tab_login, tab_signup = st.tabs(["Login", "Sign up"])
    for tab, label, action in (
        (tab_login, "Sign in", session.sign_in),
        (tab_signup, "Create account", session.sign_up),
    ):
        with tab:
            with st.form(f"{label}_form"):
                username = st.text_input("Username", key=f"{label}_username")
                password = st.text_input("Password", type="password", key=f"{label}_password")
                if st.form_submit_button(label):
                    if not (username and username.strip() and password):
                        st.error("Enter username and password.")
                        continue
                    try:
                        asyncio.run(action(username, password))
                    except SessionError as e:
                        st.error(str(e))
                    else:
                        st.rerun()


def _render_summary(conversation: OnboardingConversation, session: SessionContext) -> None:
    st.title("Here's what I got")
    st.caption("Edit any field, or tell me what to change.")
    for field, label, value in _profile_rows(conversation.profile):
        edited = st.text_input(label, value=value, key=f"profile_{field}")
        if edited != value:
            conversation.edit_field(field, edited)
    if conversation.follow_up:
        st.info(conversation.follow_up)
    refinement = st.chat_input("Add more detail...")
    if refinement:
        asyncio.run(conversation.refine(refinement))
        st.rerun()
    if conversation.error:
        st.error(conversation.error)
    if st.button("Looks good", disabled=conversation.saving):
        if asyncio.run(conversation.confirm(session)):
            st.session_state.pop(ONBOARDING_KEY, None)
            st.rerun()


def _render_onboarding(session: SessionContext) -> None:
    conversation: OnboardingConversation = st.session_state.setdefault(
        ONBOARDING_KEY, OnboardingConversation(_gateway(session))
    )
    if not conversation.transcript:
        asyncio.run(conversation.start())
    if conversation.phase is Phase.SUMMARY:
        _render_summary(conversation, session)
        return
    st.title("Let's get to know you")
    for message in conversation.transcript:
        if message.role == "typing":
            continue
        with st.chat_message("assistant" if message.role == "app" else "user"):
            st.write(message.text)
    text = st.chat_input("Type your answer...")
    if text:
        with st.spinner("..."):
            asyncio.run(conversation.send(text))
        st.rerun()


def _render_grade(form: GoalFormController) -> None:
    if form.parse_hint:
        col_hint, col_dismiss = st.columns([5, 1])
        col_hint.caption(f"📅 {form.parse_hint} · interpreted from your goal")
        if col_dismiss.button("✕", key="dismiss_hint"):
            form.dismiss_parse_hint()
            st.rerun()
    if form.grade_error:
        st.error(form.grade_error)
    result = form.draft.smart_grade
    if result is None:
        return
    st.metric("SMART score", result.score)
    tips = visible_tips(result)
    for dim in SMART_DIMENSIONS:
        st.write(_dimension_line(result, dim))
        if dim in tips:
            st.caption(tips[dim])


def _apply(form: GoalFormController, change: Callable[[], None]) -> None:
    """Apply an edit inside an event loop and wait for the grading it schedules."""

    async def _run() -> None:
        change()
        await form.settle()

    with st.spinner("Grading..."):
        asyncio.run(_run())


def _render_goal_form(session: SessionContext) -> None:
    form: GoalFormController = st.session_state.setdefault(
        GOAL_FORM_KEY, GoalFormController(_gateway(session), session)
    )
    st.title("New goal")
    goal_text = st.text_area(
        "Your goal",
        value=form.draft.goal_text,
        placeholder="I will...  (include how often, e.g. 3x a week)",
    )
    if goal_text != form.draft.goal_text:
        form.set_goal_text(goal_text)
        _apply(form, form.on_goal_blur)
    _render_grade(form)

    sections = form.visible_sections()
    if Section.PROOF_TYPE in sections:
        st.subheader("How will you prove it?")
        for proof_type in PROOF_TYPES:
            selected = proof_type in form.draft.proof_types
            if st.checkbox(_PROOF_LABELS[proof_type], value=selected, key=f"proof_{proof_type}") != selected:
                _apply(form, lambda p=proof_type: form.toggle_proof_type(p))
        description = st.text_area(
            "Proof description (optional)",
            value=form.draft.proof_description,
            placeholder="Describe what the proof should show...",
        )
        if description != form.draft.proof_description:
            _apply(form, lambda: form.set_proof_description(description))

    if Section.REALITY_CHECK in sections:
        st.subheader("Reality check")
        if st.button("Run reality check", disabled=form.checking_reality):
            with st.spinner("Checking..."):
                asyncio.run(form.run_reality_check())
        if form.reality_error:
            st.error(form.reality_error)
        check = form.draft.reality_check
        if check is not None:
            st.metric("Likelihood", f"{check.likelihood}%")
            for pitfall in check.pitfalls:
                st.markdown(f"- ⚠️ {pitfall}")
            for suggestion in check.suggestions:
                st.markdown(f"- 💡 {suggestion}")

    if Section.INVITE in sections:
        st.subheader("Invite a friend")
        st.text_input("Search username...", key="friend_search")
        st.caption("Friends set their own goal. Challenge starts once you both approve.")


def main():
    session = _session()
    if not session.authenticated:
        _render_login_signup(session)
        return
    if st.sidebar.button("Logout"):
        _sign_out_and_rerun(session)
        return
    if session.profile is None or not session.profile.onboarding_done:
        _render_onboarding(session)
        return
    _render_goal_form(session)


if __name__ == "__main__":
    main()

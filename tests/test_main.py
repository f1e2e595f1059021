# ABOUTME: FastAPI TestClient tests for /auth, /functions and /profile; mocks coach functions and the DB.
# ABOUTME: Tests signup/login, 401 when unauthenticated, 502 on model failure, and the profile round-trip.

import asyncio
from contextlib import contextmanager
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine, select
from sqlmodel.pool import StaticPool

from api.main import app
from client.onboarding import OnboardingConversation, Phase
from client.session import SessionContext, SessionStatus
from core.auth import create_access_token, hash_password
from core.database import User, UserProfile
from core.schemas import (
    ExtractedProfile,
    GoalParseResult,
    OnboardingDone,
    OnboardingMessage,
    RealityCheckResult,
    SmartGradeResult,
)


@pytest.fixture
def in_memory_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def fake_get_session(in_memory_engine):
    """Context manager that yields a session on the in-memory engine."""

    @contextmanager
    def _fake():
        with Session(in_memory_engine) as s:
            yield s

    return _fake


@pytest.fixture
def client(fake_get_session):
    """TestClient with get_session patched in api and auth (where it is imported)."""
    with (
        patch("api.main.get_session", fake_get_session),
        patch("core.auth.get_session", fake_get_session),
    ):
        yield TestClient(app)


@pytest.fixture
def auth_headers(in_memory_engine):
    """Create a user in the in-memory DB and return headers with a valid Bearer token."""
    with Session(in_memory_engine) as session:
        user = User(username="testuser", password_hash=hash_password("testpass"))
        session.add(user)
        session.commit()
        session.refresh(user)
        token = create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


# --- auth -------------------------------------------------------------------


def test_auth_signup_201_returns_token(client):
    resp = client.post("/auth/signup", json={"username": " newuser ", "password": "password123"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["username"] == "newuser"
    assert data["access_token"]
    assert data["token_type"] == "bearer"


def test_auth_signup_409_duplicate_username(client):
    body = {"username": "dupe", "password": "password123"}
    assert client.post("/auth/signup", json=body).status_code == 201
    resp = client.post("/auth/signup", json=body)
    assert resp.status_code == 409
    assert resp.json()["message"] == "Username already taken."


def test_auth_signup_400_short_password(client):
    resp = client.post("/auth/signup", json={"username": "newuser", "password": "short"})
    assert resp.status_code == 400
    assert "at least" in resp.json()["message"]


def test_auth_login_200_returns_token(client, auth_headers):
    resp = client.post("/auth/login", json={"username": "testuser", "password": "testpass"})
    assert resp.status_code == 200
    assert resp.json()["access_token"]


def test_auth_login_401_wrong_password(client, auth_headers):
    resp = client.post("/auth/login", json={"username": "testuser", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid username or password."


def test_auth_login_401_unknown_user(client):
    resp = client.post("/auth/login", json={"username": "ghost", "password": "password123"})
    assert resp.status_code == 401


# --- functions --------------------------------------------------------------


@pytest.mark.parametrize("name", ["smart-grade", "goal-parse", "reality-check", "onboarding-chat"])
def test_functions_require_auth(client, name):
    resp = client.post(f"/functions/{name}", json={"goalText": "Run daily"})
    assert resp.status_code == 401


def test_functions_reject_invalid_token(client):
    resp = client.post(
        "/functions/goal-parse",
        json={"goalText": "Run daily"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert resp.status_code == 401


@patch("api.main.grade_goal")
def test_smart_grade_200_passes_camel_case_request(mock_grade, client, auth_headers):
    mock_grade.return_value = SmartGradeResult(score=64)
    resp = client.post(
        "/functions/smart-grade",
        json={
            "goalText": "Run 3 times a week",
            "proofTypes": ["photo"],
            "proofDescription": "Selfie",
            "parsedFrequency": "3x per week",
            "userProfile": {"lifeAreas": ["health"], "direction": "10k", "values": "Grit"},
        },
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["score"] == 64
    assert set(resp.json()["scores"]) == {"specific", "measurable", "achievable", "relevant", "time_bound"}
    request = mock_grade.call_args.args[0]
    assert request.goal_text == "Run 3 times a week"
    assert request.parsed_frequency == "3x per week"
    assert request.user_profile.life_areas == ["health"]


@patch("api.main.grade_goal")
def test_smart_grade_502_when_agent_fails(mock_grade, client, auth_headers):
    mock_grade.side_effect = ValueError("Agent did not return valid SmartGradeResult JSON")
    resp = client.post("/functions/smart-grade", json={"goalText": "Run daily"}, headers=auth_headers)
    assert resp.status_code == 502
    assert resp.json() == {"message": "AI model failed to generate a valid response."}


@patch("api.main.parse_goal")
def test_goal_parse_returns_camel_case(mock_parse, client, auth_headers):
    mock_parse.return_value = GoalParseResult(frequency_count=3, frequency_unit="week", human_readable="3x per week")
    resp = client.post("/functions/goal-parse", json={"goalText": "Run 3x a week"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "frequencyCount": 3,
        "frequencyUnit": "week",
        "durationValue": None,
        "humanReadable": "3x per week",
    }
    mock_parse.assert_called_once_with("Run 3x a week")


@patch("api.main.check_reality")
def test_reality_check_200(mock_check, client, auth_headers):
    mock_check.return_value = RealityCheckResult(likelihood=40, pitfalls=["Weather"], suggestions=["Plan B"])
    resp = client.post(
        "/functions/reality-check",
        json={"goalText": "Run daily", "proofTypes": ["photo"]},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["likelihood"] == 40


@patch("api.main.onboarding_chat")
def test_onboarding_chat_message_reply(mock_chat, client, auth_headers):
    mock_chat.return_value = OnboardingMessage(text="What matters most to you?")
    resp = client.post(
        "/functions/onboarding-chat",
        json={"history": [{"role": "model", "text": "Hi!"}], "message": "Health"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json() == {"type": "message", "text": "What matters most to you?"}
    history, message = mock_chat.call_args.args
    assert history[0].role == "model"
    assert message == "Health"


@patch("api.main.onboarding_chat")
def test_onboarding_chat_done_reply_uses_camel_case_profile(mock_chat, client, auth_headers):
    mock_chat.return_value = OnboardingDone(
        text="Thanks!",
        profile=ExtractedProfile(
            life_areas=["health"], direction="10k", values="Grit", blockers="Time", weekly_hours=3
        ),
    )
    resp = client.post("/functions/onboarding-chat", json={"history": [], "message": "3h"}, headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["type"] == "done"
    assert body["profile"]["lifeAreas"] == ["health"]
    assert body["profile"]["weeklyHours"] == 3


@patch("api.main.onboarding_chat")
def test_onboarding_chat_502_on_failure(mock_chat, client, auth_headers):
    mock_chat.side_effect = ValueError("Model did not return a valid onboarding reply")
    resp = client.post("/functions/onboarding-chat", json={"history": [], "message": "hi"}, headers=auth_headers)
    assert resp.status_code == 502


# --- profile ----------------------------------------------------------------


def test_profile_requires_auth(client):
    assert client.get("/profile").status_code == 401


def test_profile_is_null_before_onboarding(client, auth_headers):
    resp = client.get("/profile", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"profile": None}


def test_profile_put_then_get_round_trip(client, auth_headers, profile_body, in_memory_engine):
    stored = {**profile_body, "onboardingDone": True}

    put = client.put("/profile", json=stored, headers=auth_headers)
    got = client.get("/profile", headers=auth_headers)

    assert put.status_code == 200
    assert put.json() == {"profile": stored}
    assert got.json() == {"profile": stored}
    with Session(in_memory_engine) as session:
        rows = session.exec(select(UserProfile)).all()
    assert len(rows) == 1
    assert rows[0].life_areas == '["health", "career"]'


def test_profile_put_upserts_single_row(client, auth_headers, profile_body, in_memory_engine):
    client.put("/profile", json={**profile_body, "onboardingDone": True}, headers=auth_headers)
    client.put("/profile", json={**profile_body, "weeklyHours": 9, "onboardingDone": True}, headers=auth_headers)

    resp = client.get("/profile", headers=auth_headers)
    assert resp.json()["profile"]["weeklyHours"] == 9
    with Session(in_memory_engine) as session:
        assert len(session.exec(select(UserProfile)).all()) == 1


def test_profile_put_rejects_negative_hours(client, auth_headers, profile_body):
    resp = client.put("/profile", json={**profile_body, "weeklyHours": -1}, headers=auth_headers)
    assert resp.status_code == 422


def test_confirmed_onboarding_profile_is_stored_unchanged(client, auth_headers, profile_body, gateway):
    """A profile confirmed on the summary screen reads back from the store field for field."""
    conversation = OnboardingConversation(gateway, summary_delay_s=0)
    conversation.profile = ExtractedProfile.model_validate(profile_body)
    conversation.phase = Phase.SUMMARY
    session = SessionContext("http://testserver")
    session.access_token = auth_headers["Authorization"].removeprefix("Bearer ")
    session.status = SessionStatus.AUTHENTICATED

    with patch("client.session.requests.request", client.request):
        saved = asyncio.run(conversation.confirm(session))

    assert saved
    assert session.profile.onboarding_done
    assert session.profile.model_dump(exclude={"onboarding_done"}) == conversation.profile.model_dump()
    assert client.get("/profile", headers=auth_headers).json()["profile"]["direction"] == profile_body["direction"]

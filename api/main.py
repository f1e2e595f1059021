# ABOUTME: FastAPI app: /auth (signup/login), /functions/<name> (model-backed remote functions), /profile (profile store).
# ABOUTME: 502 on agent/schema failure, 500 on database failure, 401 without a valid bearer token.

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from coach.agent import check_reality, grade_goal, onboarding_chat, parse_goal
from core.auth import (
    authenticate,
    create_access_token,
    get_current_user,
    hash_password,
    validate_credentials,
)
from core.config import ACCESS_TOKEN_EXPIRE_MINUTES, CORS_ORIGINS
from core.database import User, UserProfile, get_session
from core.schemas import (
    GoalParseRequest,
    GoalParseResult,
    OnboardingChatRequest,
    RealityCheckRequest,
    RealityCheckResult,
    SmartGradeRequest,
    SmartGradeResult,
    StoredProfile,
)

auth_router = APIRouter(prefix="/auth", tags=["auth"])
functions_router = APIRouter(prefix="/functions", tags=["functions"])
profile_router = APIRouter(prefix="/profile", tags=["profile"])

_AGENT_FAILURE_MESSAGE = "AI model failed to generate a valid response."


class CredentialsRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class SignupResponse(TokenResponse):
    id: str
    username: str


def _token_fields(user: User) -> dict:
    return {
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


@auth_router.post("/signup", status_code=201, response_model=SignupResponse)
def post_signup(req: CredentialsRequest):
    """Create a new user and return an access token so the client can skip calling login."""
    try:
        username = validate_credentials(req.username, req.password)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"message": str(e)})
    try:
        with get_session() as session:
            user = User(username=username, password_hash=hash_password(req.password))
            session.add(user)
            session.commit()
            session.refresh(user)
            return SignupResponse(id=str(user.id), username=user.username, **_token_fields(user))
    except IntegrityError:
        return JSONResponse(status_code=409, content={"message": "Username already taken."})
    except SQLAlchemyError:
        logging.exception("post_signup failed (database error)")
        return JSONResponse(status_code=500, content={"message": "Could not create account."})


@auth_router.post("/login", response_model=TokenResponse)
def post_login(req: CredentialsRequest):
    with get_session() as session:
        user = authenticate(session, req.username, req.password)
    if user is None:
        return JSONResponse(status_code=401, content={"message": "Invalid username or password."})
    return TokenResponse(**_token_fields(user))


def _agent_failure(function: str) -> JSONResponse:
    logging.exception("%s failed", function)
    return JSONResponse(status_code=502, content={"message": _AGENT_FAILURE_MESSAGE})


@functions_router.post("/smart-grade", response_model=SmartGradeResult)
def post_smart_grade(req: SmartGradeRequest, _user: User = Depends(get_current_user)):
    try:
        return grade_goal(req)
    except Exception:
        return _agent_failure("smart-grade")


@functions_router.post("/goal-parse", response_model=GoalParseResult)
def post_goal_parse(req: GoalParseRequest, _user: User = Depends(get_current_user)):
    try:
        return parse_goal(req.goal_text)
    except Exception:
        return _agent_failure("goal-parse")


@functions_router.post("/reality-check", response_model=RealityCheckResult)
def post_reality_check(req: RealityCheckRequest, _user: User = Depends(get_current_user)):
    try:
        return check_reality(req)
    except Exception:
        return _agent_failure("reality-check")


@functions_router.post("/onboarding-chat")
def post_onboarding_chat(req: OnboardingChatRequest, _user: User = Depends(get_current_user)):
    """One onboarding turn: {type: message, text} or {type: done, text, profile}."""
    try:
        reply = onboarding_chat(req.history, req.message)
    except Exception:
        return _agent_failure("onboarding-chat")
    return reply.model_dump(by_alias=True)


def _profile_to_json(row: UserProfile) -> dict:
    return StoredProfile(
        onboarding_done=row.onboarding_done,
        life_areas=json.loads(row.life_areas) if row.life_areas else [],
        direction=row.direction,
        values=row.values,
        blockers=row.blockers,
        weekly_hours=row.weekly_hours,
    ).model_dump(by_alias=True)


@profile_router.get("")
def get_profile(current_user: User = Depends(get_current_user)):
    """Return {"profile": {...}} for the authenticated user, or {"profile": null} before onboarding."""
    try:
        with get_session() as session:
            row = session.get(UserProfile, current_user.id)
            return {"profile": _profile_to_json(row) if row else None}
    except SQLAlchemyError:
        logging.exception("get_profile failed (database error)")
        return JSONResponse(status_code=500, content={"message": "Could not load profile."})


@profile_router.put("")
def put_profile(req: StoredProfile, current_user: User = Depends(get_current_user)):
    """Upsert the authenticated user's profile, keyed by user id."""
    try:
        with get_session() as session:
            row = session.get(UserProfile, current_user.id) or UserProfile(user_id=current_user.id)
            row.onboarding_done = req.onboarding_done
            row.life_areas = json.dumps(req.life_areas)
            row.direction = req.direction
            row.values = req.values
            row.blockers = req.blockers
            row.weekly_hours = req.weekly_hours
            row.updated_at = datetime.now(timezone.utc)
            session.add(row)
            session.commit()
            session.refresh(row)
            return {"profile": _profile_to_json(row)}
    except SQLAlchemyError:
        logging.exception("put_profile failed (database error)")
        return JSONResponse(status_code=500, content={"message": "Could not save profile."})


app = FastAPI(title="Prova API")
app.include_router(auth_router)
app.include_router(functions_router)
app.include_router(profile_router)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

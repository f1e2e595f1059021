# ABOUTME: Shared app configuration and constants used across API, coach agents and client core.
# ABOUTME: Keeps defaults in one place so server functions and the client stay in sync.

import os

from dotenv import load_dotenv

load_dotenv()

# Auth: SECRET_KEY must be set (e.g. in .env); no default to avoid JWT forgery in production.
_SECRET_KEY = os.environ.get("SECRET_KEY")
if not _SECRET_KEY:
    raise ValueError(
        "SECRET_KEY environment variable must be set. For local dev, add SECRET_KEY=your-secret to .env."
    )
SECRET_KEY = _SECRET_KEY
ALGORITHM = "HS256"
_DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 60


def _parse_int(name: str, default: int) -> int:
    raw = os.environ.get(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(name: str, default: float) -> float:
    raw = os.environ.get(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


ACCESS_TOKEN_EXPIRE_MINUTES = _parse_int(
    "ACCESS_TOKEN_EXPIRE_MINUTES", _DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES
)
MIN_PASSWORD_LENGTH = 8
MIN_USERNAME_LENGTH = 1
MAX_USERNAME_LENGTH = 128

# CORS: comma-separated origins; default allows local Streamlit UI. Set in production.
_raw_cors = os.environ.get("CORS_ORIGINS", "http://localhost:8501")
CORS_ORIGINS = [o.strip() for o in _raw_cors.split(",") if o.strip()] or [
    "http://localhost:8501"
]

# Model side
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash-lite")
MAX_USER_INPUT_LENGTH = 2000
ONBOARDING_START_TOKEN = "[start]"

# Client side
API_URL = os.environ.get("API_URL", "http://localhost:8000")
REQUEST_TIMEOUT_SECONDS = _parse_float("REQUEST_TIMEOUT_SECONDS", 60.0)
GRADE_DEBOUNCE_SECONDS = _parse_float("GRADE_DEBOUNCE_SECONDS", 0.8)
SUMMARY_TRANSITION_SECONDS = _parse_float("SUMMARY_TRANSITION_SECONDS", 1.5)

# Goal text guards (trimmed length). Grading and server-side grading need >= MIN_GOAL_LENGTH;
# the proof-type section opens strictly above PROOF_SECTION_MIN_LENGTH.
MIN_GOAL_LENGTH = 5
PROOF_SECTION_MIN_LENGTH = 5
GOAL_PARSE_MIN_LENGTH = 3

# Dimension scores at or above this hide their improvement tip.
ACCEPTABLE_DIMENSION_SCORE = 80
FAIR_SCORE = 50

PROOF_TYPES = ("photo", "video", "screenshot", "text", "voice")

# ABOUTME: Explicit auth/session context handed to the screens that need it (no ambient global state).
# ABOUTME: Lifecycle initializing -> authenticated | anonymous; also fronts the profile store.

import asyncio
import logging
from enum import Enum
from typing import Any

import requests

from core.config import API_URL, REQUEST_TIMEOUT_SECONDS
from core.schemas import ExtractedProfile, StoredProfile, UserProfileContext

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    INITIALIZING = "initializing"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionError(Exception):
    """Auth or profile-store call failed; the message is safe to display."""


def _message(response: requests.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return fallback


def _json_body(response: requests.Response) -> dict:
    try:
        body = response.json()
    except ValueError as e:
        raise SessionError("Invalid response from server.") from e
    if not isinstance(body, dict):
        raise SessionError("Invalid response from server.")
    return body


class SessionContext:
    def __init__(self, api_url: str = API_URL, timeout: float = REQUEST_TIMEOUT_SECONDS):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.status = SessionStatus.INITIALIZING
        self.access_token: str | None = None
        self.profile: StoredProfile | None = None

    @property
    def authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    def auth_headers(self) -> dict[str, str]:
        """Bearer header for authenticated calls, or an empty dict when signed out."""
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            return await asyncio.to_thread(
                requests.request,
                method,
                f"{self.api_url}{path}",
                headers=self.auth_headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise SessionError(f"Could not reach the API: {e}") from e

    async def _authenticate(self, path: str, username: str, password: str, ok_status: int) -> None:
        response = await self._request(
            "POST", path, json={"username": username.strip(), "password": password}
        )
        if response.status_code != ok_status:
            raise SessionError(_message(response, "Sign in failed."))
        token = _json_body(response).get("access_token")
        if not token:
            raise SessionError("Invalid response from server (no token).")
        self.access_token = token
        self.status = SessionStatus.AUTHENTICATED
        await self.refresh_profile()

    async def sign_up(self, username: str, password: str) -> None:
        await self._authenticate("/auth/signup", username, password, 201)

    async def sign_in(self, username: str, password: str) -> None:
        await self._authenticate("/auth/login", username, password, 200)

    async def restore(self, token: str | None) -> None:
        """Resume a stored token. Ends anonymous when there is none or the server rejects it."""
        if not token:
            self.sign_out()
            return
        self.access_token = token
        self.status = SessionStatus.AUTHENTICATED
        try:
            await self.refresh_profile()
        except SessionError:
            self.sign_out()
            raise

    def sign_out(self) -> None:
        self.access_token = None
        self.profile = None
        self.status = SessionStatus.ANONYMOUS

    async def refresh_profile(self) -> StoredProfile | None:
        if not self.authenticated:
            self.profile = None
            return None
        response = await self._request("GET", "/profile")
        if response.status_code == 401:
            raise SessionError("Session expired. Please sign in again.")
        if response.status_code != 200:
            raise SessionError(_message(response, "Could not load profile."))
        data = _json_body(response).get("profile")
        self.profile = StoredProfile.model_validate(data) if data else None
        return self.profile

    async def save_profile(self, profile: ExtractedProfile) -> StoredProfile:
        """Upsert the confirmed profile with the onboarding flag set, then refresh."""
        if not self.authenticated:
            raise SessionError("Sign in before saving your profile.")
        record = StoredProfile(**profile.model_dump(), onboarding_done=True)
        response = await self._request("PUT", "/profile", json=record.model_dump(by_alias=True))
        if response.status_code != 200:
            raise SessionError(_message(response, "Could not save profile."))
        logger.info("profile saved")
        await self.refresh_profile()
        return self.profile or record

    def grading_context(self) -> UserProfileContext | None:
        if self.profile is None:
            return None
        return UserProfileContext(
            life_areas=self.profile.life_areas,
            direction=self.profile.direction,
            values=self.profile.values,
        )

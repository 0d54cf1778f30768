"""Client for the hosted identity provider's REST API (Supabase Auth / GoTrue)."""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from salesdesk.core.config import Settings

logger = logging.getLogger(__name__)


class IdentityNotConfiguredError(Exception):
    """Raised when an identity operation needs a key that is not configured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class IdentityError(Exception):
    """Raised when the identity provider rejects a call or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)

    @property
    def is_client_error(self) -> bool:
        """True when the provider answered 4xx (bad credentials, invalid token...)."""
        return self.status_code is not None and 400 <= self.status_code < 500


class IdentityUser(BaseModel):
    """User object as returned by the identity provider."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    app_metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}

    @property
    def require_password_change(self) -> bool:
        return self.user_metadata.get("require_password_change") is True


class IdentitySession(BaseModel):
    """Access/refresh token pair plus the user it belongs to."""

    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    user: IdentityUser

    model_config = {"extra": "ignore"}


def generate_pkce_pair() -> tuple[str, str]:
    """Return (code_verifier, S256 code_challenge)."""
    verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


def _error_detail(resp: httpx.Response) -> tuple[str, str | None]:
    """Pull a human message and error code out of a provider error body."""
    try:
        body = resp.json()
    except ValueError:
        return (resp.text[:500] if resp.text else "Unknown error"), None
    if not isinstance(body, dict):
        return "Unknown error", None
    message = (
        body.get("msg")
        or body.get("error_description")
        or body.get("message")
        or body.get("error")
        or "Unknown error"
    )
    code = body.get("error_code") or body.get("error")
    return str(message)[:500], (str(code) if code else None)


class GoTrueClient:
    """
    Thin async wrapper over the identity REST endpoints.

    ``api_key`` is the anon key for user-facing calls and the service-role key
    for the admin ones. ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        settings: Settings,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.identity_url
        self._api_key = api_key
        self._timeout = httpx.Timeout(settings.IDENTITY_REQUEST_TIMEOUT_SEC)
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        bearer: str | None = None,
    ) -> dict[str, Any]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {bearer or self._api_key}",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(
                    method, path, json=json, params=params, headers=headers
                )
        except httpx.TimeoutException as e:
            logger.warning("Identity request timed out", extra={"path": path})
            raise IdentityError("Identity provider request timed out.") from e
        except httpx.HTTPError as e:
            logger.warning("Identity request failed", extra={"path": path})
            raise IdentityError("Identity provider is unreachable.") from e

        if resp.status_code >= 400:
            message, code = _error_detail(resp)
            raise IdentityError(message, status_code=resp.status_code, code=code)
        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise IdentityError("Identity provider response is not valid JSON.") from e
        if not isinstance(data, dict):
            raise IdentityError("Identity provider response is not a JSON object.")
        return data

    @staticmethod
    def _session(data: dict[str, Any]) -> IdentitySession:
        try:
            return IdentitySession.model_validate(data)
        except Exception as e:
            raise IdentityError("Identity provider returned an incomplete session.") from e

    @staticmethod
    def _user(data: dict[str, Any]) -> IdentityUser:
        # Some endpoints wrap the user, others return it bare.
        payload = data.get("user") if isinstance(data.get("user"), dict) else data
        try:
            return IdentityUser.model_validate(payload)
        except Exception as e:
            raise IdentityError("Identity provider returned an incomplete user.") from e

    async def sign_in_with_password(self, email: str, password: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._session(data)

    async def refresh_session(self, refresh_token: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return self._session(data)

    async def exchange_code_for_session(self, auth_code: str, code_verifier: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": code_verifier},
        )
        return self._session(data)

    async def sign_up(
        self,
        email: str,
        password: str,
        data: dict[str, Any] | None = None,
        redirect_to: str | None = None,
        code_challenge: str | None = None,
    ) -> tuple[IdentityUser, IdentitySession | None]:
        """Register a user. Returns the session too when no email confirmation is required."""
        body: dict[str, Any] = {"email": email, "password": password, "data": data or {}}
        if code_challenge:
            body["code_challenge"] = code_challenge
            body["code_challenge_method"] = "s256"
        params = {"redirect_to": redirect_to} if redirect_to else None
        result = await self._request("POST", "/signup", json=body, params=params)
        if result.get("access_token"):
            session = self._session(result)
            return session.user, session
        return self._user(result), None

    async def get_user(self, access_token: str) -> IdentityUser:
        data = await self._request("GET", "/user", bearer=access_token)
        return self._user(data)

    async def update_user(
        self,
        access_token: str,
        password: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> IdentityUser:
        body: dict[str, Any] = {}
        if password is not None:
            body["password"] = password
        if data is not None:
            body["data"] = data
        result = await self._request("PUT", "/user", json=body, bearer=access_token)
        return self._user(result)

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", params={"scope": "global"}, bearer=access_token)

    async def reset_password_for_email(
        self,
        email: str,
        redirect_to: str | None,
        code_challenge: str,
    ) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._request(
            "POST",
            "/recover",
            params=params,
            json={
                "email": email,
                "code_challenge": code_challenge,
                "code_challenge_method": "s256",
            },
        )

    async def admin_create_user(
        self,
        email: str,
        password: str,
        user_metadata: dict[str, Any] | None = None,
        email_confirm: bool = True,
    ) -> IdentityUser:
        data = await self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata or {},
            },
        )
        return self._user(data)

    async def admin_delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/admin/users/{user_id}")


def create_admin_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GoTrueClient:
    """Identity client authenticated with the service-role key."""
    if settings.SUPABASE_SERVICE_ROLE_KEY is None:
        raise IdentityNotConfiguredError(
            "SUPABASE_SERVICE_ROLE_KEY is not set; admin identity operations are unavailable."
        )
    return GoTrueClient(
        settings,
        settings.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
        transport=transport,
    )

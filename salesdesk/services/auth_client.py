"""Cookie-backed auth handle: reads the session from the bridge and writes refreshed tokens back."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import jwt

from salesdesk.core.session_bridge import (
    ACCESS_TOKEN_COOKIE,
    CODE_VERIFIER_COOKIE,
    REFRESH_TOKEN_COOKIE,
    CookieToSet,
    SessionBridge,
    expired_cookie,
)
from salesdesk.services.identity import (
    GoTrueClient,
    IdentityError,
    IdentitySession,
    IdentityUser,
    generate_pkce_pair,
)

if TYPE_CHECKING:
    from salesdesk.core.config import Settings

logger = logging.getLogger(__name__)

# Tokens this close to expiry are refreshed instead of used.
EXPIRY_MARGIN_SEC = 10
# Audience claim on user access tokens.
ACCESS_TOKEN_AUDIENCE = "authenticated"
# How long the PKCE verifier cookie lives (matches the provider's email link lifetime).
CODE_VERIFIER_MAX_AGE_SEC = 60 * 60


class AuthClient:
    """
    Session operations for the current request.

    Every token the provider hands back goes through ``SessionBridge.set_all``,
    so the response carries it and later reads in the same request see it.
    """

    def __init__(self, gotrue: GoTrueClient, bridge: SessionBridge, settings: Settings) -> None:
        self._gotrue = gotrue
        self._bridge = bridge
        self._settings = settings
        # True once this request has swapped the token pair for a new one.
        self.refreshed = False

    def _save_session(self, session: IdentitySession) -> None:
        self._bridge.set_all(
            [
                CookieToSet(ACCESS_TOKEN_COOKIE, session.access_token),
                CookieToSet(REFRESH_TOKEN_COOKIE, session.refresh_token),
            ]
        )

    def _save_code_verifier(self, verifier: str) -> None:
        options = {"max_age": CODE_VERIFIER_MAX_AGE_SEC, "httponly": True}
        self._bridge.set_all([CookieToSet(CODE_VERIFIER_COOKIE, verifier, options)])

    def _remove_session(self) -> None:
        self._bridge.set_all(
            [expired_cookie(ACCESS_TOKEN_COOKIE), expired_cookie(REFRESH_TOKEN_COOKIE)]
        )

    def _read_claims(self, access_token: str) -> dict[str, Any] | None:
        """Decode the access token; None when it is malformed or its signature is wrong."""
        secret = self._settings.SUPABASE_JWT_SECRET
        try:
            if secret is not None:
                return jwt.decode(
                    access_token,
                    secret.get_secret_value(),
                    algorithms=["HS256"],
                    audience=ACCESS_TOKEN_AUDIENCE,
                    options={"verify_exp": False},
                )
            return jwt.decode(access_token, options={"verify_signature": False})
        except jwt.PyJWTError:
            logger.info("Discarding unreadable access token cookie")
            return None

    @staticmethod
    def _is_expired(claims: dict[str, Any]) -> bool:
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            return True
        return exp - EXPIRY_MARGIN_SEC <= time.time()

    async def _user_for_token(self, access_token: str, claims: dict[str, Any]) -> IdentityUser | None:
        if self._settings.SUPABASE_JWT_SECRET is not None:
            sub = claims.get("sub")
            if not sub:
                return None
            return IdentityUser(
                id=str(sub),
                email=claims.get("email"),
                user_metadata=claims.get("user_metadata") or {},
                app_metadata=claims.get("app_metadata") or {},
            )
        # No local secret: let the provider vouch for the token.
        try:
            return await self._gotrue.get_user(access_token)
        except IdentityError as e:
            if e.is_client_error:
                return None
            raise

    async def _refresh(self, refresh_token: str) -> IdentitySession | None:
        try:
            session = await self._gotrue.refresh_session(refresh_token)
        except IdentityError as e:
            if e.is_client_error:
                logger.info("Refresh token rejected; clearing session cookies")
                self._remove_session()
                return None
            raise
        self._save_session(session)
        self.refreshed = True
        return session

    async def get_session(self) -> IdentitySession | None:
        """
        Current session from cookies, refreshing an expired access token.

        Returns None when there is no usable session. Raises IdentityError when
        the provider cannot be reached during a refresh.
        """
        access_token = self._bridge.get(ACCESS_TOKEN_COOKIE)
        refresh_token = self._bridge.get(REFRESH_TOKEN_COOKIE)
        if not access_token and not refresh_token:
            return None

        if access_token:
            claims = self._read_claims(access_token)
            if claims is not None and not self._is_expired(claims):
                user = await self._user_for_token(access_token, claims)
                if user is not None:
                    return IdentitySession(
                        access_token=access_token,
                        refresh_token=refresh_token or "",
                        expires_at=int(claims["exp"]),
                        expires_in=max(0, int(claims["exp"] - time.time())),
                        user=user,
                    )

        if not refresh_token:
            return None
        return await self._refresh(refresh_token)

    async def refresh_session(self) -> IdentitySession | None:
        """Force a refresh with the refresh-token cookie, whatever the access token's state."""
        refresh_token = self._bridge.get(REFRESH_TOKEN_COOKIE)
        if not refresh_token:
            return None
        return await self._refresh(refresh_token)

    async def sign_in_with_password(self, email: str, password: str) -> IdentitySession:
        session = await self._gotrue.sign_in_with_password(email, password)
        self._save_session(session)
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        data: dict[str, Any] | None = None,
        redirect_to: str | None = None,
    ) -> IdentityUser:
        verifier, challenge = generate_pkce_pair()
        user, session = await self._gotrue.sign_up(
            email, password, data=data, redirect_to=redirect_to, code_challenge=challenge
        )
        if session is not None:
            self._save_session(session)
        else:
            self._save_code_verifier(verifier)
        return user

    async def sign_out(self) -> None:
        """Revoke the session at the provider (best effort) and always drop the cookies."""
        access_token = self._bridge.get(ACCESS_TOKEN_COOKIE)
        if access_token:
            try:
                await self._gotrue.sign_out(access_token)
            except IdentityError as e:
                logger.warning(
                    "Provider sign-out failed; clearing cookies anyway",
                    extra={"status_code": e.status_code},
                )
        self._remove_session()

    async def exchange_code_for_session(self, auth_code: str) -> IdentitySession:
        verifier = self._bridge.get(CODE_VERIFIER_COOKIE) or ""
        session = await self._gotrue.exchange_code_for_session(auth_code, verifier)
        self._save_session(session)
        self._bridge.set_all([expired_cookie(CODE_VERIFIER_COOKIE)])
        return session

    async def update_user(
        self,
        password: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> IdentityUser:
        session = await self.get_session()
        if session is None:
            raise IdentityError("Auth session missing.", status_code=401)
        return await self._gotrue.update_user(session.access_token, password=password, data=data)

    async def reset_password_for_email(self, email: str, redirect_to: str | None) -> None:
        verifier, challenge = generate_pkce_pair()
        await self._gotrue.reset_password_for_email(email, redirect_to, challenge)
        self._save_code_verifier(verifier)

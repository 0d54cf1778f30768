"""Unit tests for salesdesk.services.auth_client: reading, refreshing and clearing the cookie session."""

import asyncio
import unittest

from api_support import FakeIdentityProvider, make_settings, make_token
from salesdesk.core.session_bridge import (
    ACCESS_TOKEN_COOKIE,
    CODE_VERIFIER_COOKIE,
    REFRESH_TOKEN_COOKIE,
    SessionBridge,
)
from salesdesk.services.auth_client import AuthClient
from salesdesk.services.identity import GoTrueClient, IdentityError


def _client(cookies: dict[str, str], identity: FakeIdentityProvider) -> tuple[AuthClient, SessionBridge]:
    settings = make_settings()
    bridge = SessionBridge(cookies, settings)
    gotrue = GoTrueClient(settings, "anon-test-key", transport=identity.transport())
    return AuthClient(gotrue, bridge, settings), bridge


class TestGetSession(unittest.TestCase):
    """get_session uses a valid access token and refreshes an expired one."""

    def test_no_cookies_returns_none_without_calls(self) -> None:
        identity = FakeIdentityProvider()
        auth, bridge = _client({}, identity)
        self.assertIsNone(asyncio.run(auth.get_session()))
        self.assertEqual(identity.requests, [])
        self.assertEqual(bridge.pending, [])

    def test_valid_access_token_used_locally(self) -> None:
        identity = FakeIdentityProvider()
        auth, bridge = _client({ACCESS_TOKEN_COOKIE: make_token("u1")}, identity)
        session = asyncio.run(auth.get_session())
        self.assertIsNotNone(session)
        self.assertEqual(session.user.id, "u1")
        self.assertFalse(auth.refreshed)
        self.assertEqual(identity.requests, [])

    def test_expired_access_token_refreshed(self) -> None:
        identity = FakeIdentityProvider()
        identity.refresh_tokens["r-old"] = "u1"
        auth, bridge = _client(
            {ACCESS_TOKEN_COOKIE: make_token("u1", expires_in=-60), REFRESH_TOKEN_COOKIE: "r-old"},
            identity,
        )
        session = asyncio.run(auth.get_session())
        self.assertEqual(session.user.id, "u1")
        self.assertTrue(auth.refreshed)
        self.assertEqual(bridge.get(REFRESH_TOKEN_COOKIE), "refresh-new")
        self.assertEqual(bridge.get(ACCESS_TOKEN_COOKIE), session.access_token)
        names = {c.name: c for c in bridge.pending}
        self.assertEqual(set(names), {ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE})
        self.assertTrue(names[ACCESS_TOKEN_COOKIE].options["httponly"])
        self.assertEqual(names[REFRESH_TOKEN_COOKIE].options["samesite"], "lax")

    def test_tampered_token_falls_back_to_refresh(self) -> None:
        identity = FakeIdentityProvider()
        identity.refresh_tokens["r1"] = "u1"
        forged = make_token("u1")[:-4] + "abcd"
        auth, _ = _client({ACCESS_TOKEN_COOKIE: forged, REFRESH_TOKEN_COOKIE: "r1"}, identity)
        session = asyncio.run(auth.get_session())
        self.assertEqual(session.user.id, "u1")
        self.assertEqual(len(identity.calls("POST", "/token")), 1)

    def test_rejected_refresh_clears_cookies(self) -> None:
        identity = FakeIdentityProvider()
        auth, bridge = _client(
            {ACCESS_TOKEN_COOKIE: make_token("u1", expires_in=-60), REFRESH_TOKEN_COOKIE: "revoked"},
            identity,
        )
        self.assertIsNone(asyncio.run(auth.get_session()))
        self.assertIsNone(bridge.get(ACCESS_TOKEN_COOKIE))
        self.assertIsNone(bridge.get(REFRESH_TOKEN_COOKIE))
        self.assertTrue(all(c.options["max_age"] == 0 for c in bridge.pending))


class TestSignOut(unittest.TestCase):
    """sign_out always drops the cookies, even when the provider call fails."""

    def test_cookies_removed_when_provider_fails(self) -> None:
        identity = FakeIdentityProvider()
        auth, bridge = _client(
            {ACCESS_TOKEN_COOKIE: make_token("u1"), REFRESH_TOKEN_COOKIE: "r1"},
            identity,
        )

        async def failing_sign_out(access_token: str) -> None:
            raise IdentityError("Identity provider is unreachable.")

        auth._gotrue.sign_out = failing_sign_out
        asyncio.run(auth.sign_out())
        self.assertIsNone(bridge.get(ACCESS_TOKEN_COOKIE))
        self.assertIsNone(bridge.get(REFRESH_TOKEN_COOKIE))


class TestUpdateUser(unittest.TestCase):
    def test_requires_session(self) -> None:
        auth, _ = _client({}, FakeIdentityProvider())
        with self.assertRaises(IdentityError) as ctx:
            asyncio.run(auth.update_user(password="new-password"))
        self.assertEqual(ctx.exception.status_code, 401)


class TestCodeVerifierCookie(unittest.TestCase):
    """The PKCE verifier is a secret and never readable from page scripts."""

    def test_recovery_verifier_is_httponly(self) -> None:
        identity = FakeIdentityProvider()
        auth, bridge = _client({}, identity)
        asyncio.run(auth.reset_password_for_email("u1@example.com", "http://site.test/api/auth/callback"))
        (cookie,) = bridge.pending
        self.assertEqual(cookie.name, CODE_VERIFIER_COOKIE)
        self.assertTrue(cookie.options["httponly"])
        self.assertEqual(cookie.options["max_age"], 3600)

    def test_sign_up_verifier_is_httponly(self) -> None:
        identity = FakeIdentityProvider()
        auth, bridge = _client({}, identity)
        asyncio.run(auth.sign_up("new@example.com", "secret123"))
        (cookie,) = bridge.pending
        self.assertEqual(cookie.name, CODE_VERIFIER_COOKIE)
        self.assertTrue(cookie.options["httponly"])

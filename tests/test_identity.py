"""Unit tests for salesdesk.services.identity: request shape and error mapping of the GoTrue client."""

import asyncio
import unittest

import httpx

from api_support import make_settings, session_payload
from salesdesk.services.identity import (
    GoTrueClient,
    IdentityError,
    IdentityNotConfiguredError,
    create_admin_client,
    generate_pkce_pair,
)


def _client(handler) -> GoTrueClient:
    return GoTrueClient(make_settings(), "anon-test-key", transport=httpx.MockTransport(handler))


class TestRequests(unittest.TestCase):
    def test_password_grant_sends_keys(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=session_payload("u1"))

        session = asyncio.run(_client(handler).sign_in_with_password("a@example.com", "pw"))
        self.assertEqual(session.user.id, "u1")
        request = seen[0]
        self.assertEqual(str(request.url), "http://identity.test/auth/v1/token?grant_type=password")
        self.assertEqual(request.headers["apikey"], "anon-test-key")
        self.assertEqual(request.headers["Authorization"], "Bearer anon-test-key")

    def test_user_calls_use_access_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "u1", "email": "a@example.com"})

        user = asyncio.run(_client(handler).get_user("user-token"))
        self.assertEqual(user.email, "a@example.com")
        self.assertEqual(seen[0].headers["Authorization"], "Bearer user-token")


class TestErrors(unittest.TestCase):
    def test_client_error_carries_status_and_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
            )

        with self.assertRaises(IdentityError) as ctx:
            asyncio.run(_client(handler).sign_in_with_password("a@example.com", "bad"))
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Invalid login credentials")
        self.assertEqual(ctx.exception.code, "invalid_grant")
        self.assertTrue(ctx.exception.is_client_error)

    def test_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(IdentityError) as ctx:
            asyncio.run(_client(handler).refresh_session("r1"))
        self.assertIsNone(ctx.exception.status_code)
        self.assertFalse(ctx.exception.is_client_error)

    def test_incomplete_session(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"access_token": "a"})

        with self.assertRaises(IdentityError):
            asyncio.run(_client(handler).refresh_session("r1"))

    def test_admin_client_needs_service_key(self) -> None:
        with self.assertRaises(IdentityNotConfiguredError):
            create_admin_client(make_settings(SUPABASE_SERVICE_ROLE_KEY=None))


class TestPkce(unittest.TestCase):
    def test_challenge_is_unpadded_sha256(self) -> None:
        verifier, challenge = generate_pkce_pair()
        self.assertGreaterEqual(len(verifier), 43)
        self.assertEqual(len(challenge), 43)
        self.assertNotIn("=", challenge)

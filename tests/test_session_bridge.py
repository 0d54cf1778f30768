"""Unit tests for salesdesk.core.session_bridge: cookie defaults, httponly forcing, guarded writes."""

import unittest

from fastapi import Response

from api_support import make_settings
from salesdesk.core.session_bridge import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    CookieToSet,
    SessionBridge,
    expired_cookie,
)


def _set_cookie_headers(response: Response) -> list[str]:
    return [v.decode("latin-1") for k, v in response.raw_headers if k == b"set-cookie"]


class TestCookieOptions(unittest.TestCase):
    """Defaults apply first, provider options override them, token cookies are always httponly."""

    def test_defaults_in_dev(self) -> None:
        bridge = SessionBridge({}, make_settings(APP_ENV="dev"))
        options = bridge.cookie_options("theme", {})
        self.assertEqual(options["samesite"], "lax")
        self.assertFalse(options["secure"])
        self.assertEqual(options["max_age"], 7 * 24 * 60 * 60)
        self.assertEqual(options["path"], "/")
        self.assertNotIn("httponly", options)

    def test_secure_in_prod(self) -> None:
        bridge = SessionBridge({}, make_settings(APP_ENV="prod"))
        self.assertTrue(bridge.cookie_options("theme", {})["secure"])

    def test_provider_options_override_defaults(self) -> None:
        bridge = SessionBridge({}, make_settings())
        options = bridge.cookie_options("theme", {"max_age": 60, "path": "/app"})
        self.assertEqual(options["max_age"], 60)
        self.assertEqual(options["path"], "/app")

    def test_httponly_forced_for_token_cookies(self) -> None:
        bridge = SessionBridge({}, make_settings())
        for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, "custom-access-cookie"):
            options = bridge.cookie_options(name, {"httponly": False})
            self.assertTrue(options["httponly"], name)

    def test_unknown_option_rejected(self) -> None:
        bridge = SessionBridge({}, make_settings())
        with self.assertRaises(ValueError):
            bridge.cookie_options("theme", {"priority": "high"})


class TestSetAll(unittest.TestCase):
    """set_all updates the request-side map and queues one write per cookie name."""

    def test_later_reads_see_new_tokens(self) -> None:
        bridge = SessionBridge({ACCESS_TOKEN_COOKIE: "old"}, make_settings())
        bridge.set_all([CookieToSet(ACCESS_TOKEN_COOKIE, "new")])
        self.assertEqual(bridge.get(ACCESS_TOKEN_COOKIE), "new")
        self.assertIn({"name": ACCESS_TOKEN_COOKIE, "value": "new"}, bridge.get_all())

    def test_removal_drops_request_cookie(self) -> None:
        bridge = SessionBridge({REFRESH_TOKEN_COOKIE: "r"}, make_settings())
        bridge.set_all([expired_cookie(REFRESH_TOKEN_COOKIE)])
        self.assertIsNone(bridge.get(REFRESH_TOKEN_COOKIE))
        self.assertEqual(bridge.pending[0].options["max_age"], 0)

    def test_last_write_per_name_wins(self) -> None:
        bridge = SessionBridge({}, make_settings())
        bridge.set_all([CookieToSet("a", "1"), CookieToSet("a", "2")])
        self.assertEqual([c.value for c in bridge.pending], ["2"])

    def test_bad_cookie_logged_and_others_still_set(self) -> None:
        bridge = SessionBridge({}, make_settings())
        with self.assertLogs("salesdesk.core.session_bridge", level="ERROR") as logs:
            bridge.set_all(
                [
                    CookieToSet(ACCESS_TOKEN_COOKIE, "a"),
                    CookieToSet("broken", "x", {"bogus": True}),
                    CookieToSet(REFRESH_TOKEN_COOKIE, "r"),
                ]
            )
        self.assertTrue(any("Failed to set cookie" in line for line in logs.output))
        self.assertEqual(
            [c.name for c in bridge.pending],
            [ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE],
        )
        self.assertIsNone(bridge.get("broken"))


class TestApply(unittest.TestCase):
    """apply writes every queued cookie; one failing header write does not stop the rest."""

    def test_writes_token_cookies_with_attributes(self) -> None:
        bridge = SessionBridge({}, make_settings())
        bridge.set_all([CookieToSet(ACCESS_TOKEN_COOKIE, "a"), CookieToSet(REFRESH_TOKEN_COOKIE, "r")])
        response = Response()
        bridge.apply(response)
        headers = _set_cookie_headers(response)
        self.assertEqual(len(headers), 2)
        for header in headers:
            self.assertIn("HttpOnly", header)
            self.assertIn("Path=/", header)
            self.assertIn("SameSite=lax", header)

    def test_failing_write_is_guarded(self) -> None:
        bridge = SessionBridge({}, make_settings())
        bridge.set_all(
            [
                CookieToSet("first", "1"),
                CookieToSet("second", "2", {"samesite": "sometimes"}),
                CookieToSet("third", "3"),
            ]
        )
        response = Response()
        with self.assertLogs("salesdesk.core.session_bridge", level="ERROR"):
            bridge.apply(response)
        headers = _set_cookie_headers(response)
        self.assertTrue(any(h.startswith("first=1") for h in headers))
        self.assertTrue(any(h.startswith("third=3") for h in headers))
        self.assertFalse(any(h.startswith("second=") for h in headers))

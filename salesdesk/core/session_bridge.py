"""
Session bridge: keeps auth cookies in sync between the incoming request, the
identity client and the outgoing response.

The identity client reads tokens through ``get``/``get_all`` and writes
refreshed ones through ``set_all``. Writes update the request-side cookie map
right away (so later reads in the same request see the new tokens) and are
queued; ``mirror_session_cookies`` copies the queue onto the response.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request, Response

from salesdesk.core.config import Settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
# PKCE verifier kept between a recovery/sign-up request and the email link callback.
CODE_VERIFIER_COOKIE = "sb-code-verifier"

SESSION_COOKIE_NAMES = (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE)

# Keyword arguments accepted by Response.set_cookie besides key/value.
COOKIE_OPTION_NAMES = frozenset(
    {"max_age", "expires", "path", "domain", "secure", "httponly", "samesite"}
)

_STATE_KEY = "session_bridge"


@dataclass
class CookieToSet:
    """One cookie write requested by the identity client."""

    name: str
    value: str
    options: dict[str, Any] = field(default_factory=dict)


def expired_cookie(name: str) -> CookieToSet:
    """Cookie write that makes the browser drop ``name``."""
    return CookieToSet(name=name, value="", options={"max_age": 0, "expires": 0})


def _is_removal(cookie: CookieToSet) -> bool:
    return not cookie.value or cookie.options.get("max_age") == 0


def _forces_httponly(name: str) -> bool:
    lowered = name.lower()
    return "access" in lowered or "refresh" in lowered


class SessionBridge:
    """Cookie carrier shared by the request, the identity client and the response."""

    def __init__(self, request_cookies: Mapping[str, str], settings: Settings) -> None:
        self._cookies: dict[str, str] = dict(request_cookies)
        self._settings = settings
        # Last write per cookie name wins.
        self._pending: dict[str, CookieToSet] = {}

    def get(self, name: str) -> str | None:
        value = self._cookies.get(name)
        return value or None

    def get_all(self) -> list[dict[str, str]]:
        return [{"name": name, "value": value} for name, value in self._cookies.items()]

    @property
    def pending(self) -> list[CookieToSet]:
        return list(self._pending.values())

    def default_options(self) -> dict[str, Any]:
        return {
            "samesite": "lax",
            "secure": self._settings.APP_ENV == "prod",
            "max_age": self._settings.SESSION_COOKIE_MAX_AGE_SEC,
            "path": "/",
        }

    def cookie_options(self, name: str, provider_options: Mapping[str, Any]) -> dict[str, Any]:
        """Defaults, then provider options, then httponly for token cookies."""
        unknown = set(provider_options) - COOKIE_OPTION_NAMES
        if unknown:
            raise ValueError(f"Unsupported cookie option(s): {', '.join(sorted(unknown))}")
        options = {**self.default_options(), **provider_options}
        if _forces_httponly(name):
            options["httponly"] = True
        return options

    def set_all(self, cookies: Iterable[CookieToSet]) -> None:
        for cookie in cookies:
            try:
                options = self.cookie_options(cookie.name, cookie.options)
                if _is_removal(cookie):
                    self._cookies.pop(cookie.name, None)
                else:
                    self._cookies[cookie.name] = cookie.value
                self._pending[cookie.name] = CookieToSet(cookie.name, cookie.value, options)
            except Exception:
                logger.exception("Failed to set cookie", extra={"cookie_name": cookie.name})

    def apply(self, response: Response) -> None:
        """Write queued cookies onto ``response``; one bad cookie does not stop the rest."""
        for cookie in self._pending.values():
            try:
                response.set_cookie(cookie.name, cookie.value, **cookie.options)
            except Exception:
                logger.exception(
                    "Failed to write cookie to response",
                    extra={"cookie_name": cookie.name},
                )


def bridge_for_request(request: Request, settings: Settings) -> SessionBridge:
    """Return the request's bridge, creating it on first use."""
    bridge = getattr(request.state, _STATE_KEY, None)
    if bridge is None:
        bridge = SessionBridge(request.cookies, settings)
        setattr(request.state, _STATE_KEY, bridge)
    return bridge


async def mirror_session_cookies(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """HTTP middleware: apply cookies queued during the request to its response."""
    response = await call_next(request)
    bridge = getattr(request.state, _STATE_KEY, None)
    if bridge is not None and bridge.pending:
        bridge.apply(response)
    return response

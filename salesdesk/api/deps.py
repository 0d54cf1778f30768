"""Shared request dependencies: session bridge, auth client, current session and role gate."""

import logging
from typing import Annotated

import httpx
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from salesdesk.core.config import Settings, get_settings
from salesdesk.core.database import get_db
from salesdesk.core.errors import server_error, unauthorized
from salesdesk.core.permissions import ADMIN_REQUIRED, check_role, load_account
from salesdesk.core.session_bridge import SessionBridge, bridge_for_request
from salesdesk.models import Account
from salesdesk.services.auth_client import AuthClient
from salesdesk.services.identity import GoTrueClient, IdentityError, IdentitySession

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "Không có quyền truy cập: Chưa đăng nhập"
SESSION_ERROR = "Lỗi xác thực: không thể kiểm tra phiên đăng nhập"


def get_identity_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for identity calls; None means the default network transport."""
    return None


def get_session_bridge(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionBridge:
    return bridge_for_request(request, settings)


def get_auth_client(
    bridge: Annotated[SessionBridge, Depends(get_session_bridge)],
    settings: Annotated[Settings, Depends(get_settings)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_identity_transport)],
) -> AuthClient:
    gotrue = GoTrueClient(
        settings,
        settings.SUPABASE_ANON_KEY.get_secret_value(),
        transport=transport,
    )
    return AuthClient(gotrue, bridge, settings)


async def get_current_session(
    auth: Annotated[AuthClient, Depends(get_auth_client)],
) -> IdentitySession:
    """Dependency: require a session. Raises 401 before any database work when absent."""
    try:
        session = await auth.get_session()
    except IdentityError as e:
        logger.error("Session lookup failed", extra={"reason": e.message[:200]})
        raise server_error(SESSION_ERROR) from e
    if session is None:
        raise unauthorized(NOT_SIGNED_IN)
    return session


def get_current_account(
    session: Annotated[IdentitySession, Depends(get_current_session)],
    db: Annotated[Session, Depends(get_db)],
) -> Account:
    """Dependency: the signed-in caller's account row (403 when it has none)."""
    return load_account(db, session.user.id)


def require_admin(
    account: Annotated[Account, Depends(get_current_account)],
) -> Account:
    """Dependency: the caller's account, which must have role 'admin' (403 otherwise)."""
    return check_role(account, denied_message=ADMIN_REQUIRED)

"""Auth endpoints: sign-in/up/out, session checks, token refresh, email callback, password change."""

import logging
from datetime import UTC, datetime
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.api.deps import get_auth_client, get_current_session
from salesdesk.core.config import Settings, get_settings
from salesdesk.core.database import get_db
from salesdesk.core.errors import (
    NO_STORE_HEADERS,
    ApiError,
    bad_request,
    is_blank,
    server_error,
    unauthorized,
)
from salesdesk.core.permissions import find_account
from salesdesk.core.session_bridge import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from salesdesk.schemas.auth import (
    ChangePasswordRequest,
    CheckSessionResponse,
    CheckSessionUser,
    ForgotPasswordRequest,
    MessageResponse,
    PreserveSessionResponse,
    SessionUserInfo,
    SignInRequest,
    SignInResponse,
    SignOutResponse,
    SignUpRequest,
    SignUpResponse,
)
from salesdesk.services.accounts import (
    activate_account,
    create_account_records,
    parse_birth_date,
    stamp_last_login,
)
from salesdesk.services.auth_client import AuthClient
from salesdesk.services.identity import IdentityError, IdentitySession

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_REDIRECT = "/dashboard"
SIGNIN_PATH = "/auth/signin"
CHANGE_PASSWORD_PATH = "/auth/change-password"
CALLBACK_PATH = "/api/auth/callback"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

IDENTITY_UNAVAILABLE = "Không thể kết nối dịch vụ đăng nhập"


def _site_url(request: Request, settings: Settings) -> str:
    return settings.SITE_URL or str(request.base_url).rstrip("/")


def _safe_redirect_target(target: str | None) -> str:
    """Only same-site absolute paths are followed."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return DEFAULT_REDIRECT
    return target


def _signin_redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(f"{SIGNIN_PATH}?{urlencode(params)}")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@router.post("/signin", response_model=SignInResponse)
async def sign_in(
    body: SignInRequest,
    response: Response,
    auth: Annotated[AuthClient, Depends(get_auth_client)],
    db: Annotated[Session, Depends(get_db)],
) -> SignInResponse:
    """Password sign-in; the session cookies are set on the response."""
    if is_blank(body.email) or is_blank(body.password):
        raise bad_request("Email và mật khẩu là bắt buộc")
    try:
        session = await auth.sign_in_with_password(body.email.strip(), body.password)
    except IdentityError as e:
        if e.is_client_error:
            logger.warning("Sign-in rejected", extra={"status_code": e.status_code, "code": e.code})
            raise unauthorized("Email hoặc mật khẩu không đúng") from e
        raise server_error(IDENTITY_UNAVAILABLE) from e

    stamp_last_login(db, session.user.id)
    response.headers.update(NO_STORE_HEADERS)
    return SignInResponse(
        user=SessionUserInfo(id=session.user.id, email=session.user.email),
        expires_at=session.expires_at,
        require_password_change=session.user.require_password_change,
    )


@router.post("/signup", response_model=SignUpResponse)
async def sign_up(
    body: SignUpRequest,
    request: Request,
    auth: Annotated[AuthClient, Depends(get_auth_client)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SignUpResponse:
    """
    Register a staff user. The account starts as 'pending' until an admin or the
    first password change activates it.
    """
    if is_blank(body.email) or is_blank(body.password) or is_blank(body.full_name):
        raise bad_request("Thiếu thông tin bắt buộc")
    email = body.email.strip()
    birth_date = parse_birth_date(body.birth_date)
    metadata = {
        "full_name": body.full_name,
        "phone": body.phone or None,
        "hometown": body.hometown or None,
        "birth_date": birth_date.isoformat() if birth_date else None,
    }
    try:
        user = await auth.sign_up(
            email,
            body.password,
            data=metadata,
            redirect_to=f"{_site_url(request, settings)}{CALLBACK_PATH}",
        )
    except IdentityError as e:
        if e.is_client_error:
            if "already registered" in e.message.lower():
                raise bad_request(
                    "Email này đã được đăng ký. Vui lòng sử dụng email khác hoặc đăng nhập."
                ) from e
            raise bad_request(f"Lỗi đăng ký: {e.message}") from e
        raise server_error(IDENTITY_UNAVAILABLE) from e

    try:
        create_account_records(
            db,
            user_id=user.id,
            email=email,
            full_name=body.full_name,
            phone=body.phone or None,
            hometown=body.hometown or None,
            birth_date=birth_date,
        )
    except SQLAlchemyError as e:
        # The identity user exists without rows; an admin can recreate them.
        logger.exception("Sign-up rows not written", extra={"user_id": user.id})
        raise server_error(
            "Lỗi kết nối với cơ sở dữ liệu. Vui lòng liên hệ quản trị viên."
        ) from e

    logger.info("User signed up", extra={"user_id": user.id})
    return SignUpResponse(
        user=SessionUserInfo(id=user.id, email=user.email or email),
        message="Đăng ký thành công. Vui lòng kiểm tra email để xác nhận tài khoản.",
    )


@router.api_route("/signout", methods=["GET", "POST"], response_model=SignOutResponse)
async def sign_out(
    response: Response,
    auth: Annotated[AuthClient, Depends(get_auth_client)],
) -> SignOutResponse:
    """
    Revoke the session and expire the token cookies.

    ``X-Auth-Intentional-Logout`` and ``intentional`` tell the client this was a
    user-initiated logout rather than an expired token.
    """
    await auth.sign_out()
    response.headers.update(NO_CACHE_HEADERS)
    response.headers["X-Auth-Intentional-Logout"] = "true"
    return SignOutResponse(message="Đã đăng xuất thành công", intentional=True)


@router.get("/check-session", response_model=CheckSessionResponse)
async def check_session(
    response: Response,
    auth: Annotated[AuthClient, Depends(get_auth_client)],
    db: Annotated[Session, Depends(get_db)],
) -> CheckSessionResponse:
    """Report the current session and the caller's account role/status."""
    try:
        session = await auth.get_session()
    except IdentityError as e:
        logger.error("Session lookup failed", extra={"reason": e.message[:200]})
        raise ApiError(
            500,
            "session_error",
            message="Lỗi khi lấy thông tin session",
            headers=NO_STORE_HEADERS,
        ) from e

    if session is None:
        raise ApiError(
            401,
            "no_session",
            message="Không có phiên đăng nhập hợp lệ",
            authenticated=False,
            headers=NO_STORE_HEADERS,
        )

    user = session.user
    try:
        account = find_account(db, user.id)
    except SQLAlchemyError as e:
        logger.exception("Account lookup failed", extra={"user_id": user.id})
        raise ApiError(
            500,
            "account_error",
            message="Lỗi khi lấy thông tin tài khoản",
            authenticated=True,
            user={"id": user.id, "email": user.email, "metadata": user.user_metadata},
            headers=NO_STORE_HEADERS,
        ) from e

    response.headers.update(NO_STORE_HEADERS)
    return CheckSessionResponse(
        authenticated=True,
        user=CheckSessionUser(
            id=user.id,
            email=user.email,
            role=account.role if account else None,
            status=account.status if account else None,
            metadata=user.user_metadata,
        ),
        expires_at=session.expires_at,
    )


@router.get("/preserve-session", response_model=PreserveSessionResponse)
async def preserve_session(
    response: Response,
    auth: Annotated[AuthClient, Depends(get_auth_client)],
) -> PreserveSessionResponse:
    """Keep the session alive before an important client action, refreshing tokens if needed."""
    try:
        session = await auth.get_session()
    except IdentityError as e:
        logger.error("Session lookup failed", extra={"reason": e.message[:200]})
        raise ApiError(
            500,
            "session_error",
            message="Không thể lấy thông tin phiên",
            status="error",
            timestamp=_now_iso(),
            code="AUTH_SESSION_ERROR",
            headers=NO_CACHE_HEADERS,
        ) from e

    if session is None:
        raise ApiError(
            401,
            "no_session",
            message="Không có phiên đăng nhập hợp lệ hoặc phiên đã hết hạn",
            status="error",
            timestamp=_now_iso(),
            code="AUTH_NO_SESSION",
            headers=NO_CACHE_HEADERS,
        )

    response.headers.update(NO_CACHE_HEADERS)
    return PreserveSessionResponse(
        message=(
            "Phiên đăng nhập đã được làm mới" if auth.refreshed else "Phiên đăng nhập hợp lệ"
        ),
        refreshed=auth.refreshed,
        user_email=session.user.email,
        user_id=session.user.id,
        expires_at=session.expires_at,
        timestamp=_now_iso(),
    )


@router.api_route("/refresh", methods=["GET", "POST"])
async def refresh(
    request: Request,
    auth: Annotated[AuthClient, Depends(get_auth_client)],
) -> RedirectResponse:
    """Refresh the token pair, then send the browser back to ``redirect`` (or to sign-in)."""
    target = _safe_redirect_target(request.query_params.get("redirect"))
    has_tokens = bool(
        request.cookies.get(ACCESS_TOKEN_COOKIE) or request.cookies.get(REFRESH_TOKEN_COOKIE)
    )
    if not has_tokens:
        return _signin_redirect(redirectTo=target, noLoop="true")

    try:
        session = await auth.refresh_session()
        if session is None:
            session = await auth.get_session()
    except IdentityError as e:
        logger.warning("Token refresh failed", extra={"reason": e.message[:200]})
        session = None

    if session is None:
        return _signin_redirect(expired="true", redirectTo=target, noLoop="true")

    redirect = RedirectResponse(target)
    redirect.headers["X-Auth-Refreshed"] = "true"
    return redirect


@router.get("/callback")
async def auth_callback(
    auth: Annotated[AuthClient, Depends(get_auth_client)],
    db: Annotated[Session, Depends(get_db)],
    code: str | None = None,
) -> RedirectResponse:
    """Landing point of email links: trade the code for a session and route the user on."""
    if not code:
        logger.warning("Auth callback without code")
        return _signin_redirect(error="missing_code")

    try:
        session = await auth.exchange_code_for_session(code)
    except IdentityError as e:
        logger.warning("Code exchange failed", extra={"reason": e.message[:200]})
        return _signin_redirect(error="auth_callback_error")

    if session.user.require_password_change:
        activate_account(db, session.user.id)
        return RedirectResponse(CHANGE_PASSWORD_PATH)
    return RedirectResponse(DEFAULT_REDIRECT)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    session: Annotated[IdentitySession, Depends(get_current_session)],
    auth: Annotated[AuthClient, Depends(get_auth_client)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Set a new password, clear the forced-change flag and activate the account."""
    if is_blank(body.password):
        raise bad_request("Mật khẩu mới là bắt buộc")
    try:
        await auth.update_user(
            password=body.password,
            data={"require_password_change": False},
        )
    except IdentityError as e:
        if e.is_client_error:
            raise bad_request(e.message) from e
        raise server_error(IDENTITY_UNAVAILABLE) from e

    activate_account(db, session.user.id)

    # New metadata only reaches the access-token cookie through a refresh.
    try:
        await auth.refresh_session()
    except IdentityError as e:
        logger.warning("Refresh after password change failed", extra={"reason": e.message[:200]})

    return MessageResponse(message="Đổi mật khẩu thành công")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    auth: Annotated[AuthClient, Depends(get_auth_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Ask the identity provider to email a recovery link that lands on the callback."""
    if is_blank(body.email):
        raise bad_request("Email là bắt buộc")
    try:
        await auth.reset_password_for_email(
            body.email.strip(),
            redirect_to=f"{_site_url(request, settings)}{CALLBACK_PATH}",
        )
    except IdentityError as e:
        if e.is_client_error:
            raise bad_request(e.message) from e
        raise server_error(IDENTITY_UNAVAILABLE) from e
    return MessageResponse(message="Đã gửi email khôi phục mật khẩu")

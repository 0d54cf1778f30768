"""Account and profile rows that mirror identity users."""

import logging
from datetime import UTC, date, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdesk.core.database import atomic
from salesdesk.models import Account, UserProfile

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "staff"
STATUS_ACTIVE = "active"
STATUS_PENDING = "pending"


def parse_birth_date(value: str | None) -> date | None:
    """ISO date (YYYY-MM-DD) or None; anything else is dropped."""
    if not value or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.info("Ignoring unparseable birth date")
        return None


def create_account_records(
    db: Session,
    user_id: str,
    email: str,
    full_name: str,
    role: str = DEFAULT_ROLE,
    status: str = STATUS_PENDING,
    phone: str | None = None,
    hometown: str | None = None,
    birth_date: date | None = None,
) -> Account:
    """
    Insert the profile and account rows for a new identity user in one transaction.

    Existing rows for the same user_id are left as they are. Raises
    SQLAlchemyError when the insert fails (nothing is written then).
    """
    with atomic(db):
        profile = db.get(UserProfile, user_id)
        if profile is None:
            db.add(
                UserProfile(
                    user_id=user_id,
                    email=email,
                    full_name=full_name,
                    phone=phone,
                    hometown=hometown,
                    birth_date=birth_date,
                    deleted=False,
                )
            )
        account = db.query(Account).filter(Account.user_id == user_id).first()
        if account is None:
            account = Account(user_id=user_id, username=email, role=role, status=status)
            db.add(account)
    return account


def find_profile_by_phone(db: Session, phone: str) -> UserProfile | None:
    return (
        db.query(UserProfile)
        .filter(UserProfile.phone == phone, UserProfile.deleted.is_(False))
        .first()
    )


def remove_account_records(db: Session, user_id: str) -> str:
    """
    Delete the account row and soft-delete the profile in one transaction.

    Returns the display name the profile had. Raises SQLAlchemyError on failure
    (nothing is changed then).
    """
    with atomic(db):
        profile = db.get(UserProfile, user_id)
        display_name = (profile.full_name if profile is not None else "") or "Người dùng"
        db.query(Account).filter(Account.user_id == user_id).delete(synchronize_session=False)
        if profile is not None:
            profile.deleted = True
            profile.email = None
            profile.phone = None
            profile.hometown = None
            profile.birth_date = None
    return display_name


def activate_account(db: Session, user_id: str) -> bool:
    """Set status=active (after the first password change). Failures are logged, not raised."""
    try:
        with atomic(db):
            updated = (
                db.query(Account)
                .filter(Account.user_id == user_id)
                .update(
                    {Account.status: STATUS_ACTIVE, Account.updated_at: datetime.now(UTC)},
                    synchronize_session=False,
                )
            )
    except SQLAlchemyError:
        logger.exception("Could not activate account", extra={"user_id": user_id})
        return False
    return updated > 0


def stamp_last_login(db: Session, user_id: str) -> None:
    """Record the sign-in time on the account row; failures are logged, not raised."""
    try:
        with atomic(db):
            db.query(Account).filter(Account.user_id == user_id).update(
                {Account.last_login: datetime.now(UTC)},
                synchronize_session=False,
            )
    except SQLAlchemyError:
        logger.exception("Could not record last login", extra={"user_id": user_id})

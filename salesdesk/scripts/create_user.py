"""
Create a user through the identity provider's admin API (e.g. the first admin).
Run from project root:
  python -m salesdesk.scripts.create_user EMAIL PASSWORD FULL_NAME [role]
Example:
  python -m salesdesk.scripts.create_user admin@example.com your-secure-password "Quản trị viên" admin

Needs SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and DATABASE_URL.
"""
import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy.exc import SQLAlchemyError

from salesdesk.core.config import get_settings
from salesdesk.core.database import SessionLocal
from salesdesk.services.accounts import STATUS_ACTIVE, create_account_records
from salesdesk.services.identity import (
    IdentityError,
    IdentityNotConfiguredError,
    create_admin_client,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


async def _create(email: str, password: str, full_name: str, role: str) -> str:
    client = create_admin_client(get_settings())
    user = await client.admin_create_user(
        email,
        password,
        user_metadata={"full_name": full_name, "role": role},
    )
    db = SessionLocal()
    try:
        create_account_records(
            db,
            user_id=user.id,
            email=email,
            full_name=full_name,
            role=role,
            status=STATUS_ACTIVE,
        )
    finally:
        db.close()
    return user.id


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a SalesDesk user (confirmed, no email).")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument("full_name", help="Display name")
    parser.add_argument("role", nargs="?", default="admin", help="Account role (default: admin)")
    args = parser.parse_args()

    email = args.email.strip()
    if not email or "@" not in email:
        print("Invalid email.", file=sys.stderr)
        return 1
    if len(args.password) < 6 or len(args.password) > 128:
        print("Password must be 6-128 characters.", file=sys.stderr)
        return 1
    full_name = args.full_name.strip()
    if not full_name:
        print("Full name must not be empty.", file=sys.stderr)
        return 1

    try:
        user_id = asyncio.run(_create(email, args.password, full_name, args.role.strip()))
    except IdentityNotConfiguredError as e:
        print(e.message, file=sys.stderr)
        return 1
    except IdentityError as e:
        print(f"Identity provider refused the user: {e.message}", file=sys.stderr)
        return 1
    except SQLAlchemyError:
        logger.exception("Login created but account rows were not written")
        return 1

    print(f"Created user '{email}' ({user_id}) with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

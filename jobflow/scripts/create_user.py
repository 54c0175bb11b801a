"""
Create a user with any role (signup always creates REQUESTER accounts). Run from project root:
  python -m jobflow.scripts.create_user USERNAME PASSWORD [role]
Example:
  python -m jobflow.scripts.create_user dispatch your-secure-password SUPERVISOR
"""
import argparse
import logging
import sys

from jobflow.core.config import settings
from jobflow.core.database import SessionLocal
from jobflow.models import UserRole
from jobflow.services.auth import AuthService
from jobflow.services.credential_store import CredentialStore
from jobflow.services.errors import AuthServiceError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    parser = argparse.ArgumentParser(description="Create a Job Flow user.")
    parser.add_argument("username", help="Username (1-255 chars, case-sensitive)")
    parser.add_argument("password", help="Password (1-128 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.REQUESTER.value,
        choices=[r.value for r in UserRole],
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        AuthService(CredentialStore(db)).signup(
            args.username.strip(), args.password, UserRole(args.role)
        )
    except AuthServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    logger.info("Created user: username=%s role=%s", args.username.strip(), args.role)
    print(f"Created user '{args.username.strip()}' with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

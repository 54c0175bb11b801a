"""
Revoke refresh tokens so affected users must log in again. Run from project root:
  python -m jobflow.scripts.revoke_sessions USERNAME [USERNAME ...]
  python -m jobflow.scripts.revoke_sessions --all
Access tokens already issued stay valid until they expire (JWT_EXPIRE_MINUTES).
"""
import argparse
import logging
import sys

from jobflow.core.config import settings
from jobflow.core.database import SessionLocal
from jobflow.services.credential_store import CredentialStore
from jobflow.services.errors import AuthServiceError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    parser = argparse.ArgumentParser(description="Revoke Job Flow refresh tokens.")
    parser.add_argument("usernames", nargs="*", help="Users to sign out")
    parser.add_argument("--all", action="store_true", help="Sign out every user")
    args = parser.parse_args(argv)
    if args.all == bool(args.usernames):
        parser.error("give either USERNAME(s) or --all")

    db = SessionLocal()
    try:
        store = CredentialStore(db)
        if args.all:
            revoked = store.clear_refresh_hashes()
        else:
            user_ids = []
            for username in args.usernames:
                user = store.find_by_username(username)
                if user is None:
                    print(f"User '{username}' not found.", file=sys.stderr)
                    return 1
                user_ids.append(user.id)
            revoked = store.clear_refresh_hashes(user_ids)
    except AuthServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    logger.info("Revoked refresh tokens: sessions_revoked=%s", revoked)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Per-request GraphQL context: DB session, bearer token and the auth service."""

import asyncio
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from strawberry.fastapi import BaseContext

from jobflow.core.database import get_db
from jobflow.services.auth import AuthService
from jobflow.services.credential_store import CredentialStore

security = HTTPBearer(auto_error=False)


class AuthContext(BaseContext):
    """
    Context handed to every resolver; the token is verified lazily by guarded fields.

    Query fields resolve concurrently but share one Session, which is not
    thread-safe; db_lock serializes the service calls that touch it.
    """

    def __init__(self, db: Session, token: str | None) -> None:
        super().__init__()
        self.db = db
        self.token = token
        self.auth = AuthService(CredentialStore(db))
        self.db_lock = asyncio.Lock()


async def get_context(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> AuthContext:
    """FastAPI dependency building the GraphQL context from the request."""
    token = credentials.credentials if credentials is not None else None
    return AuthContext(db=db, token=token)

"""GraphQL object types returned by the auth schema."""

import strawberry

from jobflow.models.user import UserRole
from jobflow.schemas.auth import CurrentUser, TokenPair

Role = strawberry.enum(UserRole, name="UserRole")


@strawberry.type
class MessagePayload:
    message: str


@strawberry.type
class TokenPayload:
    """Token pair; field names stay snake_case on the wire."""

    access_token: str = strawberry.field(name="access_token")
    refresh_token: str = strawberry.field(name="refresh_token")

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenPayload":
        return cls(access_token=pair.access_token, refresh_token=pair.refresh_token)


@strawberry.type
class UserType:
    id: int
    username: str
    role: Role

    @classmethod
    def from_user(cls, user: CurrentUser) -> "UserType":
        return cls(id=user.id, username=user.username, role=user.role)

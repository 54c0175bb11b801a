"""GraphQL schema: signup, login, token refresh, logout and guarded queries."""

from collections.abc import Callable
from typing import Any, TypeVar

import strawberry
from graphql import GraphQLError
from starlette.concurrency import run_in_threadpool
from strawberry.types import Info

from jobflow.api.graphql.context import AuthContext
from jobflow.api.graphql.types import MessagePayload, TokenPayload, UserType
from jobflow.schemas.auth import CurrentUser
from jobflow.services.errors import AuthServiceError

SECURE_DATA_MESSAGE = "This data is protected and requires JWT!"

T = TypeVar("T")


async def run_service(ctx: AuthContext, func: Callable[..., T], *args: Any) -> T:
    """Run a blocking service call off the event loop; map service errors to GraphQL errors."""
    try:
        async with ctx.db_lock:
            return await run_in_threadpool(func, *args)
    except AuthServiceError as e:
        raise GraphQLError(e.message, extensions={"code": e.code}) from e


async def require_user(info: Info[AuthContext, None]) -> CurrentUser:
    """Resolve the bearer token on the request or fail with UNAUTHENTICATED."""
    ctx = info.context
    return await run_service(ctx, ctx.auth.resolve_access_token, ctx.token)


@strawberry.type
class Query:
    @strawberry.field(description="Sample payload readable only with a valid access token.")
    async def secure_data(self, info: Info[AuthContext, None]) -> str:
        await require_user(info)
        return SECURE_DATA_MESSAGE

    @strawberry.field(description="The authenticated user.")
    async def me(self, info: Info[AuthContext, None]) -> UserType:
        return UserType.from_user(await require_user(info))

    @strawberry.field(description="All accounts; SUPERVISOR only.")
    async def users(self, info: Info[AuthContext, None]) -> list[UserType]:
        current = await require_user(info)
        ctx = info.context
        users = await run_service(ctx, ctx.auth.list_users, current)
        return [UserType.from_user(u) for u in users]


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def signup(
        self, info: Info[AuthContext, None], username: str, password: str
    ) -> MessagePayload:
        ctx = info.context
        message = await run_service(ctx, ctx.auth.signup, username, password)
        return MessagePayload(message=message)

    @strawberry.mutation
    async def login(
        self, info: Info[AuthContext, None], username: str, password: str
    ) -> TokenPayload:
        ctx = info.context
        pair = await run_service(ctx, ctx.auth.authenticate, username, password)
        return TokenPayload.from_pair(pair)

    @strawberry.mutation
    async def refresh_token(
        self, info: Info[AuthContext, None], refresh_token: str
    ) -> TokenPayload:
        ctx = info.context
        pair = await run_service(ctx, ctx.auth.refresh, refresh_token)
        return TokenPayload.from_pair(pair)

    @strawberry.mutation(description="Revoke the caller's refresh token.")
    async def logout(self, info: Info[AuthContext, None]) -> MessagePayload:
        current = await require_user(info)
        ctx = info.context
        message = await run_service(ctx, ctx.auth.logout, current.id)
        return MessagePayload(message=message)


schema = strawberry.Schema(query=Query, mutation=Mutation)

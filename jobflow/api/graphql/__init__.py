"""GraphQL endpoint."""

from strawberry.fastapi import GraphQLRouter

from jobflow.api.graphql.context import get_context
from jobflow.api.graphql.schema import schema
from jobflow.core.config import settings

router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.GRAPHIQL_ENABLED and settings.APP_ENV == "dev" else None,
)

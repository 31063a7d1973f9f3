"""
Route dispatcher for database, collection and document endpoints.

The route table is static; only the path layout changes with the
endpoint-root mode. In ``collection`` mode the database is a path segment
(``/{db}/{collection}/{id}``); in ``database`` mode it is fixed by the
connection descriptor and database listing is disabled.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from bson import json_util
from bson.errors import BSONError
from fastapi import APIRouter, Request, Response, status

from mongo_rest.config import Settings
from mongo_rest.core.errors import InvalidRequestError, NotFoundError
from mongo_rest.dependencies.gates import RouteContext
from mongo_rest.dependencies.tools import Tools
from mongo_rest.schemas.query import QueryOptions
from mongo_rest.services.document_service import DocumentService

Action = Callable[[RouteContext, Tools], Awaitable[Response]]


@dataclass(frozen=True)
class RouteBinding:
    """One (method, path) -> action entry of the route table."""
    method: str
    path: str
    action: str
    store_wide: bool = False


ROUTES = (
    RouteBinding("GET", "/dbs", "get_db_names", store_wide=True),
    RouteBinding("GET", "/", "get_collection_names"),
    RouteBinding("GET", "/{collection}", "get_query"),
    RouteBinding("GET", "/{collection}/{id}", "get_query"),
    RouteBinding("POST", "/{collection}", "post_insert"),
    RouteBinding("PUT", "/{collection}/{id}", "put_update"),
    RouteBinding("DELETE", "/{collection}/{id}", "delete_query"),
)


def route_path(binding: RouteBinding, settings: Settings) -> str:
    """Full relative URL of a route for the configured prefix and mode."""
    if binding.store_wide:
        return settings.url_prefix + binding.path
    db_segment = "" if settings.is_database_endpoint else "/{db}"
    return settings.url_prefix + db_segment + binding.path


def render(tools: Tools, result: Any, status_code: int = status.HTTP_200_OK, output: str = "json") -> Response:
    return Response(
        content=tools.formatter.render(result, output),
        status_code=status_code,
        media_type=tools.formatter.media_type(output),
    )


async def read_body(request: Request) -> Any:
    """Request body as MongoDB extended JSON, or None when empty."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json_util.loads(raw)
    except (ValueError, BSONError) as e:
        raise InvalidRequestError(f"Request body is not valid JSON: {e}") from e


async def get_db_names(context: RouteContext, tools: Tools) -> Response:
    names = await DocumentService(tools).list_databases()
    return render(tools, names)


async def get_collection_names(context: RouteContext, tools: Tools) -> Response:
    names = await DocumentService(tools).list_collections(context.database)
    return render(tools, names)


async def get_query(context: RouteContext, tools: Tools) -> Response:
    service = DocumentService(tools)
    if context.document_id is not None:
        document = await service.find_one(context.database, context.collection, context.document_id)
        return render(tools, document)

    options = QueryOptions.from_query_params(context.request.query_params)
    documents = await service.find(context.database, context.collection, options)
    return render(tools, documents, output=tools.formatter.select(options.output))


async def post_insert(context: RouteContext, tools: Tools) -> Response:
    body = await read_body(context.request)
    document = await DocumentService(tools).insert(context.database, context.collection, body)
    if document is None:
        return render(tools, [])
    return render(tools, document, status_code=status.HTTP_201_CREATED)


async def put_update(context: RouteContext, tools: Tools) -> Response:
    body = await read_body(context.request)
    document = await DocumentService(tools).update(
        context.database, context.collection, context.document_id, body
    )
    return render(tools, document)


async def delete_query(context: RouteContext, tools: Tools) -> Response:
    result = await DocumentService(tools).delete(context.database, context.collection, context.document_id)
    return render(tools, result)


ACTIONS: dict[str, Action] = {
    "get_db_names": get_db_names,
    "get_collection_names": get_collection_names,
    "get_query": get_query,
    "post_insert": post_insert,
    "put_update": put_update,
    "delete_query": delete_query,
}


def action_endpoint(name: str) -> Callable[[Request], Awaitable[Response]]:
    """
    Wrap an action: run the gate pipeline, then the action with the tools bundle.
    """
    action = ACTIONS[name]

    async def endpoint(request: Request) -> Response:
        tools: Tools = request.app.state.tools
        context = RouteContext.from_request(request, name, tools.settings)
        await request.app.state.gates.run(context)
        return await action(context, tools)

    endpoint.__name__ = name
    return endpoint


async def database_listing_disabled(request: Request) -> Response:
    raise NotFoundError("Database listing is disabled when endpoint_root is 'database'")


def build_router(settings: Settings) -> APIRouter:
    """Register the route table for the configured prefix and mode."""
    router = APIRouter(tags=["Documents"])

    for binding in ROUTES:
        if binding.store_wide and settings.is_database_endpoint:
            endpoint = database_listing_disabled
        else:
            endpoint = action_endpoint(binding.action)

        router.add_api_route(
            route_path(binding, settings),
            endpoint,
            methods=[binding.method],
            name=f"{binding.action}:{binding.path}",
        )

    return router

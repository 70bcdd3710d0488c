"""
Route table: resource groups mounted under every prefix in ``MOUNT_PREFIXES``.

The serverless deployment prefixes every path with ``/api`` while older
callers omit it, so each group is registered once per prefix. Only the first
prefix is published in the OpenAPI schema.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Request

from cinedesk.gateway.errors import not_found

MOUNT_PREFIXES = ("/api", "")

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


@dataclass(frozen=True)
class RouteGroup:
    name: str
    router: APIRouter


health_router = APIRouter()


@health_router.get("/health")
async def health_check(request: Request):
    """Liveness probe, never touches the database"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "environment": request.app.state.settings.environment,
    }


def mount(app: FastAPI, router: APIRouter, path: str = "", prefixes=MOUNT_PREFIXES, tags=None):
    for index, prefix in enumerate(prefixes):
        app.include_router(
            router,
            prefix=f"{prefix}{path}",
            tags=tags,
            include_in_schema=index == 0,
        )


def register_routes(app: FastAPI, groups, prefixes=MOUNT_PREFIXES):
    """Health check, resource groups and the catch-all 404, in that order"""
    mount(app, health_router, prefixes=prefixes, tags=["Health"])
    for group in groups:
        mount(app, group.router, path=f"/{group.name}", prefixes=prefixes, tags=[group.name])

    app.add_api_route(
        "/{path:path}", not_found, methods=ANY_METHOD, include_in_schema=False
    )

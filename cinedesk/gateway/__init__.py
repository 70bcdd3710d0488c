from cinedesk.gateway.errors import (
    GatewayError, MalformedBody, OriginNotAllowed, PayloadTooLarge
)
from cinedesk.gateway.pipeline import GatewayMiddleware, RequestContext, build_stages
from cinedesk.gateway.policy import Admit, OriginPolicy, Reject
from cinedesk.gateway.routing import MOUNT_PREFIXES, RouteGroup, register_routes

__all__ = [
    "Admit",
    "GatewayError",
    "GatewayMiddleware",
    "MOUNT_PREFIXES",
    "MalformedBody",
    "OriginNotAllowed",
    "OriginPolicy",
    "PayloadTooLarge",
    "Reject",
    "RequestContext",
    "RouteGroup",
    "build_stages",
    "register_routes",
]

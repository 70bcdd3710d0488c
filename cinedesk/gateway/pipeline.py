"""
Request admission pipeline.

Every HTTP request runs through a fixed tuple of stages before it reaches the
router. A stage is ``async (request, ctx) -> Response | None``: returning a
response ends the pipeline early, returning ``None`` hands over to the next
stage. Stages never touch the ASGI channel directly; they read and rewrite
the :class:`RequestContext`, and :class:`GatewayMiddleware` turns the context
back into the scope, body and response headers the application sees.

Stage order is part of the contract:

    body -> cookies -> origin admission -> preflight -> access log
         -> operator sanitizer -> header hardening -> xss sanitizer

Admission runs before anything that logs, sanitizes or dispatches, so a
rejected origin never reaches the catalog or auth handlers.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import parse_qsl, urlencode

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send
import structlog

from cinedesk.gateway.errors import (
    MalformedBody, OriginNotAllowed, PayloadTooLarge, error_response
)
from cinedesk.gateway.policy import OriginPolicy, Reject
from cinedesk.gateway.sanitize import InputSanitizer, OperatorSanitizer, XssSanitizer

logger = structlog.get_logger(__name__)

JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "style-src 'self' 'unsafe-inline'",
    "script-src 'self'",
    "img-src 'self' data: https:",
])

# No Cross-Origin-Embedder-Policy: the API is consumed cross-origin.
HARDENING_HEADERS = [
    ("content-security-policy", CONTENT_SECURITY_POLICY),
    ("cross-origin-opener-policy", "same-origin"),
    ("cross-origin-resource-policy", "same-origin"),
    ("origin-agent-cluster", "?1"),
    ("referrer-policy", "no-referrer"),
    ("strict-transport-security", "max-age=15552000; includeSubDomains"),
    ("x-content-type-options", "nosniff"),
    ("x-dns-prefetch-control", "off"),
    ("x-download-options", "noopen"),
    ("x-frame-options", "SAMEORIGIN"),
    ("x-permitted-cross-domain-policies", "none"),
    ("x-xss-protection", "0"),
]


@dataclass
class RequestContext:
    settings: Any
    query: list[tuple[str, str]] = field(default_factory=list)
    origin: Optional[str] = None
    body: bytes = b""
    content_type: str = ""
    data: Any = None
    cookies: dict[str, str] = field(default_factory=dict)
    response_headers: list[tuple[str, str]] = field(default_factory=list)
    body_read: bool = False
    body_changed: bool = False
    query_changed: bool = False


Stage = Callable[[Request, RequestContext], Awaitable[Optional[Response]]]


def parse_body(limit: int) -> Stage:
    async def body_parser(request: Request, ctx: RequestContext):
        ctx.content_type = (
            request.headers.get("content-type", "").split(";")[0].strip().lower()
        )
        # Other content types stream through to the application unread.
        if ctx.content_type not in (JSON_TYPE, FORM_TYPE):
            return None

        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > limit:
            raise PayloadTooLarge(int(declared), limit)

        size = 0
        chunks = []
        async for chunk in request.stream():
            size += len(chunk)
            if size > limit:
                raise PayloadTooLarge(size, limit)
            chunks.append(chunk)
        ctx.body = b"".join(chunks)
        ctx.body_read = True

        if not ctx.body:
            return None
        try:
            if ctx.content_type == JSON_TYPE:
                ctx.data = json.loads(ctx.body)
            elif ctx.content_type == FORM_TYPE:
                ctx.data = parse_qsl(ctx.body.decode("utf-8"), keep_blank_values=True)
        except ValueError as exc:
            raise MalformedBody(f"Unable to parse {ctx.content_type} body: {exc}") from exc
        return None

    return body_parser


async def parse_cookies(request: Request, ctx: RequestContext):
    ctx.cookies = dict(request.cookies)
    return None


def admit_origin(policy: OriginPolicy) -> Stage:
    async def origin_admission(request: Request, ctx: RequestContext):
        ctx.origin = request.headers.get("origin")
        decision = policy.evaluate(ctx.origin)
        if isinstance(decision, Reject):
            logger.warning("origin_blocked", origin=decision.origin, reason=decision.reason)
            raise OriginNotAllowed(decision.origin)

        if ctx.origin:
            ctx.response_headers.extend(
                policy.cors_headers(ctx.origin, preflight=request.method == "OPTIONS")
            )
        return None

    return origin_admission


async def answer_preflight(request: Request, ctx: RequestContext):
    if request.method == "OPTIONS":
        return Response(status_code=204)
    return None


async def log_access(request: Request, ctx: RequestContext):
    logger.info("request_received", method=request.method, path=request.url.path)
    logger.info("request_headers", origin=ctx.origin, headers=dict(request.headers))
    return None


def sanitize_input(sanitizer: InputSanitizer) -> Stage:
    async def input_sanitizer(request: Request, ctx: RequestContext):
        if ctx.data is not None:
            if ctx.content_type == FORM_TYPE:
                cleaned = sanitizer.clean_pairs(ctx.data)
            else:
                cleaned = sanitizer.clean(ctx.data)
            if cleaned != ctx.data:
                ctx.data = cleaned
                ctx.body_changed = True

        cleaned_query = sanitizer.clean_pairs(ctx.query)
        if cleaned_query != ctx.query:
            ctx.query = cleaned_query
            ctx.query_changed = True
        return None

    return input_sanitizer


async def harden_headers(request: Request, ctx: RequestContext):
    ctx.response_headers.extend(HARDENING_HEADERS)
    return None


def build_stages(
    policy: OriginPolicy,
    settings,
    operator_sanitizer: Optional[InputSanitizer] = None,
    xss_sanitizer: Optional[InputSanitizer] = None,
) -> tuple[Stage, ...]:
    return (
        parse_body(settings.body_limit),
        parse_cookies,
        admit_origin(policy),
        answer_preflight,
        log_access,
        sanitize_input(operator_sanitizer or OperatorSanitizer()),
        harden_headers,
        sanitize_input(xss_sanitizer or XssSanitizer()),
    )


def encode_body(ctx: RequestContext) -> bytes:
    if not ctx.body_changed:
        return ctx.body
    if ctx.content_type == FORM_TYPE:
        return urlencode(ctx.data).encode("utf-8")
    return json.dumps(ctx.data).encode("utf-8")


class GatewayMiddleware:
    """
    ASGI middleware running the admission pipeline in front of the router.

    Failures raised by a stage or by the application are answered by
    :func:`error_response`; failures after the response has started are
    re-raised to the server.
    """

    def __init__(self, app: ASGIApp, stages: tuple[Stage, ...], settings) -> None:
        self.app = app
        self.stages = tuple(stages)
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        request = Request(scope, receive)
        ctx = RequestContext(
            settings=self.settings,
            query=parse_qsl(scope.get("query_string", b"").decode("latin-1"), keep_blank_values=True),
        )

        try:
            response = await self.run_stages(request, ctx)
        except Exception as exc:
            response = error_response(request, exc, self.settings)

        if response is not None:
            await self.send_response(response, ctx, scope, receive, send)
            self.log_completion(request, response.status_code, started)
            return

        body = encode_body(ctx)
        body_sent = False
        status = {}
        extra_headers = self.encode_headers(ctx.response_headers)

        async def replay_receive():
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
                message["headers"] = list(message.get("headers", [])) + extra_headers
            await send(message)

        downstream_receive = replay_receive if ctx.body_read else receive
        try:
            await self.app(self.rewrite_scope(scope, ctx, body), downstream_receive, send_with_headers)
        except Exception as exc:
            if "code" in status:
                raise
            response = error_response(request, exc, self.settings)
            await self.send_response(response, ctx, scope, receive, send)
            status["code"] = response.status_code

        self.log_completion(request, status.get("code"), started)

    async def run_stages(self, request: Request, ctx: RequestContext) -> Optional[Response]:
        for stage in self.stages:
            response = await stage(request, ctx)
            if response is not None:
                return response
        return None

    async def send_response(self, response, ctx, scope, receive, send):
        for key, value in ctx.response_headers:
            response.headers.append(key, value)
        await response(scope, receive, send)

    @staticmethod
    def encode_headers(headers):
        return [(key.lower().encode("latin-1"), value.encode("latin-1")) for key, value in headers]

    @staticmethod
    def rewrite_scope(scope: Scope, ctx: RequestContext, body: bytes) -> Scope:
        if not (ctx.body_changed or ctx.query_changed):
            return scope

        scope = dict(scope)
        if ctx.body_changed:
            scope["headers"] = [
                (key, value) for key, value in scope["headers"] if key != b"content-length"
            ] + [(b"content-length", str(len(body)).encode("latin-1"))]
        if ctx.query_changed:
            scope["query_string"] = urlencode(ctx.query).encode("latin-1")
        return scope

    @staticmethod
    def log_completion(request: Request, status_code, started: float) -> None:
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

"""
Origin admission policy.

Decides whether a request's declared ``Origin`` may receive a credentialed
cross-origin response. Rules are evaluated in order, first match wins:

    1. no origin (curl, mobile apps, server-to-server) -> admit
    2. exact match in the allow-list                    -> admit
    3. origin ends with a trusted suffix (.vercel.app)  -> admit
    4. anything else                                    -> reject
"""

from dataclasses import dataclass
from typing import Optional, Union

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization", "Cookie")
EXPOSED_HEADERS = ("Set-Cookie",)


@dataclass(frozen=True)
class Admit:
    rule: str


@dataclass(frozen=True)
class Reject:
    origin: str
    reason: str = "origin not in allow-list"


Decision = Union[Admit, Reject]


@dataclass(frozen=True)
class OriginPolicy:
    allowed: tuple[str, ...]
    suffixes: tuple[str, ...] = (".vercel.app",)

    @classmethod
    def from_settings(cls, settings) -> "OriginPolicy":
        return cls(
            allowed=tuple(dict.fromkeys(settings.cors_origins)),
            suffixes=tuple(settings.trusted_origin_suffixes),
        )

    def evaluate(self, origin: Optional[str]) -> Decision:
        if not origin:
            return Admit("no-origin")
        if origin in self.allowed:
            return Admit("allow-list")
        if any(origin.endswith(suffix) for suffix in self.suffixes):
            return Admit("suffix")
        return Reject(origin)

    def cors_headers(self, origin: str, preflight: bool = False) -> list[tuple[str, str]]:
        """Headers echoed to an admitted browser origin"""
        headers = [
            ("access-control-allow-origin", origin),
            ("access-control-allow-credentials", "true"),
            ("access-control-expose-headers", ", ".join(EXPOSED_HEADERS)),
            ("vary", "Origin"),
        ]
        if preflight:
            headers += [
                ("access-control-allow-methods", ", ".join(ALLOWED_METHODS)),
                ("access-control-allow-headers", ", ".join(ALLOWED_HEADERS)),
            ]
        return headers

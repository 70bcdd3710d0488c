"""
HTTP client configuration for CineDesk API consumers.

Production builds are served from the same origin as the API and talk to it
through the relative ``/api`` path; development builds use ``API_BASE_URL``
or the local server. Clients keep the session cookie and send it with every
request.
"""

from typing import Optional

import httpx

from cinedesk.config import Settings

PRODUCTION_BASE_URL = "/api"
DEFAULT_BASE_URL = "http://localhost:3000"


def resolve_base_url(settings: Settings) -> str:
    if settings.is_production:
        return PRODUCTION_BASE_URL
    return settings.api_base_url or DEFAULT_BASE_URL


def client_base_url(settings: Settings, origin: Optional[str] = None) -> httpx.URL:
    base_url = httpx.URL(resolve_base_url(settings))
    if base_url.is_relative_url:
        if not origin:
            raise ValueError(f"An origin is required to resolve the relative base URL {base_url}")
        base_url = httpx.URL(origin).join(base_url)
    return base_url


def create_client(settings: Settings, origin: Optional[str] = None, **kwargs) -> httpx.Client:
    """
    Client bound to the API base URL.

    Cookies set by the API (the session token) are stored on the client and
    sent back on every following request.
    """
    return httpx.Client(base_url=client_base_url(settings, origin), **kwargs)


def create_async_client(settings: Settings, origin: Optional[str] = None, **kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=client_base_url(settings, origin), **kwargs)

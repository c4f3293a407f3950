"""Fetch a single file over HTTP(S)."""

from __future__ import annotations

import logging

import httpx

from copilot_context.core.errors import AuthError, FetchTimeoutError, NetworkError, NotFoundError
from copilot_context.core.models import FetchedFile

logger = logging.getLogger(__name__)

# Timeout for the request when the source sets none.
REQUEST_TIMEOUT = 30.0
USER_AGENT = "copilot-context"


def fetch(
    url: str,
    *,
    timeout: float | None = None,
    client: httpx.Client | None = None,
) -> list[FetchedFile]:
    """GET *url* and return its body as one file landing at ``dest``.

    *client* lets callers (and tests) supply a configured ``httpx.Client``.
    """
    if client is not None:
        return [_get(client, url, timeout)]
    with httpx.Client(
        follow_redirects=True,
        timeout=timeout or REQUEST_TIMEOUT,
        headers={"User-Agent": USER_AGENT},
    ) as own:
        return [_get(own, url, timeout)]


def _get(client: httpx.Client, url: str, timeout: float | None) -> FetchedFile:
    kwargs = {"timeout": timeout} if timeout else {}
    try:
        resp = client.get(url, **kwargs)
    except httpx.TimeoutException as exc:
        raise FetchTimeoutError(f"GET {url} timed out") from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"GET {url} failed: {exc}") from exc

    status = resp.status_code
    if status in (404, 410):
        raise NotFoundError(f"GET {url} returned {status}", status_code=status)
    if status in (401, 403):
        raise AuthError(f"GET {url} returned {status}", status_code=status)
    if not resp.is_success:
        raise NetworkError(f"GET {url} returned {status}", status_code=status)

    logger.debug("GET %s -> %d (%d bytes)", url, status, len(resp.content))
    return FetchedFile(rel_path="", content=resp.content)

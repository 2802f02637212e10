from __future__ import annotations

"""Lightweight async HTTP helper: GET a URL and decode its JSON body.

A single attempt per call, bounded by `timeout`. Every failure mode (transport
error, timeout, non-2xx status, undecodable body) is reported as HttpError so
callers only need one except clause.
"""
from typing import Any, Optional

import httpx


class HttpError(Exception):
    pass


async def get_json(
    url: str, *, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None
) -> Any:
    try:
        if client is not None:
            resp = await client.get(url, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                resp = await own_client.get(url)
    except httpx.TimeoutException as e:
        raise HttpError(f"Timed out after {timeout}s fetching {url}") from e
    except httpx.HTTPError as e:
        raise HttpError(f"Failed to fetch {url}: {e}") from e

    if not resp.is_success:
        raise HttpError(f"HTTP {resp.status_code} for {url}")
    try:
        return resp.json()
    except ValueError as e:  # JSON decode
        raise HttpError(f"Invalid JSON body from {url}: {e}") from e

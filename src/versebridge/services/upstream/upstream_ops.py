# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the upstream ops unit so this responsibility stays isolated, testable, and easy to evolve.

Shared transport for all proxy handlers: one logged httpx call per request,
plus a streaming variant used for binary responses such as audio.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, Mapping

import httpx
from fastapi.responses import JSONResponse

from versebridge.services.exceptions import UpstreamError
from versebridge.services.upstream.upstream_logging import (
    add_upstream_log,
    create_log_entry,
    finish_log_entry,
)
from versebridge.services.upstream.upstream_request_helpers import (
    build_timeout,
    safe_json_parse,
)


def _log_url(url: str, params: Any) -> str:
    if not params:
        return url
    return str(httpx.URL(url, params=params))


async def fetch_upstream(
    method: str,
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    params: Any = None,
    json_body: Any = None,
    timeout_s: Any = 60,
) -> httpx.Response:
    """Perform a single upstream request and return the (fully read) response.

    Non-success statuses are returned to the caller; only transport failures
    raise ``UpstreamError``.
    """
    log_entry = create_log_entry(_log_url(url, params), method, headers, json_body)
    add_upstream_log(log_entry)

    request_kwargs: Dict[str, Any] = {"headers": dict(headers or {})}
    if params:
        request_kwargs["params"] = params
    if json_body is not None:
        request_kwargs["json"] = json_body

    try:
        async with httpx.AsyncClient(timeout=build_timeout(timeout_s)) as client:
            response = await client.request(method, url, **request_kwargs)
    except httpx.HTTPError as exc:
        finish_log_entry(log_entry, error_detail=str(exc))
        raise UpstreamError(f"Upstream request failed: {exc}") from exc

    finish_log_entry(
        log_entry,
        status_code=response.status_code,
        body=safe_json_parse(response.text),
    )
    return response


def upstream_error_response(
    response: httpx.Response, error: str, with_details: bool = True
) -> JSONResponse:
    """Pass a non-success upstream status through to the client."""
    content: Dict[str, Any] = {"error": error}
    if with_details:
        content["status"] = response.status_code
        content["details"] = safe_json_parse(response.text)
    return JSONResponse(status_code=response.status_code, content=content)


class UpstreamStream:
    """An open streaming upstream response.

    ``aiter_bytes`` relays the body chunk by chunk and releases the client once
    the body is exhausted; ``aclose`` releases it early and is safe to call
    more than once.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        log_entry: Dict[str, Any],
    ):
        self._client = client
        self.response = response
        self.log_entry = log_entry
        self.closed = False

    @property
    def status_code(self) -> int:
        return self.response.status_code

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                self.log_entry["response"]["bytes_streamed"] += len(chunk)
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        finish_log_entry(self.log_entry)
        await self.response.aclose()
        await self._client.aclose()


async def open_upstream_stream(
    method: str,
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    json_body: Any = None,
    timeout_s: Any = 60,
) -> UpstreamStream:
    log_entry = create_log_entry(url, method, headers, json_body, streaming=True)
    add_upstream_log(log_entry)

    client = httpx.AsyncClient(timeout=build_timeout(timeout_s))
    try:
        request = client.build_request(
            method, url, headers=dict(headers or {}), json=json_body
        )
        response = await client.send(request, stream=True)
    except httpx.HTTPError as exc:
        await client.aclose()
        finish_log_entry(log_entry, error_detail=str(exc))
        raise UpstreamError(f"Upstream request failed: {exc}") from exc

    log_entry["response"]["status_code"] = response.status_code
    return UpstreamStream(client, response, log_entry)

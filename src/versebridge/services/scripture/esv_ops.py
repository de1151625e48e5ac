# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the esv ops unit so this responsibility stays isolated, testable, and easy to evolve.

Passage lookup and full-text search against the ESV API
(https://api.esv.org/docs/). The API key travels as ``Authorization: Token``.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, Mapping

from fastapi.responses import JSONResponse

from versebridge.core.config import get_service_config
from versebridge.services.exceptions import BadRequestError
from versebridge.services.upstream.upstream_ops import (
    fetch_upstream,
    upstream_error_response,
)
from versebridge.services.upstream.upstream_request_helpers import (
    join_url,
    require_api_key,
    safe_json_parse,
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _non_blank(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def get_reference(
    query: Mapping[str, str], body: Dict[str, Any] | None = None
) -> str | None:
    """Passage reference: query ``q`` wins, then body ``q``, then body ``reference``."""
    from_query = _non_blank(query.get("q"))
    if from_query:
        return from_query
    body = body or {}
    candidate = body.get("q")
    if candidate is None:
        candidate = body.get("reference")
    return _non_blank(candidate)


def get_html_preference(
    query: Mapping[str, str], body: Dict[str, Any] | None = None
) -> bool:
    html = query.get("html")
    if isinstance(html, str):
        return html.lower() == "true"
    flag = (body or {}).get("html")
    if isinstance(flag, bool):
        return flag
    return False


def get_search_query(
    query: Mapping[str, str], body: Dict[str, Any] | None = None
) -> str | None:
    from_query = _non_blank(query.get("q"))
    if from_query:
        return from_query
    body = body or {}
    candidate = body.get("q")
    if candidate is None:
        candidate = body.get("query")
    return _non_blank(candidate)


def get_page(query: Mapping[str, str], body: Dict[str, Any] | None = None) -> int | None:
    """Positive page number from query ``page`` (leading digits) or body ``page``."""
    from_query = query.get("page")
    if isinstance(from_query, str):
        match = _LEADING_INT.match(from_query)
        if match and int(match.group(1)) > 0:
            return int(match.group(1))
    page = (body or {}).get("page")
    if (
        isinstance(page, (int, float))
        and not isinstance(page, bool)
        and math.isfinite(page)
        and page > 0
    ):
        return math.floor(page)
    return None


def _esv_context() -> tuple[str, Dict[str, str], Any]:
    esv_cfg = get_service_config("esv")
    api_key = require_api_key(esv_cfg, "ESV")
    headers = {"Authorization": f"Token {api_key}"}
    return esv_cfg.get("base_url") or "", headers, esv_cfg.get("timeout_s")


async def lookup_passage_text(query: Mapping[str, str]) -> JSONResponse | dict:
    """Return the first passage for ``q`` as ``{"reference", "text"}``."""
    q = query.get("q")
    if not isinstance(q, str) or not q:
        raise BadRequestError("Missing query parameter q")

    base_url, headers, timeout_s = _esv_context()
    response = await fetch_upstream(
        "GET",
        join_url(base_url, "passage/text/"),
        headers=headers,
        params={
            "q": q,
            "include-verse-numbers": "false",
            "include-footnotes": "false",
        },
        timeout_s=timeout_s,
    )
    if response.status_code >= 400:
        return upstream_error_response(
            response, "ESV API request failed", with_details=False
        )

    data = safe_json_parse(response.text)
    if not isinstance(data, dict):
        data = {}
    passages = data.get("passages")
    passage = passages[0] if isinstance(passages, list) and passages else ""
    reference = data.get("canonical")
    if reference is None:
        reference = data.get("query")
    return {"reference": reference, "text": passage}


async def proxy_passage(
    query: Mapping[str, str], body: Dict[str, Any] | None = None
) -> JSONResponse | Any:
    reference = get_reference(query, body)
    if not reference:
        raise BadRequestError('Missing query parameter "q"')

    base_url, headers, timeout_s = _esv_context()
    params = {"q": reference}
    if get_html_preference(query, body):
        params["include-html-formatting"] = "true"

    response = await fetch_upstream(
        "GET",
        join_url(base_url, "passage/text/"),
        headers=headers,
        params=params,
        timeout_s=timeout_s,
    )
    if response.status_code >= 400:
        return upstream_error_response(response, "Failed to fetch ESV passage")
    return JSONResponse(status_code=200, content=safe_json_parse(response.text))


async def proxy_search(
    query: Mapping[str, str], body: Dict[str, Any] | None = None
) -> JSONResponse:
    search = get_search_query(query, body)
    if not search:
        raise BadRequestError('Missing query parameter "q"')

    base_url, headers, timeout_s = _esv_context()
    page = get_page(query, body) or 1

    response = await fetch_upstream(
        "GET",
        join_url(base_url, "passage/search/"),
        headers=headers,
        params={"q": search, "page": str(page)},
        timeout_s=timeout_s,
    )
    if response.status_code >= 400:
        return upstream_error_response(response, "Failed to perform ESV search")
    return JSONResponse(status_code=200, content=safe_json_parse(response.text))

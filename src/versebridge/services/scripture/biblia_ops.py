# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the biblia ops unit so this responsibility stays isolated, testable, and easy to evolve."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

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


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_biblia_params(payload: Any, api_key: str) -> List[Tuple[str, str]]:
    """Query parameters for a Biblia.com call: the key plus every non-null payload entry."""
    params: List[Tuple[str, str]] = [("key", api_key)]
    if isinstance(payload, dict):
        for key, value in payload.items():
            if value is None:
                continue
            params.append((str(key), _param_value(value)))
    return params


def build_biblia_url(base_url: str, path: str) -> str:
    # Biblia.com endpoints live under api.biblia.com/v1/<path>.js
    return join_url(base_url, f"{path}.js")


async def proxy_biblia(body: Dict[str, Any]) -> JSONResponse:
    path = body.get("path")
    path = path.strip() if isinstance(path, str) else ""
    if not path:
        raise BadRequestError('Missing "path" in request body')

    biblia_cfg = get_service_config("biblia")
    api_key = require_api_key(biblia_cfg, "Biblia")

    response = await fetch_upstream(
        "GET",
        build_biblia_url(biblia_cfg.get("base_url") or "", path),
        params=build_biblia_params(body.get("payload"), api_key),
        timeout_s=biblia_cfg.get("timeout_s"),
    )
    if response.status_code >= 400:
        return upstream_error_response(response, "Failed to proxy Biblia.com request")
    return JSONResponse(status_code=200, content=safe_json_parse(response.text))

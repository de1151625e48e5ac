# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the upstream request helpers unit so this responsibility stays isolated, testable, and easy to evolve."""

from __future__ import annotations

import json
from typing import Any, Dict

import httpx

from versebridge.core.config import is_unresolved_placeholder
from versebridge.services.exceptions import ConfigurationError


def build_timeout(timeout_s: Any) -> httpx.Timeout:
    try:
        return httpx.Timeout(float(timeout_s or 60))
    except (TypeError, ValueError):
        return httpx.Timeout(60.0)


def join_url(base_url: str, path: str) -> str:
    return str(base_url).rstrip("/") + "/" + path.lstrip("/")


def require_api_key(service_cfg: Dict[str, Any], label: str) -> str:
    """Return the configured API key or raise a 500 configuration error."""
    api_key = service_cfg.get("api_key")
    if (
        not isinstance(api_key, str)
        or not api_key.strip()
        or is_unresolved_placeholder(api_key)
    ):
        raise ConfigurationError(f"Server configuration error: {label} API key missing")
    return api_key


def safe_json_parse(text: str) -> Any:
    """Parse upstream text as JSON, falling back to the raw text.

    Empty text yields None.
    """
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text

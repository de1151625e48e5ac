# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the chat proxy ops unit so this responsibility stays isolated, testable, and easy to evolve."""

from __future__ import annotations

from typing import Any, Dict

from fastapi.responses import JSONResponse

from versebridge.core.config import get_service_config
from versebridge.services.exceptions import UpstreamError
from versebridge.services.upstream.upstream_ops import (
    fetch_upstream,
    upstream_error_response,
)
from versebridge.services.upstream.upstream_request_helpers import (
    join_url,
    require_api_key,
    safe_json_parse,
)

DEFAULT_CHAT_MODEL = "gpt-5-mini"
DEFAULT_TEMPERATURE = 0.7


def build_chat_request_body(payload: Dict[str, Any], default_model: str) -> dict:
    """Map the client payload onto a chat completions request body."""
    model = payload.get("model")
    if model is None:
        model = default_model
    messages = payload.get("messages")
    if messages is None:
        messages = []
    temperature = payload.get("temperature")
    if temperature is None:
        temperature = DEFAULT_TEMPERATURE

    body: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
    }
    max_tokens = payload.get("max_tokens")
    if max_tokens is not None:
        body["max_tokens"] = max_tokens
    return body


def extract_completion(resp_json: Any) -> Dict[str, Any]:
    """Return ``{"text", "usage"}`` from a chat completions response."""
    if not isinstance(resp_json, dict):
        return {"text": "", "usage": None}
    text = ""
    choices = resp_json.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        if isinstance(message, dict):
            content = message.get("content")
            # multi-part content arrays are relayed as-is
            text = "" if content is None else content
    return {"text": text, "usage": resp_json.get("usage")}


async def proxy_chat_completion(payload: Dict[str, Any]) -> JSONResponse | dict:
    openai_cfg = get_service_config("openai")
    api_key = require_api_key(openai_cfg, "OpenAI")

    url = join_url(openai_cfg.get("base_url") or "", "chat/completions")
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }
    body = build_chat_request_body(
        payload, openai_cfg.get("model") or DEFAULT_CHAT_MODEL
    )

    response = await fetch_upstream(
        "POST",
        url,
        headers=headers,
        json_body=body,
        timeout_s=openai_cfg.get("timeout_s"),
    )
    if response.status_code >= 400:
        return upstream_error_response(response, "Chat completion request failed")

    resp_json = safe_json_parse(response.text)
    if not isinstance(resp_json, dict):
        raise UpstreamError("Chat completion returned a non-JSON response")
    return extract_completion(resp_json)

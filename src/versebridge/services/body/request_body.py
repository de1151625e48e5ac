# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Request body ingestion: turn whatever the client sent into one JSON object.

The body may already sit on ``request.state.body`` as a parsed dict, a string
or raw bytes (e.g. put there by a middleware), or it may still be an
unconsumed byte stream. ``parse_json_body`` resolves all of these exactly once
per request and caches the resulting dict back on ``request.state.body``, since
the underlying stream can only be drained a single time.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Dict, Tuple

from fastapi import Request

from versebridge.services.exceptions import BodyParseError

INVALID_JSON_DETAIL = "Invalid JSON payload received"
NOT_AN_OBJECT_DETAIL = "Payload must be a JSON object"


class BodySource(enum.Enum):
    """Where the raw payload for a request has to come from."""

    ALREADY_PARSED = "already_parsed"
    RAW_TEXT = "raw_text"
    RAW_BYTES = "raw_bytes"
    NEEDS_DRAIN = "needs_drain"


def _materialized_body(request: Request) -> Any:
    state = getattr(request, "state", None)
    if state is None:
        return None
    return getattr(state, "body", None)


def classify_body_source(request: Request) -> Tuple[BodySource, Any]:
    """Inspect ``request.state.body`` without touching the network stream."""
    existing = _materialized_body(request)
    if isinstance(existing, dict):
        return BodySource.ALREADY_PARSED, existing
    if isinstance(existing, str):
        return BodySource.RAW_TEXT, existing
    if isinstance(existing, (bytes, bytearray, memoryview)):
        return BodySource.RAW_BYTES, bytes(existing)
    return BodySource.NEEDS_DRAIN, None


def _chunk_to_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


async def drain_stream(request: Request) -> bytes | None:
    """Read the request stream to the end.

    Returns ``None`` when the stream produced no data at all. Starlette ends
    every stream with an empty chunk; empty chunks carry nothing and are not
    counted.
    """
    chunks: list[bytes] = []
    async for chunk in request.stream():
        data = _chunk_to_bytes(chunk)
        if data:
            chunks.append(data)
    if not chunks:
        return None
    return b"".join(chunks)


def decode_payload(raw: bytes | str) -> str:
    """Decode a payload as UTF-8; invalid sequences are replaced, never raised."""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


def is_blank_payload(text: str) -> bool:
    return not text.strip()


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not part of RFC 8259.
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse ``text`` as JSON and require a top-level object.

    Raises:
        BodyParseError: on a syntax error (with the decode error as cause) or
            when the document is an array, a primitive or null.
    """
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise BodyParseError(INVALID_JSON_DETAIL, cause=exc) from exc
    if not isinstance(parsed, dict):
        raise BodyParseError(NOT_AN_OBJECT_DETAIL)
    return parsed


def _cache_body(request: Request, body: Dict[str, Any]) -> Dict[str, Any]:
    request.state.body = body
    return body


async def parse_json_body(request: Request) -> Dict[str, Any]:
    """Return the request body as a dict, parsing it at most once per request.

    An empty or whitespace-only body yields ``{}``. Any other payload that is
    not a JSON object raises ``BodyParseError`` (HTTP 400).
    """
    source, existing = classify_body_source(request)

    if source is BodySource.ALREADY_PARSED:
        return existing

    if source is BodySource.NEEDS_DRAIN:
        raw = await drain_stream(request)
        if raw is None:
            return _cache_body(request, {})
    else:
        raw = existing

    text = decode_payload(raw)
    if is_blank_payload(text):
        return _cache_body(request, {})

    return _cache_body(request, parse_json_object(text))

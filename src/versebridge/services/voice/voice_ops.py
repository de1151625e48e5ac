# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the voice ops unit so this responsibility stays isolated, testable, and easy to evolve.

Text-to-speech through ElevenLabs; the audio is relayed to the client as it
arrives instead of being buffered.
"""

from __future__ import annotations

from typing import Any, Dict
from urllib.parse import quote

from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from versebridge.core.config import get_service_config
from versebridge.services.exceptions import BadRequestError
from versebridge.services.upstream.upstream_ops import open_upstream_stream
from versebridge.services.upstream.upstream_request_helpers import (
    join_url,
    require_api_key,
)

DEFAULT_VOICE_MODEL = "eleven_turbo_v2"
DEFAULT_VOICE_FORMAT = "mp3_44100_128"


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def build_tts_request(
    body: Dict[str, Any], voice_cfg: Dict[str, Any]
) -> tuple[str, Dict[str, Any]]:
    """Return (path, json body) for an ElevenLabs text-to-speech call."""
    text = body.get("text")
    voice_id = body.get("voiceId")
    if not text or not voice_id:
        raise BadRequestError("Missing text or voiceId")

    model = _first_set(body.get("model"), voice_cfg.get("model"), DEFAULT_VOICE_MODEL)
    output_format = _first_set(
        body.get("format"), voice_cfg.get("format"), DEFAULT_VOICE_FORMAT
    )
    path = f"text-to-speech/{quote(str(voice_id), safe='')}"
    return path, {"text": text, "model_id": model, "output_format": output_format}


async def proxy_text_to_speech(body: Dict[str, Any]) -> JSONResponse | StreamingResponse:
    voice_cfg = get_service_config("elevenlabs")
    path, tts_body = build_tts_request(body, voice_cfg)
    api_key = require_api_key(voice_cfg, "ElevenLabs")

    upstream = await open_upstream_stream(
        "POST",
        join_url(voice_cfg.get("base_url") or "", path),
        headers={"Content-Type": "application/json", "xi-api-key": api_key},
        json_body=tts_body,
        timeout_s=voice_cfg.get("timeout_s"),
    )
    if upstream.status_code >= 400:
        await upstream.aclose()
        return JSONResponse(
            status_code=upstream.status_code,
            content={"error": "ElevenLabs API request failed"},
        )

    # The background task also releases the upstream when the client drops
    # before the body is iterated.
    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type="audio/mpeg",
        background=BackgroundTask(upstream.aclose),
    )

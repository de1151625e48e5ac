# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the voice unit so this responsibility stays isolated, testable, and easy to evolve."""

from fastapi import APIRouter, Request

from versebridge.services.body.request_body import parse_json_body
from versebridge.services.voice.voice_ops import proxy_text_to_speech

router = APIRouter(tags=["Voice"])


@router.post("/voice")
async def api_voice(request: Request):
    """Stream ElevenLabs text-to-speech audio (audio/mpeg) for the given text."""
    body = await parse_json_body(request)
    return await proxy_text_to_speech(body)

# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the chat unit so this responsibility stays isolated, testable, and easy to evolve.

API endpoint proxying chat completions to an OpenAI-compatible backend.
"""

from fastapi import APIRouter, Request

from versebridge.models.proxy import ChatCompletionResponse
from versebridge.services.body.request_body import parse_json_body
from versebridge.services.chat.chat_proxy_ops import proxy_chat_completion

router = APIRouter(tags=["Chat"])


@router.post("/ai-chat", response_model=ChatCompletionResponse)
async def api_ai_chat(request: Request):
    """Run one chat completion and return ``{"text", "usage"}``."""
    payload = await parse_json_body(request)
    return await proxy_chat_completion(payload)

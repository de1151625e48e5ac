# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the proxy unit so this responsibility stays isolated, testable, and easy to evolve.

Pydantic models for proxy API responses that the server reshapes itself.
Upstream bodies relayed verbatim have no model.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str


class ChatCompletionResponse(BaseModel):
    """Response body for ``POST /api/v1/ai-chat``.

    ``text`` is the first choice's message content (empty when the model
    returned none). Multi-part content is relayed unchanged, so ``text`` may
    also be a list. ``usage`` is the upstream token accounting, unchanged.
    """

    text: Any = ""
    usage: Any = None


class PassageTextResponse(BaseModel):
    """Response body for ``GET /api/v1/bible``."""

    reference: Any = None
    text: str

# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the scripture unit so this responsibility stays isolated, testable, and easy to evolve.

API endpoints for passage lookup and search (ESV) and Biblia.com passthrough.
"""

from fastapi import APIRouter, Request

from versebridge.models.proxy import PassageTextResponse
from versebridge.services.body.request_body import parse_json_body
from versebridge.services.scripture.biblia_ops import proxy_biblia
from versebridge.services.scripture.esv_ops import (
    lookup_passage_text,
    proxy_passage,
    proxy_search,
)

router = APIRouter(tags=["Scripture"])


async def _optional_body(request: Request) -> dict | None:
    if request.method == "POST":
        return await parse_json_body(request)
    return None


@router.get("/bible", response_model=PassageTextResponse)
async def api_bible(request: Request):
    """GET /api/v1/bible?q=John%203:16 -> first passage text for the reference."""
    return await lookup_passage_text(request.query_params)


@router.api_route("/esv-passage", methods=["GET", "POST"])
async def api_esv_passage(request: Request):
    body = await _optional_body(request)
    return await proxy_passage(request.query_params, body)


@router.api_route("/esv-search", methods=["GET", "POST"])
async def api_esv_search(request: Request):
    body = await _optional_body(request)
    return await proxy_search(request.query_params, body)


@router.post("/apocryphatic")
async def api_apocryphatic(request: Request):
    body = await parse_json_body(request)
    return await proxy_biblia(body)

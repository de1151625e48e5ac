# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the debug unit so this responsibility stays isolated, testable, and easy to evolve."""

from fastapi import APIRouter
from versebridge.services.upstream.upstream_logging import upstream_logs

router = APIRouter(prefix="/debug", tags=["debug"])


router.add_api_route(
    "/upstream_logs", endpoint=lambda: upstream_logs, methods=["GET"]
)


@router.delete("/upstream_logs")
async def clear_upstream_logs():
    """Clear the upstream communication logs."""
    upstream_logs.clear()
    return {"status": "ok"}

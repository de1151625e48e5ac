# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the main unit so this responsibility stays isolated, testable, and easy to evolve.

Main application entry point for the versebridge proxy server.
Includes error handling and router registration.
"""

from __future__ import annotations

import argparse
from typing import Optional
import os

from fastapi import FastAPI, APIRouter, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from versebridge.api.v1.http_responses import error_json
from versebridge.models.proxy import HealthResponse
from versebridge.services.exceptions import ServiceError

# Import API routers
from versebridge.api.v1.chat import router as chat_router  # noqa: E402
from versebridge.api.v1.scripture import router as scripture_router  # noqa: E402
from versebridge.api.v1.voice import router as voice_router  # noqa: E402
from versebridge.api.v1.debug import router as debug_router  # noqa: E402


def create_app() -> FastAPI:
    """Create the FastAPI app.

    Uvicorn's reload mode requires an import string; using an app factory keeps
    route registration consistent across reload subprocesses.
    """

    app = FastAPI(title="versebridge")

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"http://(localhost|127\.0\.0\.1)(:\d+)?",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(chat_router)
    api_v1_router.include_router(scripture_router)
    api_v1_router.include_router(voice_router)
    api_v1_router.include_router(debug_router)

    api_v1_router.add_api_route(
        "/health",
        endpoint=lambda: {"status": "ok"},
        methods=["GET"],
        response_model=HealthResponse,
    )

    app.include_router(api_v1_router)

    # --------------- global exception handlers ---------------
    @app.exception_handler(ServiceError)
    async def _service_error_handler(
        _request: Request, exc: ServiceError
    ) -> JSONResponse:
        return error_json(exc.detail, status_code=exc.status_code, **exc.extra)

    @app.exception_handler(Exception)
    async def _unexpected_error_handler(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        return error_json(
            "Unexpected server error",
            status_code=500,
            details=str(exc) or type(exc).__name__,
        )

    return app


app = create_app()


def build_arg_parser() -> argparse.ArgumentParser:
    """Build Arg Parser."""
    parser = argparse.ArgumentParser(
        prog="versebridge",
        description="Run the versebridge proxy server",
    )
    parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", type=int, default=8000, help="Port to bind (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (development only)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker processes (overrides reload)",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug", "trace"],
        help="Log level for the server (default: info)",
    )
    parser.add_argument(
        "--upstream-dump",
        action="store_true",
        help="Dump upstream request/response logs to a file",
    )
    parser.add_argument(
        "--upstream-dump-path",
        default=None,
        help="Path for the upstream dump file (overrides default)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entrypoint to run the server via a normal Python invocation.

    Examples:
      python -m versebridge.main --help
      python -m versebridge.main --host 0.0.0.0 --port 8000 --reload
    """
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.upstream_dump:
        os.environ["VB_UPSTREAM_DUMP"] = "1"
    if args.upstream_dump_path:
        os.environ["VB_UPSTREAM_DUMP_PATH"] = args.upstream_dump_path

    # Import uvicorn lazily so that importing this module doesn't require it for tests/tools
    import uvicorn  # type: ignore

    # Uvicorn's reload/multi-worker modes require an import string.
    use_import_string = bool(args.reload) or (
        isinstance(args.workers, int) and args.workers > 1
    )
    if use_import_string:
        app_target = "versebridge.main:create_app"
        factory = True
    else:
        app_target = app
        factory = False

    uvicorn.run(
        app_target,
        host=args.host,
        port=args.port,
        reload=bool(args.reload) if args.workers in (None, 0) else False,
        workers=args.workers,
        log_level=args.log_level,
        factory=factory,
    )


if __name__ == "__main__":
    main()

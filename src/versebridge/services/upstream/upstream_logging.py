# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the upstream logging unit so this responsibility stays isolated, testable, and easy to evolve."""

from __future__ import annotations

import datetime
import json
import os
import uuid
from typing import Any, Dict, List, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

MAX_LOG_ENTRIES = 100

SECRET_HEADERS = ("authorization", "xi-api-key", "x-api-key")
SECRET_PARAMS = ("key", "api_key")

# Global list to store upstream communication logs for the current session
upstream_logs: List[Dict[str, Any]] = []


def redact_url(url: str) -> str:
    """Mask API keys that are passed as query parameters."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (k, "REDACTED" if k.lower() in SECRET_PARAMS else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query)))


def redact_headers(headers: Mapping[str, str] | None) -> Dict[str, str]:
    return {
        k: ("***" if k.lower() in SECRET_HEADERS else v)
        for k, v in (headers or {}).items()
    }


def add_upstream_log(log_entry: Dict[str, Any]):
    """Add a log entry to the global list, keeping only the last 100 entries.

    If VB_UPSTREAM_DUMP is set, also append the raw log to a file.
    """
    if log_entry not in upstream_logs:
        upstream_logs.append(log_entry)
        if len(upstream_logs) > MAX_LOG_ENTRIES:
            upstream_logs.pop(0)

    if os.getenv("VB_UPSTREAM_DUMP") == "1":
        default_path = os.path.join("data", "logs", "upstream_raw.log")
        log_path = os.getenv("VB_UPSTREAM_DUMP_PATH") or default_path
        try:
            os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
            with open(log_path, "a", encoding="utf-8") as f:
                f.write("=" * 80 + "\n")
                f.write(f"TIMESTAMP: {datetime.datetime.now().isoformat()}\n")
                f.write("-" * 80 + "\n")
                f.write(json.dumps(log_entry, indent=2, default=str) + "\n")
                f.write("=" * 80 + "\n\n")
        except OSError:
            # Dump file is a dev-only aid; the in-memory log is authoritative.
            pass


def create_log_entry(
    url: str,
    method: str,
    headers: Mapping[str, str] | None,
    body: Any,
    streaming: bool = False,
) -> Dict[str, Any]:
    """Create a new log entry structure."""
    safe_body = body
    if isinstance(body, dict):
        safe_body = body.copy()
        for key in ["api_key", "key", "secret", "password"]:
            if key in safe_body:
                safe_body[key] = "REDACTED"

    return {
        "id": str(uuid.uuid4()),
        "timestamp_start": datetime.datetime.now().isoformat(),
        "timestamp_end": None,
        "request": {
            "url": redact_url(url),
            "method": method,
            "headers": redact_headers(headers),
            "body": safe_body,
        },
        "response": {
            "status_code": None,
            "streaming": streaming,
            "bytes_streamed": 0 if streaming else None,
            "body": None,
            "error_detail": None,
        },
    }


def finish_log_entry(
    log_entry: Dict[str, Any],
    status_code: int | None = None,
    body: Any = None,
    error_detail: str | None = None,
) -> None:
    log_entry["timestamp_end"] = datetime.datetime.now().isoformat()
    if status_code is not None:
        log_entry["response"]["status_code"] = status_code
    if body is not None:
        log_entry["response"]["body"] = body
    if error_detail is not None:
        log_entry["response"]["error_detail"] = error_detail

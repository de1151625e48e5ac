# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
# Purpose: Defines the config unit so this responsibility stays isolated, testable, and easy to evolve.

"""
Configuration loading utilities for versebridge.

Conventions:
- Proxy config: resources/config/proxy.json (or $VB_CONFIG_PATH)
- Environment variables override JSON values.
- JSON values can reference environment variables using ${VAR_NAME} placeholders.

Every upstream service has its own section: openai, esv, biblia, elevenlabs.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent
CONFIG_DIR = BASE_DIR / "resources" / "config"
DATA_DIR = BASE_DIR / "data"
LOGS_DIR = DATA_DIR / "logs"

SERVICE_NAMES = ("openai", "esv", "biblia", "elevenlabs")

DEFAULT_PROXY_CONFIG: Dict[str, Any] = {
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "model": "gpt-5-mini",
        "timeout_s": 60,
    },
    "esv": {
        "base_url": "https://api.esv.org/v3",
        "timeout_s": 30,
    },
    "biblia": {
        "base_url": "https://api.biblia.com/v1",
        "timeout_s": 30,
    },
    "elevenlabs": {
        "base_url": "https://api.elevenlabs.io/v1",
        "model": "eleven_turbo_v2",
        "format": "mp3_44100_128",
        "timeout_s": 120,
    },
}

_ENV_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")


def _interpolate_env(value: Any) -> Any:
    """Interpolate ${VAR} placeholders within strings using environment variables.

    Non-string types are returned unchanged.
    """
    if isinstance(value, str):

        def replace(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, match.group(0))  # leave placeholder if unset

        return _ENV_PATTERN.sub(replace, value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(v) for v in value]
    return value


def is_unresolved_placeholder(value: Any) -> bool:
    """True when value is still a bare ${VAR} placeholder whose variable is unset."""
    return isinstance(value, str) and _ENV_PATTERN.fullmatch(value.strip()) is not None


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Deeply merge mapping 'override' into dict 'base'. Returns new dict.

    - For dict values, merges recursively.
    - For lists and scalars, override replaces base.
    """
    result: Dict[str, Any] = dict(base)
    for k, v in override.items():
        if isinstance(v, Mapping) and isinstance(result.get(k), Mapping):
            result[k] = _deep_merge(dict(result[k]), v)  # type: ignore[index]
        else:
            result[k] = v
    return result


def load_json_file(path: os.PathLike[str] | str | None) -> Dict[str, Any]:
    """Load JSON from path if it exists; return empty dict if missing.

    Raises ValueError for malformed JSON.
    """
    if path is None:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON at {p}: {e}") from e


def _env_overrides() -> Dict[str, Any]:
    """Collect <SERVICE>_* environment variables into a nested dict structure.

    Supported variables per service (OPENAI, ESV, BIBLIA, ELEVENLABS):
    - <SERVICE>_API_KEY -> <service>.api_key
    - <SERVICE>_BASE_URL -> <service>.base_url
    - <SERVICE>_TIMEOUT_S -> <service>.timeout_s (int if parseable)
    - OPENAI_MODEL -> openai.model
    """
    result: Dict[str, Any] = {}
    for service in SERVICE_NAMES:
        prefix = service.upper()
        section: Dict[str, Any] = {}
        api_key = os.getenv(f"{prefix}_API_KEY")
        base_url = os.getenv(f"{prefix}_BASE_URL")
        timeout_s = os.getenv(f"{prefix}_TIMEOUT_S")
        if api_key is not None:
            section["api_key"] = api_key
        if base_url is not None:
            section["base_url"] = base_url
        if timeout_s is not None:
            try:
                section["timeout_s"] = int(timeout_s)
            except ValueError:
                section["timeout_s"] = timeout_s
        if section:
            result[service] = section

    model = os.getenv("OPENAI_MODEL")
    if model is not None:
        result.setdefault("openai", {})["model"] = model
    return result


def default_config_path() -> Path:
    override = os.getenv("VB_CONFIG_PATH")
    if override:
        return Path(override)
    return CONFIG_DIR / "proxy.json"


def load_proxy_config(
    path: os.PathLike[str] | str | None = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Load proxy configuration applying precedence and interpolation.

    Precedence: env overrides > JSON file > defaults > built-in defaults
    """
    if path is None:
        path = default_config_path()
    merged = _deep_merge(DEFAULT_PROXY_CONFIG, defaults or {})
    json_config = load_json_file(path)
    json_config = _interpolate_env(json_config)
    merged = _deep_merge(merged, json_config)
    merged = _deep_merge(merged, _env_overrides())
    return merged


def get_service_config(name: str) -> Dict[str, Any]:
    """Return the config section for one upstream service (empty dict if absent)."""
    section = load_proxy_config().get(name) or {}
    return section if isinstance(section, dict) else {}

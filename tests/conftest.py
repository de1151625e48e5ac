# Copyright (C) 2026 StableLlama
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""Defines the conftest unit so this responsibility stays isolated, testable, and easy to evolve."""

import os
import tempfile
import pytest
from pathlib import Path

# Environment variables that would otherwise leak real credentials or
# endpoints from the developer's shell into the tests.
_ISOLATED_VARS = [
    "VB_CONFIG_PATH",
    "VB_UPSTREAM_DUMP",
    "VB_UPSTREAM_DUMP_PATH",
    "OPENAI_MODEL",
]
for _service in ("OPENAI", "ESV", "BIBLIA", "ELEVENLABS"):
    _ISOLATED_VARS += [
        f"{_service}_API_KEY",
        f"{_service}_BASE_URL",
        f"{_service}_TIMEOUT_S",
    ]


@pytest.fixture(scope="session", autouse=True)
def session_temp_env():
    temp_dir = tempfile.TemporaryDirectory(prefix="vb_test_session_")

    originals = {name: os.environ.pop(name, None) for name in _ISOLATED_VARS}

    # Point the config loader at a file that does not exist so that only
    # built-in defaults and per-test env vars apply.
    os.environ["VB_CONFIG_PATH"] = str(Path(temp_dir.name) / "proxy.json")

    yield

    temp_dir.cleanup()
    os.environ.pop("VB_CONFIG_PATH", None)
    for name, value in originals.items():
        if value is not None:
            os.environ[name] = value

"""Root conftest.

Settings are read once at import time, so .env.test is applied to the
process environment here, before any test module imports direct_chat.
Values from .env.test win over the caller's environment so that a developer
shell with real credentials cannot leak into the suite.
"""
from __future__ import annotations

import os
from pathlib import Path

ENV_TEST = Path(__file__).resolve().parent / ".env.test"


def _read_env(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip()
    return values


if ENV_TEST.exists():
    os.environ.update(_read_env(ENV_TEST))

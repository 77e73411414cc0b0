"""Root conftest: test environment for pharma_inbox settings.

Runs before any test module imports ``pharma_inbox.config``.
"""
from __future__ import annotations

import os
from pathlib import Path

_TEST_DEFAULTS = {
    "PHARMA_API_URL": "http://backend.test/api",
    "PHARMA_RELAY_URL": "http://relay.test",
    "PHARMA_RELAY_RECONNECT": "false",
    "PHARMA_LOG_LEVEL": "DEBUG",
}


def _apply_env_file(path: Path) -> None:
    for raw in path.read_text().splitlines():
        entry = raw.strip()
        if entry and not entry.startswith("#"):
            key, _, value = entry.partition("=")
            os.environ.setdefault(key.strip(), value.strip())


_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    _apply_env_file(_env_test)
for _key, _value in _TEST_DEFAULTS.items():
    os.environ.setdefault(_key, _value)

"""Root conftest: pins client settings before rental_client.config is imported."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_ENV = {
    "API_URL": "http://marketplace.test/api",
    "SOCKET_URL": "http://marketplace.test",
    "TOKEN_FILE": str(Path(tempfile.gettempdir()) / "rental-client-test" / "token"),
    "SUCCESS_MESSAGE_TTL": "0.05",
    "LOG_LEVEL": "DEBUG",
}

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for line in _env_test.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        os.environ.setdefault(key.strip(), value.strip())

for key, value in _TEST_ENV.items():
    os.environ.setdefault(key, value)

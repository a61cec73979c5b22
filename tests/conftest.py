"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach the real generation API or database
os.environ.setdefault("UNLOCK_API_KEY", "unlock-test-fake-key")
os.environ.setdefault("UNLOCK_API_BASE_URL", "http://unlock.test/api/v2")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)

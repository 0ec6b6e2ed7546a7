"""Root conftest — shared test configuration."""

import os

# Never pick up a developer's database or keys from the environment
os.environ.pop("DATABASE_URL", None)
os.environ.setdefault("API_KEYS", "{}")

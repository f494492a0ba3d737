# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite unless TEST_DATABASE_URL points at Postgres
  (the concurrent-outbound test only runs against Postgres)
- Fast password hashing
- Downstream postings on: tests cover AR/COGS/commission explicitly
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import env

DEBUG = False

DATABASES = {
    "default": env.db("TEST_DATABASE_URL", default="sqlite://:memory:"),
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

ACCOUNTING_POSTING_ENABLED = True
COMMISSION_ENABLED = True

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_CLASSES": (),
}

LOGGING = {
    **LOGGING,  # noqa: F405
    "root": {"handlers": ["console"], "level": "CRITICAL"},
}

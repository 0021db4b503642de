"""Settings for the test suite.

Layers test-only overrides on top of ``config.settings``: a fixed secret key,
an in-memory cache (no Redis needed), eager Celery and no real routing hosts.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from config.settings import *  # noqa: E402,F401,F403

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "ecochain-tests",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

ROUTING_ENDPOINTS = ["http://osrm.test", "http://osrm-backup.test"]
ROUTING_TIMEOUT_SECONDS = 1.0
OPENCAGE_API_KEY = ""

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

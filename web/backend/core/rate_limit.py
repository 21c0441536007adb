"""Rate limiting configuration for web panel.

In-memory storage; per-endpoint limits are applied via decorators.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

# Create limiter with default rate (global fallback)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
)

# ── Per-endpoint rate limit presets ──────────────────────────

RATE_AUTH = "5/minute"           # login
RATE_MUTATIONS = "60/minute"     # create, update, delete

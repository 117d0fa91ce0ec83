"""
Tracker - Request rate limits.

Routers and system endpoints decorate with `limiter.limit(...)` using one of
the tiers below. Limits are per client IP; tests switch the limiter off
with `limiter.enabled = False`.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Analyze and prompt edits: every analyze call is a paid summary request
RATE_LIMIT_AI = "5/minute"

# Whole-table operations: bulk delete, delete all, import, sample data
RATE_LIMIT_BULK = "10/minute"

# Single-record writes
RATE_LIMIT_GENERAL = "30/minute"

# Stats, status and export reads
RATE_LIMIT_READ = "60/minute"

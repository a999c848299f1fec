# File: app/core/ratelimit.py

from slowapi import Limiter
from slowapi.util import get_remote_address
from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.ratelimit_enabled)
# slowapi re-reads RATELIMIT_ENABLED from the raw environment as a string, so "false" stays truthy
limiter.enabled = settings.ratelimit_enabled

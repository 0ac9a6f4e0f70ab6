"""
api/limiter.py -- Shared slowapi rate limiter and the auth route limits.

api/routes/auth.py decorates login and signup with login_limit / signup_limit.
One shared instance means one counter store; per-module instances would
never trip.

The limits are callables, so slowapi re-reads LOGIN_RATE_LIMIT and
SIGNUP_RATE_LIMIT from Settings on every check instead of freezing them at
import time.

RATE_LIMIT_STORAGE_URI defaults to in-process memory. Point it at Redis
(redis://host:6379) when running more than one worker, otherwise each worker
counts separately and the effective limit multiplies.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings


def login_limit() -> str:
    return get_settings().login_rate_limit


def signup_limit() -> str:
    return get_settings().signup_rate_limit


limiter = Limiter(key_func=get_remote_address, storage_uri=get_settings().rate_limit_storage_uri)

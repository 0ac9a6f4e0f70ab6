"""
core/ids.py -- Opaque record identifiers.

Every record (users, directors, movies) is keyed by 24 lowercase hex
characters -- 96 random bits, the shape of a MongoDB ObjectId, which API
clients already expect in `_id`. Anything that does not match the
shape can never exist, so stores treat it as "not found" without a query.
"""

import re
import secrets

_ID_RE = re.compile(r"[0-9a-f]{24}")


def new_id() -> str:
    return secrets.token_hex(12)


def is_valid_id(value: str) -> bool:
    return bool(_ID_RE.fullmatch(value or ""))

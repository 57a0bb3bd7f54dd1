"""Content fingerprinting helpers."""

from __future__ import annotations

import hashlib


def make_hash(payload: str | bytes) -> str:
    """SHA-1 hex digest of *payload* (strings are UTF-8 encoded)."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hashlib.sha1(payload).hexdigest()


def short_hash(payload: str | bytes, length: int = 12) -> str:
    """First *length* hex characters of :func:`make_hash`."""
    return make_hash(payload)[:length]


def make_fingerprint(parts: list[str]) -> str:
    """Hash an ordered list of inputs into a single cache key.

    Parts are joined with ``::`` so the order is significant.
    """
    return make_hash("::".join(parts))

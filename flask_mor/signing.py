"""HMAC-SHA256 request signing for the MOR checkout API.

Every request carries ``HMAC-SHA256(key, payload + timestamp)`` as a
lowercase hex digest, where *payload* is either:

* the compact JSON text of a structured body (exactly what is sent on the
  wire for POST calls), or
* a raw string, for identifier-only GET lookups and redirect nonces.

There is no separator between payload and timestamp.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import re
from datetime import datetime, timezone
from typing import Any

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_TIMESTAMP_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}Z")


def utc_timestamp(now: datetime | None = None) -> str:
    """Return *now* (default: current time) as ``YYYY-MM-DDTHH:MM:SSZ``.

    Naive datetimes are assumed to already be in UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse a ``YYYY-MM-DDTHH:MM:SSZ`` string into an aware UTC datetime.

    Raises:
        ValueError: If *value* is not in exactly that format.
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, not {type(value).__name__}")
    if not _TIMESTAMP_RE.fullmatch(value):
        raise ValueError(f"timestamp {value!r} does not match YYYY-MM-DDTHH:MM:SSZ")
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def canonical_payload(body: Any) -> str:
    """Return the text that gets signed for *body*.

    Strings are signed as-is and ``bytes`` are decoded as UTF-8.  Anything
    else is serialised to compact JSON, preserving the caller's key order.
    """
    if isinstance(body, str):
        return body
    if isinstance(body, bytes):
        return body.decode("utf-8")
    return json.dumps(body, separators=(",", ":"))


def _key_bytes(key: str | bytes) -> bytes:
    return key if isinstance(key, bytes) else key.encode("utf-8")


def sign(body: Any, timestamp: str, key: str | bytes) -> str:
    """Return the hex HMAC-SHA256 signature of *body* + *timestamp*."""
    message = (canonical_payload(body) + timestamp).encode("utf-8")
    return hmac.new(_key_bytes(key), message, hashlib.sha256).hexdigest()


def sign_nonce(external_order_id: str, timestamp: str, key: str | bytes) -> str:
    """Return the nonce the MOR attaches to a redirect-return URL."""
    return sign(str(external_order_id), timestamp, key)

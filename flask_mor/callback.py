"""Validation of the redirect-return leg of a hosted checkout.

After payment the MOR sends the customer back to ``successReturnUrl`` or
``failureReturnUrl`` with four query parameters::

    ?mor_order_id=...&external_order_id=...&timestamp=...&nonce=...

``nonce`` is ``HMAC-SHA256(key, external_order_id + timestamp)``.  A callback
is trusted only when the nonce matches and the timestamp is fresh.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping

from flask_mor.exceptions import CallbackError, ExpiredTimestamp, InvalidSignature, MissingParameter
from flask_mor.signing import parse_timestamp, sign_nonce

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 300
DEFAULT_MAX_FUTURE_SKEW = 60

CALLBACK_PARAMS = ("mor_order_id", "external_order_id", "timestamp", "nonce")


def _check_freshness(timestamp: str, now: datetime, max_age: float, max_future_skew: float) -> None:
    try:
        sent_at = parse_timestamp(timestamp)
    except ValueError as exc:
        raise ExpiredTimestamp(f"Unparseable callback timestamp: {timestamp!r}") from exc

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    age = (now - sent_at).total_seconds()

    # exactly max_age seconds old is still accepted
    if age > max_age:
        raise ExpiredTimestamp(
            f"Callback timestamp is {int(age)}s old (limit {int(max_age)}s); possible replay"
        )
    if -age > max_future_skew:
        raise ExpiredTimestamp(
            f"Callback timestamp is {int(-age)}s in the future (limit {int(max_future_skew)}s)"
        )


def verify_nonce(
    external_order_id: str,
    timestamp: str,
    nonce: str,
    key: str | bytes,
    now: datetime | None = None,
    *,
    max_age: float = DEFAULT_MAX_AGE,
    max_future_skew: float = DEFAULT_MAX_FUTURE_SKEW,
) -> None:
    """Check a callback nonce, raising on failure.

    Args:
        external_order_id: The partner's order id echoed back by the MOR.
        timestamp: The raw ``YYYY-MM-DDTHH:MM:SSZ`` string from the callback.
        nonce: The hex digest from the callback.
        key: The shared signing key.
        now: Validation time; defaults to the current UTC time.
        max_age: Oldest acceptable timestamp, in seconds.
        max_future_skew: How far ahead of *now* a timestamp may be, in seconds.

    Raises:
        ExpiredTimestamp: The timestamp is stale, too far ahead, or unparseable.
        InvalidSignature: The nonce does not match, or *key* is empty.
    """
    if not key:
        raise InvalidSignature("No signing key configured; refusing to trust callback")
    if now is None:
        now = datetime.now(timezone.utc)
    _check_freshness(timestamp, now, max_age, max_future_skew)

    expected = sign_nonce(external_order_id, timestamp, key)
    if not hmac.compare_digest(expected.encode("utf-8"), (nonce or "").encode("utf-8")):
        raise InvalidSignature("Callback nonce does not match")


def validate(
    external_order_id: str,
    timestamp: str,
    nonce: str,
    key: str | bytes,
    now: datetime | None = None,
    *,
    max_age: float = DEFAULT_MAX_AGE,
    max_future_skew: float = DEFAULT_MAX_FUTURE_SKEW,
) -> bool:
    """Return ``True`` when the nonce is valid and fresh, ``False`` otherwise."""
    try:
        verify_nonce(
            external_order_id,
            timestamp,
            nonce,
            key,
            now,
            max_age=max_age,
            max_future_skew=max_future_skew,
        )
    except CallbackError as exc:
        logger.info("Rejected callback for %s: %s", external_order_id, exc)
        return False
    return True


@dataclass(frozen=True)
class RedirectCallback:
    """The four query parameters of a redirect-return URL."""

    mor_order_id: str
    external_order_id: str
    timestamp: str
    nonce: str

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "RedirectCallback":
        """Build a callback from request query args.

        Raises:
            MissingParameter: If any of the four parameters is absent or empty.
        """
        missing = [name for name in CALLBACK_PARAMS if not args.get(name)]
        if missing:
            raise MissingParameter(missing)
        return cls(**{name: args[name] for name in CALLBACK_PARAMS})

    def verify(
        self,
        key: str | bytes,
        now: datetime | None = None,
        *,
        max_age: float = DEFAULT_MAX_AGE,
        max_future_skew: float = DEFAULT_MAX_FUTURE_SKEW,
    ) -> None:
        """Run :func:`verify_nonce` against this callback's fields."""
        verify_nonce(
            self.external_order_id,
            self.timestamp,
            self.nonce,
            key,
            now,
            max_age=max_age,
            max_future_skew=max_future_skew,
        )

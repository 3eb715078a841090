"""Token health: find a credential's expiry and bucket the time left.

Subscription credentials are JSON bundles whose expiry field name and
nesting vary between Claude Code releases, so :func:`parse_expiry` tries
a short, ordered list of lookups instead of assuming one shape. Anything it
cannot understand degrades to a label (``valid``, ``unknown``, ``invalid``)
rather than an exception: a single odd token must never break ``list``.

Thresholds used by :func:`classify`, on ``d = expiry - now`` in seconds:

============================  ================  =========================
Range                         Bucket            Label
============================  ================  =========================
``d < 0``                     expired           ``expired 3h ago`` / ``expired 2d ago``
``0 <= d < 30m``              expires-soon      ``expires soon (12m)``
``30m <= d < 4h``             expires-soon      ``expires soon (2h)``
``4h <= d < 7d``              expires-in        ``expires in 3d 4h``
``d >= 7d``                   valid             ``valid (9d)``
============================  ================  =========================
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional, Union

from ccprofile.models import HealthBucket, TokenHealth

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY

EXPIRY_FIELDS = (
    "expires_at",
    "expiresAt",
    "expires",
    "exp",
    "accessTokenExpiresAt",
    "refreshTokenExpiresAt",
)
"""Candidate expiry keys, tried in order at any depth of the bundle."""

_NESTED_ACCESS_TOKEN_PATHS = (
    ("claudeAiOauth", "accessToken", "expires_at"),
    ("claudeAiOauth", "accessToken", "expiresAt"),
)

_MAX_DEPTH = 8

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
_FRACTION_RE = re.compile(r"\.\d+")
# 12 digits and up; epoch seconds stay below this for millennia.
_MS_THRESHOLD = 10**11
_JWT_RE = re.compile(r"^[^.]+\.[^.]+\.[^.]+$")
_JWT_EXP_RE = re.compile(r'"exp"\s*:\s*(\d+)')

VALID = TokenHealth(bucket=HealthBucket.VALID, label="valid")
UNKNOWN = TokenHealth(bucket=HealthBucket.UNKNOWN, label="unknown")
INVALID = TokenHealth(bucket=HealthBucket.INVALID, label="invalid")
NOT_APPLICABLE = TokenHealth(bucket=HealthBucket.NOT_APPLICABLE, label="n/a")


# --- Timestamps ---


def normalize_timestamp(value: Any) -> Optional[int]:
    """Convert an expiry value to whole seconds since the epoch.

    Accepts all-digit integers of 12 or more digits (milliseconds), shorter
    all-digit integers (seconds), and ISO-8601 strings with ``Z``, an
    offset, or no zone (treated as UTC). Returns ``None`` for anything else.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        value = int(value)
    text = str(value).strip()
    if text.isdigit():
        number = int(text)
        if number >= _MS_THRESHOLD:
            return number // 1000
        return number
    if _ISO_RE.match(text):
        text = text.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            # Python < 3.11 only takes 3 or 6 fraction digits; the offset is kept.
            try:
                parsed = datetime.fromisoformat(_FRACTION_RE.sub("", text, count=1))
            except ValueError:
                return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp())
    return None


# --- Expiry discovery ---


def _find_key(node: Any, key: str, depth: int = 0) -> Any:
    """Depth-first search for the first non-null *key* in nested dicts/lists."""
    if depth > _MAX_DEPTH:
        return None
    if isinstance(node, dict):
        value = node.get(key)
        if value is not None:
            return value
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = _find_key(child, key, depth + 1)
        if found is not None:
            return found
    return None


def _follow(node: Any, path: tuple[str, ...]) -> Any:
    for segment in path:
        if not isinstance(node, dict):
            return None
        node = node.get(segment)
    return node


def parse_expiry(bundle: Union[str, dict[str, Any]]) -> Optional[Any]:
    """Return the raw expiry value found in a token bundle, or ``None``.

    Args:
        bundle: The bundle as a JSON string or an already-decoded dict.
            Invalid JSON is treated as a bundle with no expiry.

    Returns:
        The first non-null value among :data:`EXPIRY_FIELDS` (in that
        order, at any depth), then the nested access-token shape. The value
        is returned as found; see :func:`normalize_timestamp`.
    """
    if isinstance(bundle, str):
        try:
            bundle = json.loads(bundle)
        except (json.JSONDecodeError, ValueError):
            logger.debug("token bundle is not valid JSON")
            return None

    for field in EXPIRY_FIELDS:
        value = _find_key(bundle, field)
        if value is not None:
            logger.debug("found expiry field %r", field)
            return value

    for path in _NESTED_ACCESS_TOKEN_PATHS:
        value = _follow(bundle, path)
        if value is not None:
            logger.debug("found nested access token expiry at %s", ".".join(path))
            return value

    logger.debug("no expiry field in token bundle")
    return None


# --- Classification ---


def classify(now: int, expiry: Optional[int]) -> TokenHealth:
    """Bucket the time between *now* and *expiry* (both epoch seconds).

    A missing *expiry* is reported as valid: an unfamiliar bundle shape is
    far more likely than a broken one.
    """
    if expiry is None:
        return VALID

    diff = expiry - now
    if diff < 0:
        ago = -diff
        if ago < DAY:
            return TokenHealth(bucket=HealthBucket.EXPIRED, label=f"expired {ago // HOUR}h ago")
        return TokenHealth(bucket=HealthBucket.EXPIRED, label=f"expired {ago // DAY}d ago")
    if diff < 30 * MINUTE:
        return TokenHealth(
            bucket=HealthBucket.EXPIRES_SOON, label=f"expires soon ({diff // MINUTE}m)"
        )
    if diff < 4 * HOUR:
        return TokenHealth(bucket=HealthBucket.EXPIRES_SOON, label=f"expires soon ({diff // HOUR}h)")
    if diff < WEEK:
        days, hours = diff // DAY, (diff % DAY) // HOUR
        label = f"expires in {days}d {hours}h" if hours else f"expires in {days}d"
        return TokenHealth(bucket=HealthBucket.EXPIRES_IN, label=label)
    return TokenHealth(bucket=HealthBucket.VALID, label=f"valid ({diff // DAY}d)")


def _legacy_jwt_health(token: str, now: int) -> TokenHealth:
    """Coarse health of a bare three-part token from its payload's ``exp``."""
    payload = token.split(".")[1]
    payload += "=" * (-len(payload) % 4)
    try:
        decoded = base64.urlsafe_b64decode(payload).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return INVALID
    if not decoded:
        return INVALID

    match = _JWT_EXP_RE.search(decoded)
    if match is None:
        return UNKNOWN

    diff = int(match.group(1)) - now
    if diff < 0:
        return TokenHealth(bucket=HealthBucket.EXPIRED, label="expired")
    if diff < 4 * HOUR:
        return TokenHealth(bucket=HealthBucket.EXPIRES_SOON, label=f"expires soon ({diff // HOUR}h)")
    if diff < WEEK:
        return TokenHealth(bucket=HealthBucket.VALID, label=f"valid ({diff // DAY}d)")
    return VALID


def is_bundle_shaped(secret: str) -> bool:
    """Return True if *secret* looks like a JSON token bundle (brace-wrapped)."""
    text = secret.strip()
    return text.startswith("{") and text.endswith("}")


def assess(secret: Optional[str], now: Optional[int] = None) -> TokenHealth:
    """Work out the health of a stored secret.

    Args:
        secret: The secret as stored in the keychain.
        now: Current epoch seconds; defaults to the wall clock.

    Returns:
        ``n/a`` for empty secrets, the bundle or legacy-token health when the
        shape is recognised, ``invalid`` otherwise.
    """
    if not secret:
        return NOT_APPLICABLE
    if now is None:
        now = int(time.time())

    if is_bundle_shaped(secret):
        raw = parse_expiry(secret)
        if raw is None:
            return VALID
        expiry = normalize_timestamp(raw)
        if expiry is None:
            logger.debug("unrecognised expiry format: %r", raw)
            return UNKNOWN
        return classify(now, expiry)

    if _JWT_RE.match(secret):
        return _legacy_jwt_health(secret, now)

    return INVALID


def check_token_health(secret: Optional[str], now: Optional[int] = None) -> str:
    """Return just the display label of :func:`assess`."""
    return assess(secret, now).label

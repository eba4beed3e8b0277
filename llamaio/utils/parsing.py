# llamaio/utils/parsing.py
# Value parsers shared by query-parameter and request-body handling

import math
import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

EPOCH = datetime(1970, 1, 1)

_TRUE_TOKENS = {"true", "1"}
_FALSE_TOKENS = {"false", "0"}

# Leading decimal integer, the part of "2.0" or "10abc" that counts
_LEADING_INT_RE = re.compile(r"^\s*([+-]?[0-9]+)")


def utcnow() -> datetime:
    """Current UTC time, naive, truncated to milliseconds"""
    return _to_millis(datetime.now(timezone.utc).replace(tzinfo=None))


def _to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def parse_bool(value: Any) -> bool:
    """Parse a boolean flag; raises ValueError on anything but true/false tokens"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def parse_non_negative_int(value: Optional[str], default: Optional[int]) -> Optional[int]:
    """
    Parse skip/limit style parameters from their leading digits.

    "2.0" reads as 2 and "10abc" as 10; no leading digits or a negative
    number fall back to the default.
    """
    if value is None:
        return default
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return default
    number = int(match.group(1))
    if number < 0:
        return default
    return number


def _from_epoch_millis(number: float) -> Optional[datetime]:
    if not math.isfinite(number):
        return None
    millis = math.floor(number + 0.5)
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except OverflowError:
        return None


def _from_date_string(text: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return _to_millis(parsed)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a deadline-style timestamp.

    Numbers (and numeric strings) are epoch milliseconds, rounded half-up.
    Anything else is tried as an ISO-8601 or RFC 2822 date string; values
    without an offset are taken as UTC. Returns None when neither works.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _from_date_string(value.isoformat())
    if isinstance(value, (int, float)):
        return _from_epoch_millis(float(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return _from_date_string(text)
    return _from_epoch_millis(number)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as ISO-8601 UTC with milliseconds"""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

"""
Timestamp utilities for alertcapture.

Provides common timestamp functions used across the application.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from alertcapture.models.constants import CAPTURE_NAME_TIMESTAMP_FORMAT

# Control plane timestamps may carry 7 fractional digits; datetime accepts 6
_FRACTION_PATTERN = re.compile(r"\.(\d{6})\d+")


def now_utc() -> datetime:
    """Get current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def capture_name_suffix(moment: Optional[datetime] = None) -> str:
    """Compact YYYYMMDDHHMMSS suffix used to keep capture names unique."""
    return (moment or now_utc()).strftime(CAPTURE_NAME_TIMESTAMP_FORMAT)


def parse_arm_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as returned by Azure Resource Manager.

    Naive values are assumed to be UTC. Returns None for empty input.

    Raises:
        ValueError: If the value is not a recognizable timestamp
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_PATTERN.sub(r".\1", text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

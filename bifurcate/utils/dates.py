"""
Timestamp helpers shared by the feed and mirror builders
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional


def isoformat_utc(moment: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a 'Z' suffix"""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 or RFC 2822 date string.

    Returns None for empty or unrecognised values.
    """
    if not value or not value.strip():
        return None
    text = value.strip()

    iso_text = text[:-1] + '+00:00' if text.endswith(('Z', 'z')) else text
    try:
        return datetime.fromisoformat(iso_text)
    except ValueError:
        pass

    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None

"""
KST helpers. Match times are entered in Korea Standard Time and stored as UTC.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

KST = timezone(timedelta(hours=9))
# Postgres trims trailing zeros from fractional seconds; 3.10 fromisoformat wants 3 or 6 digits
FRACTION_PATTERN = re.compile(r"\.(\d{1,6})\d*(?=[+-]|$)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse a Supabase timestamp; naive values are treated as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = FRACTION_PATTERN.sub(lambda m: "." + m.group(1).ljust(6, "0"), text)
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def kst_to_utc(value: Union[str, datetime]) -> datetime:
    """'2025-03-01T21:00' (KST wall clock) -> aware UTC datetime. Aware inputs are only converted."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=KST)
    return value.astimezone(timezone.utc)


def today_start_utc(now: Optional[datetime] = None) -> datetime:
    """UTC instant of today's 00:00 in KST"""
    now = now or utcnow()
    local = now.astimezone(KST)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(timezone.utc)


def month_range_utc(year: int, month: int):
    """[first day 00:00 KST, next month first day 00:00 KST) as UTC datetimes"""
    start = datetime(year, month, 1, tzinfo=KST)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=KST)
    else:
        end = datetime(year, month + 1, 1, tzinfo=KST)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def format_kst(value: Union[str, datetime]) -> str:
    """Short display form used in notification texts, e.g. '03/01 21:00'"""
    return parse_timestamp(value).astimezone(KST).strftime("%m/%d %H:%M")

"""
Time Helpers for Governance Engine

TimeWindow rules compare against the caller's local day. A `now` passed in by
the caller is used in its own timezone; when it is missing the engine uses the
current time in the product timezone, and naive datetimes are taken to be in
that timezone too.
"""

from datetime import datetime, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

from governance.config_loader import get_timezone_name


def get_product_timezone() -> tzinfo:
    """Product timezone from configuration (Asia/Kuala_Lumpur by default)."""
    return ZoneInfo(get_timezone_name())


def current_local_time(tz: Optional[tzinfo] = None) -> datetime:
    return datetime.now(tz or get_product_timezone())


def resolve_now(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> datetime:
    """
    Moment to evaluate TimeWindow rules against.
    
    Args:
        now: Caller-supplied local time. Aware values are kept as they are.
        tz: Timezone for missing or naive values. Defaults to the product timezone.
    
    Returns:
        Timezone-aware datetime
    """
    if now is None:
        return current_local_time(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz or get_product_timezone())
    return now


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a registry timestamp into an aware datetime.
    
    Naive values are assumed to be in the product timezone.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        timestamp = value
    else:
        timestamp = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=get_product_timezone())
    return timestamp

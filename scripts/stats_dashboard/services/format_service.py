#------------------------------------------------------------
#                      format_service.py
#          Number, price, percentage and time helpers
#                   for the dashboard views.

from datetime import datetime, timezone
from typing import Optional
from dateutil import relativedelta

NUMBER_TEMPLATE = "{value:,}"
PRICE_TEMPLATE = "{value:.5f}"
PERCENT_TEMPLATE = "{value:.1f}%"
TIME_REMAINING_TEMPLATE = "{minutes}m {seconds}s"
JUST_NOW_LABEL = "just now"

def format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return NUMBER_TEMPLATE.format(value=value)

def format_price(price) -> str:
    return PRICE_TEMPLATE.format(value=float(price))

def format_percent(value: float) -> str:
    return PERCENT_TEMPLATE.format(value=value)

# This function does format a remaining duration as minutes and seconds.
def format_time_remaining(seconds: float) -> str:
    total = max(0, int(seconds))
    return TIME_REMAINING_TEMPLATE.format(minutes=total // 60, seconds=total % 60)

def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''} ago"

# This function does return a human-friendly relative time string.
# Anything under a minute old reads as "just now".
def relative_time(dt: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    delta = relativedelta.relativedelta(now, dt)
    if delta.years > 0:
        return _plural(delta.years, "year")
    if delta.months > 0:
        return _plural(delta.months, "month")
    if delta.days > 0:
        return _plural(delta.days, "day")
    if delta.hours > 0:
        return _plural(delta.hours, "hour")
    if delta.minutes > 0:
        return _plural(delta.minutes, "minute")
    return JUST_NOW_LABEL

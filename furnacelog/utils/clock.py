"""Resolve the current local date for a home."""
from datetime import date, datetime
from typing import Optional

import pytz

from furnacelog import config
from furnacelog.models.home import Home


def home_timezone(home: Optional[Home] = None):
    """The home's zone, falling back to HOME_TIMEZONE for unknown or missing names."""
    name = (home.timezone if home is not None else None) or config.HOME_TIMEZONE
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(config.HOME_TIMEZONE)


def resolve_today(home: Optional[Home] = None, now: Optional[datetime] = None) -> date:
    """
    Today's date where the home is.

    Args:
        home: Home whose zone decides the date
        now: Aware instant to convert; defaults to the current UTC time
    """
    instant = now or datetime.now(pytz.utc)
    if instant.tzinfo is None:
        instant = pytz.utc.localize(instant)
    return instant.astimezone(home_timezone(home)).date()

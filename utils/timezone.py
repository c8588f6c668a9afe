from datetime import date, datetime, timezone

import pytz

import config

# Zona horaria del negocio (las fechas de check-in/check-out son fechas locales)
BUSINESS_TIMEZONE_STR = config.BUSINESS_TIMEZONE
BUSINESS_TZ = pytz.timezone(BUSINESS_TIMEZONE_STR)


def get_business_now() -> datetime:
    """Returns current time in the business timezone"""
    return datetime.now(BUSINESS_TZ)


def get_business_today() -> date:
    """Calendar date (Y-M-D) in the business timezone, time of day ignored"""
    return get_business_now().date()


def utc_now() -> datetime:
    """Naive UTC timestamp, the format stored in DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_business_time(dt: datetime) -> datetime:
    """Converts a datetime to the business timezone"""
    if dt.tzinfo is None:
        # Naive = UTC (así se guardan en la base)
        return pytz.utc.localize(dt).astimezone(BUSINESS_TZ)
    return dt.astimezone(BUSINESS_TZ)

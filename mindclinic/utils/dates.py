"""
Date helpers shared by the billing calculators.

Appointment dates are kept as 'YYYY-MM-DD' strings and compared as strings;
parsing only happens where a real datetime is needed (overdue, last visit, age).
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from zoneinfo import ZoneInfo
import logging
import re

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M'

_DATE_SHAPE = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')
_TIME_SHAPE = re.compile(r'[0-9]{2}:[0-9]{2}')


def clinic_now(timezone_name=None):
    """
    Current wall-clock time in the clinic's timezone, as a naive datetime.

    This is the only place that reads the system clock; calculators receive
    the result as an explicit argument.
    """
    if timezone_name:
        return datetime.now(ZoneInfo(timezone_name)).replace(tzinfo=None)
    return datetime.now()


def to_date_str(value):
    """Format a date/datetime as YYYY-MM-DD"""
    return value.strftime(DATE_FORMAT)


def to_month_str(value):
    """
    Normalize a month reference to 'YYYY-MM'.

    Accepts a date/datetime or a string starting with 'YYYY-MM'.
    """
    if isinstance(value, (date, datetime)):
        return f"{value.year}-{value.month:02d}"
    return str(value)[:7]


def parse_date(date_str):
    """Parse 'YYYY-MM-DD'; returns None for missing or malformed values."""
    if not date_str:
        return None
    try:
        return datetime.strptime(str(date_str)[:10], DATE_FORMAT).date()
    except ValueError:
        return None


def is_date_str(value):
    """
    Strict check for stored dates: zero-padded 'YYYY-MM-DD' naming a real day.
    Stored dates are compared as strings, so '2026-2-5' must be rejected.
    """
    if not isinstance(value, str) or not _DATE_SHAPE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return False
    return True


def is_time_str(value):
    """Strict check for stored times: zero-padded 24h 'HH:MM'."""
    if not isinstance(value, str) or not _TIME_SHAPE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, TIME_FORMAT)
    except ValueError:
        return False
    return True


def parse_appointment_start(date_str, time_str=None):
    """
    Combine an appointment's date and time strings into a datetime.

    Missing time reads as midnight. Returns None when the date or time
    cannot be parsed.
    """
    parsed_date = parse_date(date_str)
    if parsed_date is None:
        return None
    try:
        parsed_time = datetime.strptime(time_str or '00:00', TIME_FORMAT).time()
    except ValueError:
        return None
    return datetime.combine(parsed_date, parsed_time)


def month_start(value, months_back=0):
    """First day of the month `months_back` months before `value`."""
    if isinstance(value, datetime):
        value = value.date()
    return value.replace(day=1) - relativedelta(months=months_back)


def round_half_up(value, digits=0):
    """
    Halves go up (2.5 -> 3), not banker's rounding.
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def calculate_age(birth_date, today):
    """
    Age in whole years on `today`.

    Args:
        birth_date: 'YYYY-MM-DD' string (or date); may be empty
        today: reference date

    Returns:
        int or None when the birth date is unknown
    """
    born = birth_date if isinstance(birth_date, date) else parse_date(birth_date)
    if born is None:
        return None
    if isinstance(today, datetime):
        today = today.date()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def is_minor(birth_date, today):
    age = calculate_age(birth_date, today)
    return age is not None and age < 18

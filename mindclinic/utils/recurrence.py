"""
Date generation for recurring appointment series.
"""
from dateutil.relativedelta import relativedelta

from .dates import is_date_str, parse_date, to_date_str

FREQUENCIES = ('WEEKLY', 'BIWEEKLY', 'MONTHLY')


def _step(frequency, index):
    if frequency == 'WEEKLY':
        return relativedelta(weeks=index)
    if frequency == 'BIWEEKLY':
        return relativedelta(weeks=index * 2)
    # Monthly: relativedelta keeps the day and clamps to the month end
    return relativedelta(months=index)


def generate_recurrence_dates(start_date, frequency, count):
    """
    Dates of a recurring series, starting with start_date itself.

    Args:
        start_date: 'YYYY-MM-DD'
        frequency: WEEKLY, BIWEEKLY or MONTHLY
        count: number of sessions

    Returns:
        list of 'YYYY-MM-DD' strings

    Raises:
        ValueError: unknown frequency or malformed start date
    """
    frequency = (frequency or '').upper()
    if frequency not in FREQUENCIES:
        raise ValueError(f"Unknown frequency '{frequency}'. Use one of: {', '.join(FREQUENCIES)}")

    if not is_date_str(start_date):
        raise ValueError('Invalid start date. Use YYYY-MM-DD')
    start = parse_date(start_date)

    # Each step is taken from the start, so 31 Jan -> 28 Feb -> 31 Mar
    return [to_date_str(start + _step(frequency, index)) for index in range(max(0, count))]

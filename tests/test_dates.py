from datetime import date, datetime

import pytest

from mindclinic.utils.dates import (
    calculate_age,
    is_date_str,
    is_minor,
    is_time_str,
    month_start,
    parse_appointment_start,
    round_half_up,
    to_month_str,
)
from mindclinic.utils.recurrence import generate_recurrence_dates


class TestDates:

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(1.25, 1) == 1.3
        assert round_half_up(1.24, 1) == 1.2

    def test_month_start_crosses_years(self):
        assert month_start(date(2026, 3, 12), 3) == date(2025, 12, 1)
        assert month_start(datetime(2026, 1, 31, 18, 0), 1) == date(2025, 12, 1)
        assert month_start(date(2026, 2, 28)) == date(2026, 2, 1)

    def test_strict_date_shape(self):
        assert is_date_str('2026-02-05') is True
        assert is_date_str('2026-2-5') is False
        assert is_date_str('2026-02-05T99:junk') is False
        assert is_date_str('2026-02-30') is False
        assert is_date_str(' 2026-02-05') is False
        assert is_date_str(None) is False

    def test_strict_time_shape(self):
        assert is_time_str('09:05') is True
        assert is_time_str('9:5') is False
        assert is_time_str('24:00') is False
        assert is_time_str('09:05:00') is False

    def test_month_str(self):
        assert to_month_str(date(2026, 2, 5)) == '2026-02'
        assert to_month_str('2026-02-28') == '2026-02'

    def test_appointment_start(self):
        assert parse_appointment_start('2026-03-12', '14:30') == datetime(2026, 3, 12, 14, 30)
        assert parse_appointment_start('2026-03-12', None) == datetime(2026, 3, 12)
        assert parse_appointment_start('', '10:00') is None

    def test_age_before_and_after_birthday(self):
        today = date(2026, 3, 12)
        assert calculate_age('2008-03-12', today) == 18
        assert calculate_age('2008-03-13', today) == 17
        assert calculate_age(None, today) is None
        assert calculate_age('2000-01-01', datetime(2026, 3, 12, 10, 0)) == 26

    def test_minor(self):
        today = date(2026, 3, 12)
        assert is_minor('2010-06-01', today) is True
        assert is_minor('1990-06-01', today) is False
        assert is_minor('', today) is False


class TestRecurrence:

    def test_weekly(self):
        assert generate_recurrence_dates('2026-03-02', 'weekly', 3) == ['2026-03-02', '2026-03-09', '2026-03-16']

    def test_biweekly(self):
        assert generate_recurrence_dates('2026-03-02', 'BIWEEKLY', 3) == ['2026-03-02', '2026-03-16', '2026-03-30']

    def test_monthly_clamps_to_month_end(self):
        assert generate_recurrence_dates('2026-01-31', 'MONTHLY', 3) == ['2026-01-31', '2026-02-28', '2026-03-31']

    def test_zero_count(self):
        assert generate_recurrence_dates('2026-03-02', 'WEEKLY', 0) == []

    def test_invalid_input(self):
        with pytest.raises(ValueError):
            generate_recurrence_dates('2026-03-02', 'DAILY', 3)
        with pytest.raises(ValueError):
            generate_recurrence_dates('02/03/2026', 'WEEKLY', 3)
        with pytest.raises(ValueError):
            generate_recurrence_dates('2026-3-2', 'WEEKLY', 3)

    def test_monthly_keeps_anchor_day(self):
        assert generate_recurrence_dates('2025-11-30', 'MONTHLY', 4) == ['2025-11-30', '2025-12-30', '2026-01-30', '2026-02-28']

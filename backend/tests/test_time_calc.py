from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from crewsheet.exceptions import ValidationError
from crewsheet.services.time_calc import round_time, worked_hours


def entry(clock_in, clock_out):
    return SimpleNamespace(clock_in=clock_in, clock_out=clock_out)


def at(hour, minute=0, second=0):
    return datetime(2026, 3, 14, hour, minute, second)


class TestRoundTime:

    @pytest.mark.parametrize("value,expected", [
        (at(8, 0), at(8, 0)),
        (at(8, 7), at(8, 0)),
        (at(8, 14, 59), at(8, 0)),
        (at(8, 15), at(8, 15)),
        (at(8, 59), at(8, 45)),
    ])
    def test_down(self, value, expected):
        assert round_time(value, "down") == expected

    @pytest.mark.parametrize("value,expected", [
        (at(16, 0), at(16, 0)),
        (at(16, 1), at(16, 15)),
        (at(16, 15), at(16, 15)),
        (at(16, 0, 30), at(16, 0)),
        (at(16, 46), at(17, 0)),
        (at(23, 50), datetime(2026, 3, 15, 0, 0)),
    ])
    def test_up(self, value, expected):
        assert round_time(value, "up") == expected

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            round_time(at(8), "nearest")


class TestWorkedHours:

    def test_single_entry(self):
        assert worked_hours([entry(at(8), at(16))]) == Decimal("8.00")

    def test_rounding_applied_per_entry(self):
        # 08:10 -> 08:00, 12:05 -> 12:15
        assert worked_hours([entry(at(8, 10), at(12, 5))]) == Decimal("4.25")

    def test_split_shift_is_summed(self):
        entries = [entry(at(8), at(12)), entry(at(13), at(17, 20))]
        assert worked_hours(entries) == Decimal("8.50")

    def test_open_entry_skipped(self):
        assert worked_hours([entry(at(8), at(12)), entry(at(13), None)]) == Decimal("4.00")

    def test_no_entries(self):
        assert worked_hours([]) == Decimal("0.00")

    def test_clock_out_before_clock_in(self):
        with pytest.raises(ValidationError):
            worked_hours([entry(at(12), at(8))])

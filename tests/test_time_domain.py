import sys
import unittest
from datetime import datetime, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from datatypes import FilterCriteria, FlightRow  # noqa: E402
from time_domain import apply_hour_window, resolve_time_domain  # noqa: E402


def _at(day, hour, minute=0):
    return datetime(2024, 3, day, hour, minute)


class ResolveTimeDomainTests(unittest.TestCase):
    def test_short_span_is_padded_one_hour(self):
        rows = [
            FlightRow(gate="A1", scheduled_start=_at(15, 8), scheduled_end=_at(15, 10)),
            FlightRow(gate="A2", actual_start=_at(15, 12), actual_end=_at(15, 14)),
        ]
        self.assertEqual(resolve_time_domain(rows), (_at(15, 7), _at(15, 15)))

    def test_long_span_is_fixed_24h_from_minimum(self):
        rows = [
            FlightRow(gate="A1", ground_start=_at(15, 5, 30), ground_end=_at(15, 9)),
            FlightRow(gate="A2", actual_start=_at(17, 20), actual_end=_at(17, 22)),
        ]
        self.assertEqual(resolve_time_domain(rows), (_at(15, 5, 30), _at(16, 5, 30)))

    def test_exactly_24h_uses_fixed_window(self):
        rows = [FlightRow(gate="A1", scheduled_start=_at(15, 0), scheduled_end=_at(16, 0))]
        self.assertEqual(resolve_time_domain(rows), (_at(15, 0), _at(16, 0)))

    def test_tow_times_do_not_size_the_window(self):
        rows = [FlightRow(gate="A1", tow_on=_at(15, 1), actual_end=_at(15, 9))]
        self.assertEqual(resolve_time_domain(rows), (_at(15, 8), _at(15, 10)))
        self.assertIsNone(resolve_time_domain([FlightRow(gate="A1", tow_on=_at(15, 1))]))

    def test_empty(self):
        self.assertIsNone(resolve_time_domain([]))


class HourWindowTests(unittest.TestCase):
    window = (_at(15, 7), _at(15, 15))

    def test_full_day_keeps_window(self):
        self.assertEqual(apply_hour_window(self.window, FilterCriteria()), self.window)

    def test_hours_on_window_start_day(self):
        result = apply_hour_window(self.window, FilterCriteria(time_min=6, time_max=12))
        self.assertEqual(result, (_at(15, 6), _at(15, 12)))

    def test_hour_24_is_next_midnight(self):
        result = apply_hour_window(self.window, FilterCriteria(time_min=18, time_max=24))
        self.assertEqual(result, (_at(15, 18), _at(15, 0) + timedelta(days=1)))

    def test_inverted_range_is_ignored(self):
        self.assertEqual(apply_hour_window(self.window, FilterCriteria(time_min=12, time_max=8)), self.window)

    def test_hours_follow_data_start_not_padded_window(self):
        # data starting at 00:30 pads the window back into the previous day
        padded = (_at(14, 23, 30), _at(15, 7))
        result = apply_hour_window(padded, FilterCriteria(time_min=2, time_max=5), _at(15, 0, 30))
        self.assertEqual(result, (_at(15, 2), _at(15, 5)))

    def test_out_of_range_hours_are_clamped(self):
        result = apply_hour_window(self.window, FilterCriteria(time_min=-3, time_max=10))
        self.assertEqual(result, (_at(15, 0), _at(15, 10)))


if __name__ == "__main__":
    unittest.main()

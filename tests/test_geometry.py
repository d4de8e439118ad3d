import sys
import unittest
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from colors import AIRLINE_COLORS, ColorLookup  # noqa: E402
from datatypes import FlightRow  # noqa: E402
from geometry import (  # noqa: E402
    BandScale,
    TimeScale,
    actual_bars,
    bar_labels,
    clamp_extent,
    gate_axis,
    ground_geometry,
    ground_segments_for,
    hour_ticks,
    is_visible,
    now_marker,
    scheduled_bars,
    scheduled_time_labels,
    tow_amplitude,
    tow_clip_polygon,
    tow_clip_shapes,
)


def _at(hour, minute=0):
    return datetime(2024, 3, 15, hour, minute)


WINDOW = (_at(8), _at(12))


def _scales():
    # 100 px per hour; bands of 30 px at 0, 40 and 80
    return TimeScale(WINDOW, (0.0, 400.0)), BandScale(["A15", "A17", "B2"], (0.0, 110.0))


def _widebody(**times):
    return [
        FlightRow(gate="A17", parent_gate="A17W", **times),
        FlightRow(gate="A15", parent_gate="A17W", **times),
    ]


class ScaleTests(unittest.TestCase):
    def test_time_scale_is_linear(self):
        x, _ = _scales()
        self.assertEqual(x(_at(8)), 0.0)
        self.assertEqual(x(_at(10, 30)), 250.0)
        self.assertEqual(x(_at(7)), -100.0)

    def test_degenerate_time_domain_maps_to_middle(self):
        x = TimeScale((_at(8), _at(8)), (0.0, 400.0))
        self.assertEqual(x(_at(9)), 200.0)

    def test_band_scale_positions(self):
        _, y = _scales()
        self.assertAlmostEqual(y.bandwidth, 30.0)
        self.assertAlmostEqual(y.position("A15"), 0.0)
        self.assertAlmostEqual(y.position("A17"), 40.0)
        self.assertAlmostEqual(y.position("B2"), 80.0)
        self.assertIsNone(y.position("Z9"))

    def test_single_band_is_centered(self):
        y = BandScale(["A1"], (0.0, 100.0))
        self.assertAlmostEqual(y.position("A1"), 12.5)
        self.assertAlmostEqual(y.bandwidth, 75.0)


class VisibilityTests(unittest.TestCase):
    def test_overlap(self):
        self.assertTrue(is_visible(_at(7), _at(9), WINDOW))
        self.assertFalse(is_visible(_at(12), _at(13), WINDOW))
        self.assertFalse(is_visible(_at(6), _at(8), WINDOW))

    def test_one_sided(self):
        self.assertTrue(is_visible(_at(9), None, WINDOW))
        self.assertTrue(is_visible(None, _at(12), WINDOW))
        self.assertFalse(is_visible(None, _at(13), WINDOW))
        self.assertFalse(is_visible(None, None, WINDOW))

    def test_clamp_extent(self):
        x, _ = _scales()
        self.assertEqual(clamp_extent(-100.0, 100.0, x), (0.0, 100.0))
        self.assertEqual(clamp_extent(350.0, 500.0, x), (350.0, 50.0))
        self.assertEqual(clamp_extent(10.0, 10.0, x), (10.0, 1.0))
        self.assertEqual(clamp_extent(10.0, 10.0, x, min_width=0.0), (10.0, 0.0))


class ActualBarTests(unittest.TestCase):
    def test_plain_bar(self):
        x, y = _scales()
        row = FlightRow(gate="B2", actual_start=_at(9), actual_end=_at(10, 30))
        (bar,) = actual_bars([row], x, y)
        self.assertEqual(bar.key, "B2|2024-03-15T09:00:00|2024-03-15T10:30:00")
        self.assertEqual(bar.kind, "actual")
        self.assertEqual((bar.x, bar.width), (100.0, 150.0))
        self.assertAlmostEqual(bar.y, 89.3)
        self.assertAlmostEqual(bar.height, 11.4)
        self.assertIsNone(bar.clip_id)

    def test_bar_is_clamped_to_plot(self):
        x, y = _scales()
        row = FlightRow(gate="B2", actual_start=_at(7), actual_end=_at(9))
        (bar,) = actual_bars([row], x, y)
        self.assertEqual((bar.x, bar.width), (0.0, 100.0))

    def test_tow_times_stand_in_for_actuals(self):
        x, y = _scales()
        row = FlightRow(gate="B2", tow_on=_at(9), actual_end=_at(10))
        (bar,) = actual_bars([row], x, y)
        self.assertEqual((bar.x, bar.width), (100.0, 100.0))

    def test_one_sided_bar_is_a_sliver(self):
        x, y = _scales()
        (bar,) = actual_bars([FlightRow(gate="B2", actual_start=_at(9))], x, y)
        self.assertEqual((bar.x, bar.width), (100.0, 1.0))

    def test_outside_window_or_unknown_gate(self):
        x, y = _scales()
        rows = [
            FlightRow(gate="B2", actual_start=_at(13), actual_end=_at(14)),
            FlightRow(gate="Z9", actual_start=_at(9), actual_end=_at(10)),
            FlightRow(gate="B2"),
        ]
        self.assertEqual(actual_bars(rows, x, y), [])

    def test_widebody_spans_both_bands_once(self):
        x, y = _scales()
        rows = _widebody(actual_start=_at(9), actual_end=_at(10))
        (bar,) = actual_bars(rows, x, y)
        self.assertEqual(bar.key, "A17W|2024-03-15T09:00:00|2024-03-15T10:00:00")
        self.assertEqual(bar.gate, "A17")
        self.assertAlmostEqual(bar.y, 9.3)
        self.assertAlmostEqual(bar.height, 51.4)

    def test_end_only_widebody_flights_stay_apart(self):
        x, y = _scales()
        rows = _widebody(actual_end=_at(9)) + _widebody(actual_end=_at(11))
        bars = actual_bars(rows, x, y)
        self.assertEqual(len(bars), 2)
        self.assertEqual([b.x for b in bars], [100.0, 300.0])
        for bar in bars:
            self.assertAlmostEqual(bar.height, 51.4)

    def test_fill_comes_from_color_lookup(self):
        x, y = _scales()
        row = FlightRow(gate="B2", actual_color="UA", actual_start=_at(9), actual_end=_at(10))
        (bar,) = actual_bars([row], x, y, ColorLookup([row]))
        self.assertEqual(bar.fill, AIRLINE_COLORS["UA"])


class TowClipTests(unittest.TestCase):
    def test_amplitude_is_clamped(self):
        self.assertEqual(tow_amplitude(11.4), 6.0)
        self.assertAlmostEqual(tow_amplitude(20.0), 7.0)
        self.assertEqual(tow_amplitude(60.0), 10.0)

    def test_plain_rectangle(self):
        pts = tow_clip_polygon(0, 0, 100, 16, 6, 8, False, False)
        self.assertEqual(pts, [(0, 0), (100, 0), (100, 16), (0, 16), (0, 0)])

    def test_jagged_left_edge(self):
        x, y = _scales()
        row = FlightRow(
            gate="B2", tow_on=_at(9), tow_on_status="Estimated",
            actual_end=_at(10, 30), tow_off_status="estimated",
        )
        (bar,) = actual_bars([row], x, y)
        self.assertEqual(bar.clip_id, "towclip_B2_2024-03-15T09_00_00_2024-03-15T10_30_00")
        (clip,) = tow_clip_shapes([bar])
        self.assertEqual(clip.clip_id, bar.clip_id)
        self.assertEqual(len(clip.points), 13)
        self.assertAlmostEqual(clip.points[0][0], 106.0)
        self.assertAlmostEqual(clip.points[0][1], 89.3)
        # the last vertex closes the zig-zag back on the top edge
        self.assertAlmostEqual(clip.points[-1][0], 100.0)
        self.assertAlmostEqual(clip.points[-1][1], 89.3)

    def test_both_edges_jagged(self):
        x, y = _scales()
        row = FlightRow(
            gate="B2",
            tow_on=_at(9), tow_on_status="ESTIMATED",
            tow_off=_at(10), tow_off_status="Estimated",
        )
        (bar,) = actual_bars([row], x, y)
        (clip,) = tow_clip_shapes([bar])
        self.assertEqual(len(clip.points), 21)

    def test_confirmed_tows_get_no_clip(self):
        x, y = _scales()
        row = FlightRow(gate="B2", tow_on=_at(9), tow_on_status="Actual", tow_off=_at(10))
        (bar,) = actual_bars([row], x, y)
        self.assertIsNone(bar.clip_id)
        self.assertEqual(tow_clip_shapes([bar]), [])


class ScheduledBarTests(unittest.TestCase):
    def test_plain_bar_sits_below_actual(self):
        x, y = _scales()
        row = FlightRow(gate="B2", scheduled_start=_at(9), scheduled_end=_at(11))
        (bar,) = scheduled_bars([row], x, y)
        self.assertEqual(bar.kind, "scheduled")
        self.assertEqual((bar.x, bar.width), (100.0, 200.0))
        self.assertAlmostEqual(bar.y, 97.0)
        self.assertAlmostEqual(bar.height, 12.0)
        (start, end) = scheduled_time_labels([bar], x)
        self.assertEqual((start.text, start.anchor), ("09:00", "start"))
        self.assertEqual((end.text, end.anchor), ("11:00", "end"))
        self.assertAlmostEqual(start.x, 103.0)
        self.assertAlmostEqual(end.x, 297.0)
        self.assertAlmostEqual(start.y, 101.0)

    def test_needs_both_endpoints(self):
        x, y = _scales()
        self.assertEqual(scheduled_bars([FlightRow(gate="B2", scheduled_start=_at(9))], x, y), [])

    def test_widebody_drop(self):
        x, y = _scales()
        (bar,) = scheduled_bars(_widebody(scheduled_start=_at(9), scheduled_end=_at(10)), x, y)
        self.assertAlmostEqual(bar.y, 35.0)
        self.assertAlmostEqual(bar.height, 36.0)


class GroundTests(unittest.TestCase):
    def test_segments_for_row(self):
        row = FlightRow(gate="B2", ground_start=_at(8), ground_end=_at(11))
        self.assertEqual(ground_segments_for(row), [("operation", _at(8), _at(11))])
        row.landed_time = _at(9)
        self.assertEqual(ground_segments_for(row), [("landed", _at(8), _at(9))])
        row.operation_time = _at(10)
        self.assertEqual(
            ground_segments_for(row),
            [("landed", _at(8), _at(9)), ("operation", _at(9), _at(10))],
        )
        self.assertEqual(ground_segments_for(FlightRow(gate="B2", ground_start=_at(8))), [])

    def test_tick_lines_without_sub_times(self):
        x, y = _scales()
        row = FlightRow(gate="B2", ground_start=_at(7), ground_end=_at(11))
        lines, segments = ground_geometry([row], x, y)
        self.assertEqual(segments, [])
        (line,) = lines
        self.assertEqual((line.x1, line.x2), (0.0, 300.0))
        self.assertAlmostEqual(line.y1, 83.0)
        self.assertEqual(line.y1, line.y2)

    def test_any_sub_time_switches_to_segments(self):
        x, y = _scales()
        rows = [
            FlightRow(gate="B2", ground_start=_at(8), ground_end=_at(11), landed_time=_at(9), operation_time=_at(10)),
            FlightRow(gate="A15", ground_start=_at(9), ground_end=_at(10)),
        ]
        lines, segments = ground_geometry(rows, x, y)
        self.assertEqual(lines, [])
        self.assertEqual([s.kind for s in segments], ["ground-landed", "ground-operation", "ground-operation"])
        self.assertAlmostEqual(segments[0].y, 81.0)
        self.assertEqual(segments[0].height, 4.0)

    def test_widebody_ground_line(self):
        x, y = _scales()
        lines, _ = ground_geometry(_widebody(ground_start=_at(8), ground_end=_at(9)), x, y)
        (line,) = lines
        self.assertAlmostEqual(line.y1, 4.5)

    def test_segments_past_the_window_are_dropped(self):
        x, y = _scales()
        row = FlightRow(
            gate="B2", ground_start=_at(8), ground_end=_at(13),
            landed_time=_at(12, 30), operation_time=_at(13),
        )
        _, segments = ground_geometry([row], x, y)
        self.assertEqual([s.kind for s in segments], ["ground-landed"])
        self.assertEqual((segments[0].x, segments[0].width), (0.0, 400.0))


class LabelTests(unittest.TestCase):
    def test_center_text_and_edge_times(self):
        x, y = _scales()
        row = FlightRow(gate="B2", actual_text="UA100", actual_start=_at(9), actual_end=_at(10, 30))
        bars = actual_bars([row], x, y)
        texts, times = bar_labels(bars, x)
        (text,) = texts
        self.assertEqual(text.key, "B2|2024-03-15T09:00:00|2024-03-15T10:30:00|text")
        self.assertAlmostEqual(text.x, 175.0)
        self.assertAlmostEqual(text.y, 95.0)
        start, end = times
        self.assertEqual((start.x, start.text, start.anchor), (103.0, "09:00", "start"))
        self.assertEqual((end.x, end.text, end.anchor), (247.0, "10:30", "end"))
        self.assertEqual(start.kind, "actual-time")

    def test_no_center_text_when_empty(self):
        x, y = _scales()
        row = FlightRow(gate="B2", actual_start=_at(9), actual_end=_at(10))
        texts, times = bar_labels(actual_bars([row], x, y), x)
        self.assertEqual(texts, [])
        self.assertEqual(len(times), 2)

    def test_narrow_bars_lose_labels(self):
        x, y = _scales()
        row = FlightRow(gate="B2", actual_text="UA100", actual_start=_at(9), actual_end=_at(9, 15))
        texts, times = bar_labels(actual_bars([row], x, y), x, min_label_width=40.0)
        self.assertEqual((texts, times), ([], []))

    def test_same_text_on_same_gate_keeps_distinct_keys(self):
        x, y = _scales()
        rows = [
            FlightRow(gate="B2", actual_text="UA100", actual_start=_at(8), actual_end=_at(9)),
            FlightRow(gate="B2", actual_text="UA100", actual_start=_at(10), actual_end=_at(11)),
        ]
        texts, _ = bar_labels(actual_bars(rows, x, y), x)
        self.assertEqual(len({t.key for t in texts}), 2)

    def test_widebody_labels_centered_on_span(self):
        x, y = _scales()
        rows = _widebody(actual_text="BA7", actual_start=_at(9), actual_end=_at(10))
        (bar,) = actual_bars(rows, x, y)
        texts, times = bar_labels([bar], x)
        (text,) = texts
        self.assertAlmostEqual(text.y, bar.y + bar.height / 2)
        # middle of A15 (0..30) and A17 (40..70), not the middle of A17's own band
        self.assertAlmostEqual(text.y, 35.0)
        self.assertNotAlmostEqual(text.y, y.position("A17") + y.bandwidth / 2)
        for label in times:
            self.assertAlmostEqual(label.y, 35.0)


class AxisTests(unittest.TestCase):
    def test_hour_ticks(self):
        x, _ = _scales()
        lines, labels = hour_ticks(x)
        self.assertEqual([lb.text for lb in labels], ["08:00", "09:00", "10:00", "11:00", "12:00"])
        self.assertEqual(labels[1].x, 100.0)
        self.assertEqual(labels[1].y, -9.0)
        self.assertEqual((lines[0].y1, lines[0].y2), (0.0, -6.0))

    def test_ticks_start_on_next_whole_hour(self):
        x = TimeScale((_at(7, 30), _at(9, 30)), (0.0, 200.0))
        _, labels = hour_ticks(x)
        self.assertEqual([lb.text for lb in labels], ["08:00", "09:00"])
        self.assertEqual(labels[0].x, 50.0)

    def test_gate_axis(self):
        _, y = _scales()
        grid, labels = gate_axis(y, 400.0)
        self.assertEqual([g.key for g in grid], ["A15", "A17", "B2"])
        self.assertAlmostEqual(grid[2].y1, 95.0)
        self.assertEqual(grid[2].x2, 400.0)
        self.assertEqual((labels[0].x, labels[0].anchor), (-3.0, "end"))

    def test_now_marker(self):
        x, _ = _scales()
        line, label = now_marker(x, 110.0, _at(10))
        self.assertEqual((line.x1, line.y1, line.y2), (200.0, -30.0, 110.0))
        self.assertEqual((label.text, label.y), ("NOW", -35.0))
        self.assertIsNone(now_marker(x, 110.0, _at(13)))


if __name__ == "__main__":
    unittest.main()

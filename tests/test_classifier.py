"""Tests for day classification and habit statistics."""

from __future__ import annotations

from datetime import date, timedelta

from habitkernel.kernel.classifier import DayState, HabitStats, build_stats, classify_day
from habitkernel.kernel.entries import Outcome, Result
from tests.conftest import make_entries, make_habit


def _mar(day: int) -> date:
    return date(2025, 3, day)


class TestClassifyDay:
    def test_explicit_success(self):
        h = make_habit(first_record=_mar(1))
        entries = make_entries("Habit", {_mar(2): "y"})
        assert classify_day(_mar(2), h, entries) is DayState.success

    def test_explicit_skip_on_daily(self):
        h = make_habit(first_record=_mar(1))
        entries = make_entries("Habit", {_mar(2): "s"})
        assert classify_day(_mar(2), h, entries) is DayState.skip

    def test_skip_in_window_beats_satisfaction(self):
        h = make_habit(target=1, interval=7, first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): "y", _mar(2): "s", _mar(3): "n"})
        assert classify_day(_mar(3), h, entries) is DayState.skip

    def test_fail_covered_by_window(self):
        h = make_habit(target=1, interval=7, first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): "y", _mar(3): "n"})
        assert classify_day(_mar(3), h, entries) is DayState.satisfied

    def test_unlogged_day_covered_by_window(self):
        h = make_habit(target=1, interval=7, first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): "y"})
        assert classify_day(_mar(5), h, entries) is DayState.satisfied

    def test_not_yet_tracked(self):
        h = make_habit(first_record=_mar(10))
        entries = make_entries("Habit", {_mar(10): "y"})
        assert classify_day(_mar(9), h, entries) is DayState.not_yet_tracked

    def test_break_after_first_record(self):
        h = make_habit(first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): "y", _mar(2): "n"})
        assert classify_day(_mar(2), h, entries) is DayState.broken
        assert classify_day(_mar(3), h, entries) is DayState.broken

    def test_no_first_record_is_break(self):
        h = make_habit()
        assert classify_day(_mar(1), h, {}) is DayState.broken

    def test_tracking_only(self):
        h = make_habit("Coffee", target=0, interval=1, first_record=_mar(1))
        entries = make_entries("Coffee", {_mar(1): "y"})
        assert classify_day(_mar(1), h, entries) is DayState.success
        assert classify_day(_mar(2), h, entries) is DayState.broken

    def test_break_value_is_wire_name(self):
        assert DayState.broken.value == "break"


class TestBuildStats:
    def test_daily_history(self):
        h = make_habit("Test Habit", first_record=_mar(10))
        entries = make_entries(
            "Test Habit",
            {
                _mar(10): Outcome(Result.success, 5.0),
                _mar(11): Outcome(Result.success, 3.0),
                _mar(12): Outcome(Result.fail, 0.0),
                _mar(13): Outcome(Result.skip, 0.0),
                _mar(14): Outcome(Result.success, 2.0),
            },
        )

        stats = build_stats(h, entries, today=_mar(14))

        assert stats.days_tracked == 5
        assert stats.total == 10.0
        assert stats.streaks == 3
        assert stats.breaks == 1
        assert stats.skips == 1

    def test_unlogged_days_since_last_entry_are_breaks(self):
        h = make_habit("Test Habit", first_record=_mar(10))
        entries = make_entries("Test Habit", {_mar(10): "y"})

        stats = build_stats(h, entries, today=_mar(14))

        assert stats.streaks == 1
        assert stats.breaks == 4

    def test_weekly_habit_window_days_count_as_streaks(self):
        h = make_habit(target=1, interval=7, first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): "y"})

        stats = build_stats(h, entries, today=_mar(10))

        assert stats == HabitStats(days_tracked=10, total=0.0, streaks=7, breaks=3, skips=0)

    def test_weekly_skip_covers_following_days(self):
        h = make_habit(target=1, interval=7, first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): "y", _mar(9): "s"})

        stats = build_stats(h, entries, today=_mar(10))

        assert stats.streaks == 7
        assert stats.breaks == 1
        assert stats.skips == 2

    def test_fail_amounts_are_summed(self):
        h = make_habit(first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): Outcome(Result.fail, 2.5), _mar(2): Outcome(Result.success, 1.5)})

        assert build_stats(h, entries, today=_mar(2)).total == 4.0

    def test_entries_after_today_ignored(self):
        h = make_habit(first_record=_mar(1))
        entries = make_entries("Habit", {_mar(1): "y", _mar(5): Outcome(Result.success, 9.0)})

        stats = build_stats(h, entries, today=_mar(2))

        assert stats.days_tracked == 2
        assert stats.total == 0.0
        assert stats.streaks == 1

    def test_never_recorded(self):
        assert build_stats(make_habit(), {}, today=_mar(5)) == HabitStats()

    def test_today_before_first_record(self):
        h = make_habit(first_record=_mar(10))
        assert build_stats(h, {}, today=_mar(5)) == HabitStats()

    def test_defaults_to_current_date(self):
        first = date.today() - timedelta(days=3)
        h = make_habit(first_record=first)
        entries = make_entries("Habit", {first: "y"})

        stats = build_stats(h, entries)

        assert stats.days_tracked == 4
        assert stats.streaks == 1
        assert stats.breaks == 3

    def test_categories_partition_tracked_days(self):
        h = make_habit(target=2, interval=5, first_record=_mar(1))
        entries = make_entries(
            "Habit",
            {_mar(1): "y", _mar(2): "n", _mar(3): "y", _mar(8): "s", _mar(15): "y", _mar(16): "y"},
        )

        stats = build_stats(h, entries, today=_mar(20))

        assert stats.streaks + stats.breaks + stats.skips == stats.days_tracked

"""Unit tests for the streak / completion-rate engine."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from stats import (
    DEFAULT_ACTIVE_DAYS,
    HabitStats,
    compute_completion_rate,
    compute_habit_stats,
    compute_streak,
    compute_total_days,
    encode_active_days,
    format_active_days,
    habit_status,
    is_completed_today,
    is_habit_active_on_date,
    last_completed_date,
    parse_active_days,
    previous_day,
    sort_by_priority,
    to_date_key,
    weekday_index,
)

NOW = datetime(2024, 6, 12, 15, 30)   # Wednesday
TODAY = NOW.date()


def done(days_ago: int, completed: bool = True):
    return SimpleNamespace(completion_date=TODAY - timedelta(days=days_ago), completed=completed)


def make_habit(active_days="[0,1,2,3,4,5,6]", created_days_ago=14, name="Read"):
    return SimpleNamespace(
        name=name,
        active_days=active_days,
        created_at=NOW - timedelta(days=created_days_ago),
    )


class TestDatePrimitives:
    def test_to_date_key_from_date_datetime_and_string(self):
        assert to_date_key(date(2024, 6, 2)) == "2024-06-02"
        assert to_date_key(datetime(2024, 6, 2, 23, 59)) == "2024-06-02"
        assert to_date_key("2024-06-02T08:00:00") == "2024-06-02"

    @pytest.mark.parametrize("raw", ["2024-6-1", "12/06/2024", "yesterday"])
    def test_to_date_key_rejects_non_iso_strings(self, raw):
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            to_date_key(raw)

    def test_streak_rejects_unpadded_dates(self):
        completions = [SimpleNamespace(completion_date="2024-6-1", completed=True)]
        with pytest.raises(ValueError):
            compute_streak(completions)

    def test_previous_day_crosses_month_and_year(self):
        assert previous_day("2024-03-01") == "2024-02-29"
        assert previous_day("2024-01-01") == "2023-12-31"

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(date(2024, 6, 9)) == 0    # Sunday
        assert weekday_index(TODAY) == 3               # Wednesday
        assert weekday_index("2024-06-15") == 6        # Saturday


class TestStreak:
    def test_empty(self):
        assert compute_streak([]) == 0

    def test_only_missed_rows(self):
        assert compute_streak([done(0, False), done(1, False)]) == 0

    @pytest.mark.parametrize("length", [1, 2, 5, 30])
    def test_consecutive_run_ending_today(self, length):
        completions = [done(i) for i in range(length)]
        assert compute_streak(completions, NOW) == length

    @pytest.mark.parametrize("gap", [1, 2, 4])
    def test_gap_truncates_to_days_after_it(self, gap):
        completions = [done(i) for i in range(7) if i != gap]
        assert compute_streak(completions, NOW) == gap

    def test_false_row_breaks_streak(self):
        completions = [done(0), done(1), done(2, False), done(3), done(4)]
        assert compute_streak(completions, NOW) == 2

    def test_unordered_input(self):
        completions = [done(2), done(0), done(3), done(1)]
        assert compute_streak(completions, NOW) == 4

    def test_string_dates(self):
        completions = [
            SimpleNamespace(completion_date="2024-06-10", completed=True),
            SimpleNamespace(completion_date="2024-06-11", completed=True),
            SimpleNamespace(completion_date="2024-06-12", completed=True),
        ]
        assert compute_streak(completions) == 3

    def test_run_that_ended_in_the_past_still_counts(self):
        completions = [done(10), done(11), done(12)]
        assert compute_streak(completions, NOW) == 3

    def test_ignores_active_days(self):
        # Weekend-only habit, but the weekday completions still chain
        completions = [done(i) for i in range(5)]
        habit = make_habit(active_days="[0,6]")
        assert not is_habit_active_on_date(habit, TODAY)
        assert compute_streak(completions, NOW) == 5


class TestCompletionRate:
    def test_scenario_fourteen_days_five_completions(self):
        habit = make_habit(created_days_ago=14)
        completions = [done(i) for i in range(5)]
        assert compute_completion_rate(habit, completions, NOW) == pytest.approx(35.714, abs=0.01)

    def test_created_now_counts_as_one_day(self):
        assert compute_total_days(NOW, NOW) == 1
        habit = make_habit(created_days_ago=0)
        assert compute_completion_rate(habit, [done(0)], NOW) == 100.0

    def test_partial_day_rounds_up(self):
        assert compute_total_days(NOW - timedelta(hours=36), NOW) == 2
        assert compute_total_days(NOW - timedelta(seconds=1), NOW) == 1

    def test_missing_created_at(self):
        habit = SimpleNamespace(active_days="[1]", created_at=None)
        assert compute_total_days(None, NOW) == 0
        assert compute_completion_rate(habit, [done(0)], NOW) == 0.0

    def test_missed_rows_are_not_counted(self):
        habit = make_habit(created_days_ago=10)
        completions = [done(0), done(1, False), done(2, False)]
        assert compute_completion_rate(habit, completions, NOW) == pytest.approx(10.0)

    def test_rate_stays_in_range_when_data_is_consistent(self):
        habit = make_habit(created_days_ago=7)
        for n in range(8):
            rate = compute_completion_rate(habit, [done(i) for i in range(n)], NOW)
            assert 0 <= rate <= 100

    def test_not_clamped_when_completions_predate_creation(self):
        habit = make_habit(created_days_ago=0)
        completions = [done(0), done(1), done(2)]
        assert compute_completion_rate(habit, completions, NOW) == pytest.approx(300.0)

    def test_timezone_aware_created_at_is_treated_as_naive(self):
        from datetime import timezone
        created = (NOW - timedelta(days=4)).replace(tzinfo=timezone.utc)
        assert compute_total_days(created, NOW) == 4


class TestTodayAndLast:
    def test_completed_today(self):
        assert is_completed_today([done(0)], NOW)

    def test_false_row_today_is_not_completed(self):
        assert not is_completed_today([done(0, False), done(1)], NOW)

    def test_no_row_today(self):
        assert not is_completed_today([done(1)], NOW)

    def test_last_completed_date(self):
        completions = [done(3), done(0, False), done(1)]
        assert last_completed_date(completions) == "2024-06-11"

    def test_last_completed_date_none(self):
        assert last_completed_date([]) is None
        assert last_completed_date([done(0, False)]) is None


class TestHabitStats:
    def test_brand_new_habit(self):
        stats = compute_habit_stats(make_habit(created_days_ago=0), [], NOW)
        assert stats == HabitStats(0, 0.0, False, None)

    def test_full_bundle(self):
        habit = make_habit(created_days_ago=14)
        stats = compute_habit_stats(habit, [done(0), done(1), done(2, False), done(3)], NOW)
        assert stats.streak == 2
        assert stats.is_completed_today
        assert stats.last_completed_date == "2024-06-12"
        assert stats.completion_rate == pytest.approx(3 / 14 * 100)

    def test_as_dict_is_flat(self):
        stats = compute_habit_stats(make_habit(), [done(0)], NOW)
        assert set(stats.as_dict()) == {
            "streak", "completion_rate", "is_completed_today", "last_completed_date"
        }

    def test_accepts_generator(self):
        stats = compute_habit_stats(make_habit(), (done(i) for i in range(3)), NOW)
        assert stats.streak == 3
        assert stats.is_completed_today


class TestActiveDays:
    def test_parse_valid(self):
        assert parse_active_days("[1,3,5]") == [1, 3, 5]
        assert parse_active_days("[5, 1, 3, 3]") == [1, 3, 5]

    @pytest.mark.parametrize("raw", ["not json", "", None, "[]", "[7]", "[-1]", "{}", "[true]", '"1"'])
    def test_parse_falls_back_to_weekdays(self, raw):
        assert parse_active_days(raw) == DEFAULT_ACTIVE_DAYS

    def test_encode_then_parse(self):
        encoded = encode_active_days([6, 0, 3])
        assert encoded == "[0,3,6]"
        assert parse_active_days(encoded) == [0, 3, 6]

    def test_active_on_date(self):
        habit = make_habit(active_days="[1,3,5]")
        assert is_habit_active_on_date(habit, TODAY)                       # Wednesday
        assert not is_habit_active_on_date(habit, TODAY + timedelta(days=1))  # Thursday

    def test_corrupt_active_days_uses_weekdays(self):
        habit = make_habit(active_days="oops")
        assert is_habit_active_on_date(habit, TODAY)
        assert not is_habit_active_on_date(habit, date(2024, 6, 9))

    @pytest.mark.parametrize("raw, label", [
        ("[0,1,2,3,4,5,6]", "Every day"),
        ("[1,2,3,4,5]", "Weekdays"),
        ("[6,0]", "Weekends"),
        ("[1,3,5]", "Mon, Wed, Fri"),
    ])
    def test_format_active_days(self, raw, label):
        assert format_active_days(raw) == label


class TestPresentation:
    def test_habit_status(self):
        assert habit_status(HabitStats(3, 50.0, True, "2024-06-12")) == "Completed today"
        assert habit_status(HabitStats(0, 0.0, False, None)) == "Not started"
        assert habit_status(HabitStats(4, 50.0, False, "2024-06-11")) == "4 day streak"

    def test_sort_by_priority_puts_completed_last(self):
        done_today = make_habit(name="done")
        inactive = make_habit(active_days="[0,6]", name="weekend")
        due = make_habit(name="due")

        pairs = [
            (done_today, HabitStats(5, 80.0, True, "2024-06-12")),
            (inactive, HabitStats(0, 0.0, False, None)),
            (due, HabitStats(2, 40.0, False, "2024-06-11")),
        ]
        ranked = [habit.name for habit, _ in sort_by_priority(pairs, NOW)]
        assert ranked == ["due", "weekend", "done"]

import random
from datetime import date, timedelta
from app.engine.streak import StreakState, calculate_streaks, reconcile

TODAY = date(2026, 2, 27)
YESTERDAY = TODAY - timedelta(days=1)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


class TestCalculateStreaks:
    def test_empty_history(self):
        assert calculate_streaks([], TODAY) == StreakState(0, 0)

    def test_single_day_today(self):
        assert calculate_streaks([TODAY], TODAY) == StreakState(1, 1)

    def test_single_day_yesterday_keeps_streak_alive(self):
        assert calculate_streaks([YESTERDAY], TODAY) == StreakState(1, 1)

    def test_yesterday_and_today(self):
        assert calculate_streaks([YESTERDAY, TODAY], TODAY) == StreakState(2, 2)

    def test_old_single_day_breaks_current_streak(self):
        assert calculate_streaks([days_ago(5)], TODAY) == StreakState(0, 1)

    def test_two_days_ago_breaks_current_streak(self):
        state = calculate_streaks([days_ago(4), days_ago(3), days_ago(2)], TODAY)
        assert state == StreakState(0, 3)

    def test_gap_splits_runs(self):
        d = days_ago(6)
        dates = [d, d + timedelta(days=1), d + timedelta(days=2),
                 d + timedelta(days=5), d + timedelta(days=6)]
        assert calculate_streaks(dates, TODAY) == StreakState(2, 3)

    def test_non_contiguous_history_ending_yesterday(self):
        # day 1, day 3, day 4 where day 4 is yesterday
        dates = [days_ago(4), days_ago(2), days_ago(1)]
        assert calculate_streaks(dates, TODAY) == StreakState(2, 2)

    def test_current_run_can_be_the_longest(self):
        dates = [days_ago(20), days_ago(19)] + [days_ago(i) for i in range(5)]
        assert calculate_streaks(dates, TODAY) == StreakState(5, 5)

    def test_duplicates_collapse(self):
        assert calculate_streaks([TODAY, TODAY], TODAY) == calculate_streaks([TODAY], TODAY)

    def test_order_independent(self):
        dates = [days_ago(i) for i in (0, 1, 2, 5, 6, 7, 8, 30)]
        shuffled = dates[:]
        random.Random(7).shuffle(shuffled)
        assert calculate_streaks(shuffled, TODAY) == calculate_streaks(dates, TODAY)

    def test_idempotent(self):
        dates = [days_ago(i) for i in (0, 1, 3)]
        assert calculate_streaks(dates, TODAY) == calculate_streaks(dates, TODAY)

    def test_accepts_iso_date_strings(self):
        dates = [YESTERDAY.isoformat(), TODAY.isoformat()]
        assert calculate_streaks(dates, TODAY) == StreakState(2, 2)

    def test_accepts_a_set(self):
        assert calculate_streaks({YESTERDAY, TODAY}, TODAY) == StreakState(2, 2)

    def test_month_boundary(self):
        dates = [date(2026, 2, 28), date(2026, 3, 1), date(2026, 3, 2)]
        assert calculate_streaks(dates, date(2026, 3, 2)) == StreakState(3, 3)

    def test_future_days_count_toward_longest_only(self):
        dates = [TODAY + timedelta(days=i) for i in range(1, 4)]
        assert calculate_streaks(dates, TODAY) == StreakState(0, 3)

    def test_future_day_does_not_break_live_streak(self):
        tomorrow = TODAY + timedelta(days=1)
        assert calculate_streaks([TODAY, tomorrow], TODAY) == StreakState(1, 2)

    def test_longest_never_below_current(self):
        rng = random.Random(42)
        for _ in range(50):
            dates = {days_ago(rng.randint(0, 40)) for _ in range(rng.randint(1, 25))}
            state = calculate_streaks(dates, TODAY)
            assert state.longest_streak >= state.current_streak


class TestStreakState:
    def test_from_row_defaults_missing_columns_to_zero(self):
        assert StreakState.from_row({}) == StreakState(0, 0)
        assert StreakState.from_row(None) == StreakState(0, 0)
        assert StreakState.from_row({"current_streak": None, "longest_streak": 4}) == StreakState(0, 4)

    def test_as_row(self):
        assert StreakState(2, 5).as_row() == {"current_streak": 2, "longest_streak": 5}


class TestReconcile:
    def test_no_writes_when_in_sync(self):
        assert reconcile(StreakState(3, 7), StreakState(3, 7)) == {}

    def test_only_changed_fields_written(self):
        assert reconcile(StreakState(3, 7), StreakState(4, 7)) == {"current_streak": 4}

    def test_stale_stored_value_is_overwritten_downward(self):
        # e.g. after a past submission was deleted
        writes = reconcile(StreakState(5, 10), StreakState(0, 4))
        assert writes == {"current_streak": 0, "longest_streak": 4}

    def test_missing_profile_with_history(self):
        writes = reconcile(StreakState.from_row({}), StreakState(1, 1))
        assert writes == {"current_streak": 1, "longest_streak": 1}

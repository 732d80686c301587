from datetime import date, timedelta
from app.engine.progress import build_heatmap, difficulty_counts, goal_progress, initials

TODAY = date(2026, 2, 27)  # a Friday


class TestBuildHeatmap:
    def test_covers_one_year_ending_today(self):
        hm = build_heatmap(set(), TODAY)
        assert len(hm["days"]) == 365
        assert hm["days"][-1]["date"] == TODAY.isoformat()
        assert hm["start"] == (TODAY - timedelta(days=364)).isoformat()
        assert hm["end"] == TODAY.isoformat()

    def test_marks_active_days(self):
        active = {TODAY, TODAY - timedelta(days=2)}
        hm = build_heatmap(active, TODAY)
        flagged = {c["date"] for c in hm["days"] if c["active"]}
        assert flagged == {d.isoformat() for d in active}
        assert hm["active_count"] == 2

    def test_days_outside_window_ignored(self):
        hm = build_heatmap({TODAY - timedelta(days=400)}, TODAY)
        assert hm["active_count"] == 0

    def test_first_day_offset_is_sunday_based(self):
        # 2025-02-28 (start of the window) is a Friday → 5 blank cells
        hm = build_heatmap(set(), TODAY)
        assert hm["first_day_offset"] == 5
        sunday = date(2026, 3, 1)
        assert build_heatmap(set(), sunday, num_days=1)["first_day_offset"] == 0

    def test_month_labels(self):
        hm = build_heatmap(set(), TODAY)
        assert [m["offset"] for m in hm["month_labels"]] == [0, 90, 180, 270]
        assert hm["month_labels"][0]["label"] == "Feb"


class TestDifficultyCounts:
    def test_counts_each_difficulty(self):
        rows = [{"difficulty": "Easy"}, {"difficulty": "Hard"}, {"difficulty": "Hard"}]
        assert difficulty_counts(rows) == {"Easy": 1, "Medium": 0, "Hard": 2}

    def test_empty(self):
        assert difficulty_counts([]) == {"Easy": 0, "Medium": 0, "Hard": 0}

    def test_unknown_difficulty_ignored(self):
        assert difficulty_counts([{"difficulty": "Insane"}, {}]) == {"Easy": 0, "Medium": 0, "Hard": 0}


class TestGoalProgress:
    def test_partial(self):
        assert goal_progress(15, 30) == 50.0

    def test_capped_at_100(self):
        assert goal_progress(45, 30) == 100.0

    def test_missing_goal_uses_default(self):
        assert goal_progress(3, None) == 10.0


class TestInitials:
    def test_first_and_last_word(self):
        assert initials("ada byron lovelace") == "AL"

    def test_single_word(self):
        assert initials("grace") == "GR"

    def test_falls_back_to_email(self):
        assert initials("  ", "linus@example.com") == "L"

    def test_default(self):
        assert initials(None, None) == "U"

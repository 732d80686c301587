"""
Dashboard aggregates — pure functions, no DB access.
"""
from datetime import date, timedelta

DIFFICULTIES = ("Easy", "Medium", "Hard")
DEFAULT_STREAK_GOAL = 30
HEATMAP_DAYS = 365
MONTH_LABEL_OFFSETS = (0, 90, 180, 270)


def build_heatmap(active_days: set[date], today: date, num_days: int = HEATMAP_DAYS) -> dict:
    """
    One cell per day for the `num_days` days ending today (inclusive).
    `first_day_offset` is the Sunday-based weekday of the first cell, i.e. how
    many blank cells precede it in a Sunday-first week grid.
    """
    start = today - timedelta(days=num_days - 1)
    cells = []
    for i in range(num_days):
        day = start + timedelta(days=i)
        cells.append({"date": day.isoformat(), "active": day in active_days})

    return {
        "start": start.isoformat(),
        "end": today.isoformat(),
        "first_day_offset": (start.weekday() + 1) % 7,
        "month_labels": [
            {"offset": off, "label": (start + timedelta(days=off)).strftime("%b")}
            for off in MONTH_LABEL_OFFSETS if off < num_days
        ],
        "days": cells,
        "active_count": sum(1 for c in cells if c["active"]),
    }


def difficulty_counts(submissions: list[dict]) -> dict[str, int]:
    counts = {d: 0 for d in DIFFICULTIES}
    for row in submissions:
        diff = row.get("difficulty")
        if diff in counts:
            counts[diff] += 1
    return counts


def goal_progress(current_streak: int, goal: int | None) -> float:
    """Percentage of the streak goal reached, capped at 100."""
    goal = goal or DEFAULT_STREAK_GOAL
    if goal <= 0:
        return 0.0
    return round(min(100.0, current_streak / goal * 100), 1)


def initials(name: str | None, email: str | None = None) -> str:
    if name and name.strip():
        parts = name.strip().split()
        if len(parts) > 1:
            return f"{parts[0][0]}{parts[-1][0]}".upper()
        return parts[0][:2].upper()
    if email:
        return email[0].upper()
    return "U"

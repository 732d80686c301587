"""
Streak tracking — pure functions, no DB access.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0

    @classmethod
    def from_row(cls, row: dict | None) -> "StreakState":
        row = row or {}
        return cls(row.get("current_streak") or 0, row.get("longest_streak") or 0)

    def as_row(self) -> dict:
        return {"current_streak": self.current_streak, "longest_streak": self.longest_streak}


def calculate_streaks(dates: Iterable[date | str], today: date) -> StreakState:
    """
    Derive current and longest streak from logged calendar days.
    Duplicates collapse and input order does not matter.

    The current streak is only alive when the last logged day on or before
    `today` is today or yesterday. Days after `today` (clock skew) count toward
    the longest streak but are skipped by the current-streak walk, so
    [today, today + 1] gives current=1 rather than treating the future day as
    `last` and reporting 0.
    """
    days = sorted({d if isinstance(d, date) else date.fromisoformat(d) for d in dates})
    if not days:
        return StreakState()

    longest = run = 1
    for prev, cur in zip(days, days[1:]):
        run = run + 1 if (cur - prev).days == 1 else 1
        longest = max(longest, run)

    past = [d for d in days if d <= today]
    current = 0
    if past and (today - past[-1]).days <= 1:
        current = 1
        for i in range(len(past) - 1, 0, -1):
            if (past[i] - past[i - 1]).days != 1:
                break
            current += 1

    return StreakState(current, longest)


def reconcile(stored: StreakState, computed: StreakState) -> dict:
    """
    Return the profile columns that must be written so the stored streaks
    match the recomputed ones. Empty dict means the stored copy is current.

    The computed value always wins, including after a past submission is
    deleted.
    """
    stored_row = stored.as_row()
    return {k: v for k, v in computed.as_row().items() if stored_row[k] != v}

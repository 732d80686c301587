"""
Recompute stored streaks from raw submissions.

Runs the same reconciliation the API performs on every load, for one user or
for every profile. Safe to run multiple times (idempotent).

Usage:
    cd backend
    SUPABASE_URL=... SUPABASE_SERVICE_KEY=... python scripts/recompute_streaks.py <user_id> [--dry-run]
    python scripts/recompute_streaks.py --all [--dry-run]

A .env file in the working directory is loaded automatically.
"""
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path so we can import engine modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db import PAGE_SIZE, get_client, get_profile, get_submissions, upsert_profile
from app.engine.dates import submission_days, today_in_reference_tz
from app.engine.streak import StreakState, calculate_streaks, reconcile


def fetch_column(db, table: str, column: str) -> list[str]:
    """Fetch one column of a table in pages."""
    values = []
    offset = 0
    while True:
        res = (
            db.table(table)
            .select(column)
            .order(column)
            .range(offset, offset + PAGE_SIZE - 1)
            .execute()
        )
        batch = res.data or []
        values.extend(row[column] for row in batch)
        if len(batch) < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    return values


def fetch_all_user_ids(db) -> list[str]:
    """
    Every user with a profile row or at least one submission. Users with
    submissions but no profile still need reconciling; the upsert creates
    their row.
    """
    ids = set(fetch_column(db, "profiles", "id"))
    ids.update(fetch_column(db, "submissions", "user_id"))
    return sorted(ids)


def recompute_user(db, user_id: str, today, dry_run: bool = False) -> dict:
    """Returns the writes that were (or, on a dry run, would be) applied."""
    profile = get_profile(db, user_id)
    submissions = get_submissions(db, user_id)

    stored = StreakState.from_row(profile)
    computed = calculate_streaks(submission_days(submissions), today)
    writes = reconcile(stored, computed)

    marker = " ✅" if not writes else f" 📈 (was {stored.current_streak}/{stored.longest_streak})"
    print(f"  {user_id[:8]}...: {len(submissions)} submissions → "
          f"current={computed.current_streak} longest={computed.longest_streak}{marker}")

    if writes and not dry_run:
        upsert_profile(db, user_id, writes)
    return writes


def run(user_ids: list[str] | None, dry_run: bool = False):
    db = get_client()
    today = today_in_reference_tz()

    if user_ids is None:
        print("\n🔍 Fetching all users...")
        user_ids = fetch_all_user_ids(db)
    print(f"\n🔍 Recomputing streaks for {len(user_ids)} user(s), today={today}\n")

    changed = sum(1 for uid in user_ids if recompute_user(db, uid, today, dry_run=dry_run))

    if dry_run:
        print(f"\n  DRY RUN — {changed} profile(s) would change, no changes written.")
        return
    print(f"\n✅ {changed} profile(s) updated.\n")


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a not in ("--dry-run", "--all")]
    dry = "--dry-run" in sys.argv

    if "--all" in sys.argv:
        run(None, dry_run=dry)
    elif args:
        run(args, dry_run=dry)
    else:
        print("Usage: python scripts/recompute_streaks.py <user_id>... | --all [--dry-run]")
        sys.exit(1)

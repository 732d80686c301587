"""
DSA Streak Tracker — FastAPI backend
"""
import logging
from datetime import date, datetime, timezone

from fastapi import FastAPI, Header, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .db import (
    get_client, get_user_for_token, get_profile, upsert_profile,
    get_submissions, get_submission, insert_submission, update_submission,
    delete_submission, is_unique_violation,
)
from .engine.dates import to_calendar_date, today_in_reference_tz, submission_days
from .engine.streak import StreakState, calculate_streaks, reconcile
from .engine.progress import (
    DEFAULT_STREAK_GOAL, build_heatmap, difficulty_counts, goal_progress, initials,
)
from .models import SubmissionCreate, SubmissionPatch, ProfilePatch, StreakOut

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="DSA Streak Tracker API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.get("/health")
def health():
    try:
        db = get_client()
        db.table("profiles").select("id").limit(1).execute()
        return {"status": "ok", "db": "ok"}
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        raise HTTPException(status_code=503, detail="DB unavailable")


# ── Auth ──────────────────────────────────────────────────────────────────────

def get_access_token(authorization: str = Header(...)) -> str:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    return authorization.removeprefix("Bearer ").strip()


def require_user(access_token: str = Depends(get_access_token)) -> dict:
    db = get_client()
    user = get_user_for_token(db, access_token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user


# ── Profile ───────────────────────────────────────────────────────────────────

@app.get("/api/profile")
def read_profile(user: dict = Depends(require_user)):
    db = get_client()
    profile, submissions = _load_history(db, user["id"])
    streaks, _ = _refresh_streaks(db, user["id"], profile, submission_days(submissions), today_in_reference_tz())
    goal = profile.get("streak_goal") or DEFAULT_STREAK_GOAL

    return {
        "id": user["id"],
        "username": profile.get("username"),
        "email": user.get("email"),
        "initials": initials(profile.get("username"), user.get("email")),
        "member_since": user.get("created_at", ""),
        "current_streak": streaks.current_streak,
        "longest_streak": streaks.longest_streak,
        "streak_goal": goal,
        "goal_progress": goal_progress(streaks.current_streak, goal),
        "total_submissions": len(submissions),
    }


@app.patch("/api/profile")
@limiter.limit("20/minute")
def update_profile(request: Request, body: ProfilePatch, user: dict = Depends(require_user)):
    db = get_client()
    updates = body.model_dump(exclude_none=True)
    row = {**updates, "updated_at": datetime.now(timezone.utc).isoformat()}
    _fetch(lambda: upsert_profile(db, user["id"], row), user["id"], "Failed to save profile")
    logger.info("Profile updated for %s...: %s", user["id"][:8], ", ".join(sorted(updates)))
    return {"status": "updated", **updates}


# ── Dashboard ─────────────────────────────────────────────────────────────────

@app.get("/api/dashboard")
def read_dashboard(user: dict = Depends(require_user)):
    """Streaks, today's status, difficulty breakdown and the one-year heatmap."""
    db = get_client()
    profile, submissions = _load_history(db, user["id"])
    today = today_in_reference_tz()
    days = submission_days(submissions)
    streaks, _ = _refresh_streaks(db, user["id"], profile, days, today)

    return {
        "username": profile.get("username"),
        "current_streak": streaks.current_streak,
        "longest_streak": streaks.longest_streak,
        "has_logged_today": today in days,
        "total_submissions": len(submissions),
        "difficulty_counts": difficulty_counts(submissions),
        "heatmap": build_heatmap(days, today),
    }


# ── Submissions ───────────────────────────────────────────────────────────────

@app.get("/api/submissions")
def list_submissions(user: dict = Depends(require_user)):
    db = get_client()
    rows = _fetch(lambda: get_submissions(db, user["id"]), user["id"])
    return {"submissions": [_with_day(row) for row in rows]}


@app.post("/api/submissions", status_code=201)
@limiter.limit("30/minute")
def create_submission(request: Request, body: SubmissionCreate, user: dict = Depends(require_user)):
    db = get_client()
    row = {
        **body.to_row(),
        "user_id": user["id"],
        "date": datetime.now(timezone.utc).isoformat(),
    }
    try:
        created = insert_submission(db, row)
    except Exception as e:
        if is_unique_violation(e):
            raise HTTPException(status_code=409, detail="A submission for today already exists")
        logger.error("Submission insert failed for %s...: %s", user["id"][:8], e)
        raise HTTPException(status_code=502, detail="Failed to save submission")

    streaks = _refresh_after_change(db, user["id"])
    logger.info("Submission logged for %s...: %s (%s)",
                user["id"][:8], body.problem_name, body.difficulty.value)
    return {"submission": _with_day(created), **streaks}


@app.patch("/api/submissions/{submission_id}")
@limiter.limit("30/minute")
def edit_submission(request: Request, submission_id: int, body: SubmissionPatch,
                    user: dict = Depends(require_user)):
    db = get_client()
    existing = _fetch(lambda: get_submission(db, user["id"], submission_id), user["id"])
    if not existing:
        raise HTTPException(status_code=404, detail="Submission not found")

    updates = body.to_updates()
    if not updates:
        return {"submission": _with_day(existing)}

    updated = _fetch(
        lambda: update_submission(db, user["id"], submission_id, updates),
        user["id"], "Failed to save submission",
    )
    return {"submission": _with_day(updated or {**existing, **updates})}


@app.delete("/api/submissions/{submission_id}")
@limiter.limit("30/minute")
def remove_submission(request: Request, submission_id: int, user: dict = Depends(require_user)):
    db = get_client()
    if not _fetch(lambda: get_submission(db, user["id"], submission_id), user["id"]):
        raise HTTPException(status_code=404, detail="Submission not found")

    _fetch(lambda: delete_submission(db, user["id"], submission_id), user["id"], "Failed to delete submission")
    streaks = _refresh_after_change(db, user["id"])
    logger.info("Submission %d deleted for %s...", submission_id, user["id"][:8])
    return {"status": "deleted", **streaks}


# ── Streaks ───────────────────────────────────────────────────────────────────

@app.post("/api/streaks/refresh", response_model=StreakOut)
@limiter.limit("30/minute")
def refresh_streaks(request: Request, user: dict = Depends(require_user)):
    db = get_client()
    profile, submissions = _load_history(db, user["id"])
    streaks, updated = _refresh_streaks(
        db, user["id"], profile, submission_days(submissions), today_in_reference_tz()
    )
    return StreakOut(**streaks.as_row(), updated=updated)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _fetch(load, user_id: str, detail: str = "Failed to load data"):
    """Run a store call; any failure is logged and reported as 502."""
    try:
        return load()
    except Exception as e:
        logger.error("%s for %s...: %s", detail, user_id[:8], e)
        raise HTTPException(status_code=502, detail=detail)


def _load_history(db, user_id: str) -> tuple[dict, list[dict]]:
    return _fetch(lambda: (get_profile(db, user_id), get_submissions(db, user_id)), user_id)


def _refresh_streaks(db, user_id: str, profile: dict, days: set[date], today: date) -> tuple[StreakState, bool]:
    """
    Recompute streaks from the full history and write them back only when the
    stored copy has drifted. Returns (computed, whether a write happened).

    A failed write surfaces as 502; the computed value is never discarded or
    altered by it, so the next load simply retries the reconciliation.
    """
    computed = calculate_streaks(days, today)
    writes = reconcile(StreakState.from_row(profile), computed)
    if not writes:
        return computed, False

    _fetch(lambda: upsert_profile(db, user_id, writes), user_id, "Failed to save streaks")
    logger.info("Streaks reconciled for %s...: %s", user_id[:8], writes)
    return computed, True


def _refresh_after_change(db, user_id: str) -> dict:
    """
    Refresh streaks after a create or delete that is already committed.

    A failed refresh must not turn the committed change into an error, so it
    is reported as `streaks_synced: false` instead; the next load reconciles.
    Computed streaks are still returned when only the write-back failed.
    """
    today = today_in_reference_tz()
    days = None
    try:
        profile, submissions = _load_history(db, user_id)
        days = submission_days(submissions)
        streaks, _ = _refresh_streaks(db, user_id, profile, days, today)
    except HTTPException:
        logger.warning("Streaks left unsynced for %s... after change", user_id[:8])
        if days is None:
            return {"streaks_synced": False}
        return {**calculate_streaks(days, today).as_row(), "streaks_synced": False}
    return {**streaks.as_row(), "streaks_synced": True}


def _with_day(row: dict) -> dict:
    """Attach the calendar day the submission counts toward."""
    if not row.get("date"):
        return row
    return {**row, "day": to_calendar_date(row["date"]).isoformat()}

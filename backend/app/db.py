import os
import logging
from functools import lru_cache
from supabase import create_client, Client

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000  # Supabase row limit per request


@lru_cache(maxsize=1)
def get_client() -> Client:
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_SERVICE_KEY"]
    return create_client(url, key)


def get_user_for_token(db: Client, access_token: str) -> dict | None:
    try:
        res = db.auth.get_user(access_token)
    except Exception as e:
        # The auth API raises on expired or forged tokens; treat as unauthenticated.
        logger.info("Token rejected: %s", e)
        return None
    if not res or not res.user:
        return None
    created_at = res.user.created_at
    return {
        "id": res.user.id,
        "email": res.user.email,
        "created_at": created_at.isoformat() if hasattr(created_at, "isoformat") else created_at,
    }


def is_unique_violation(err: Exception) -> bool:
    err_str = str(err).lower()
    return "duplicate" in err_str or "unique" in err_str or "23505" in err_str


def get_profile(db: Client, user_id: str) -> dict:
    res = db.table("profiles").select("*").eq("id", user_id).execute()
    return res.data[0] if res.data else {}


def upsert_profile(db: Client, user_id: str, updates: dict) -> None:
    db.table("profiles").upsert({"id": user_id, **updates}).execute()


def get_submissions(db: Client, user_id: str) -> list[dict]:
    """All submissions for a user, newest first, fetched in pages."""
    rows: list[dict] = []
    offset = 0
    while True:
        res = (
            db.table("submissions")
            .select("*")
            .eq("user_id", user_id)
            .order("date", desc=True)
            .range(offset, offset + PAGE_SIZE - 1)
            .execute()
        )
        batch = res.data or []
        rows.extend(batch)
        if len(batch) < PAGE_SIZE:
            return rows
        offset += PAGE_SIZE


def get_submission(db: Client, user_id: str, submission_id: int) -> dict | None:
    res = (
        db.table("submissions").select("*")
        .eq("id", submission_id).eq("user_id", user_id)
        .execute()
    )
    return res.data[0] if res.data else None


def insert_submission(db: Client, row: dict) -> dict:
    res = db.table("submissions").insert(row).execute()
    return res.data[0] if res.data else row


def update_submission(db: Client, user_id: str, submission_id: int, updates: dict) -> dict | None:
    res = (
        db.table("submissions").update(updates)
        .eq("id", submission_id).eq("user_id", user_id)
        .execute()
    )
    return res.data[0] if res.data else None


def delete_submission(db: Client, user_id: str, submission_id: int) -> None:
    db.table("submissions").delete().eq("id", submission_id).eq("user_id", user_id).execute()

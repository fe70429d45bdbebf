# walcard/repos/auth_log_repo.py
from datetime import datetime

from walcard.domain.schemas import AuthLog, parse_record
from walcard.services.remote_client import RemoteDataClient


class AuthLogRepo:
    """Server-side session records (table ``user_auth_logs``)."""

    def __init__(self, client: RemoteDataClient):
        self.client = client

    def create(self, user_id: str, expires_at: datetime) -> AuthLog:
        row = (
            self.client.table("user_auth_logs")
            .insert({"user_id": user_id, "expires_at": expires_at, "is_used": False})
            .single()
            .execute()
        )
        return parse_record(AuthLog, row)

    def get_active(self, auth_log_id: str, user_id: str) -> AuthLog | None:
        row = (
            self.client.table("user_auth_logs")
            .select("*")
            .eq("id", auth_log_id)
            .eq("user_id", user_id)
            .eq("is_used", False)
            .maybe_single()
            .execute()
        )
        return parse_record(AuthLog, row) if row is not None else None

    def extend(self, auth_log_id: str, expires_at: datetime) -> None:
        self.client.table("user_auth_logs").update({"expires_at": expires_at}).eq("id", auth_log_id).execute()

    def mark_used(self, auth_log_id: str) -> None:
        self.client.table("user_auth_logs").update({"is_used": True}).eq("id", auth_log_id).execute()

    def mark_expired_used(self, now: datetime) -> int:
        rows = (
            self.client.table("user_auth_logs")
            .update({"is_used": True})
            .lt("expires_at", now)
            .eq("is_used", False)
            .execute()
        )
        return len(rows or [])

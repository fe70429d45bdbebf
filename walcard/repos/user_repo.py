# walcard/repos/user_repo.py
from walcard.domain.schemas import AccountInfo, UserRecord, parse_record
from walcard.services.remote_client import RemoteDataClient


class UserRepo:
    def __init__(self, client: RemoteDataClient):
        self.client = client

    def get_user(self, user_id: str) -> UserRecord | None:
        row = (
            self.client.table("users")
            .select("id, phone_number, full_name, user_type, is_approved")
            .eq("id", user_id)
            .maybe_single()
            .execute()
        )
        return parse_record(UserRecord, row) if row is not None else None

    def get_account_info(self, phone: str) -> AccountInfo | None:
        data = self.client.rpc("get_user_account_info", {"phone_input": phone})
        if isinstance(data, list):
            data = data[0] if data else None
        return parse_record(AccountInfo, data) if data else None

# walcard/services/remote_client.py
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Tuple
from urllib.parse import quote

import requests

from walcard.domain.errors import RemoteError
from walcard.utils.settings import REQUEST_TIMEOUT, SUPABASE_KEY, SUPABASE_URL
from walcard.utils.logging import get_logger

logger = get_logger(__name__)

# re-export, wolajacy lapia RemoteError z klienta
__all__ = ["RemoteDataClient", "TableQuery", "RemoteError"]


def _json_default(value: Any):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Nie mozna zserializowac {type(value).__name__}")


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _quote_list_value(value: Any) -> str:
    text = _format_value(value)
    if any(ch in text for ch in ',()"'):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


def _error_message(resp: requests.Response) -> Tuple[str, str | None]:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}", None

    if isinstance(body, dict):
        message = body.get("message") or body.get("msg") or body.get("error_description") or body.get("error")
        code = body.get("code") or body.get("error_code")
        return str(message or f"HTTP {resp.status_code}"), str(code) if code is not None else None
    return str(body), None


class TableQuery:
    """
    Fluent query over one table of the REST surface.

    Filters become ``column=op.value`` query parameters, mutations are sent
    with ``Prefer: return=representation`` so inserts and updates hand back
    the written rows.
    """

    def __init__(self, client: "RemoteDataClient", table: str):
        self.client = client
        self.table = table
        self._method = "GET"
        self._params: List[Tuple[str, str]] = []
        self._body: Any = None
        self._prefer: List[str] = []
        self._single: str | None = None

    # -----------------------------------------------------
    # operations
    # -----------------------------------------------------
    def select(self, columns: str = "*") -> "TableQuery":
        compact = ",".join(part.strip() for part in columns.replace("\n", " ").split(",") if part.strip())
        self._params.append(("select", compact.replace(" ", "")))
        return self

    def insert(self, rows: Dict[str, Any] | List[Dict[str, Any]]) -> "TableQuery":
        self._method = "POST"
        self._body = rows
        self._prefer.append("return=representation")
        return self

    def upsert(self, rows: Dict[str, Any] | List[Dict[str, Any]], on_conflict: str | None = None) -> "TableQuery":
        self._method = "POST"
        self._body = rows
        self._prefer.append("resolution=merge-duplicates")
        self._prefer.append("return=representation")
        if on_conflict:
            self._params.append(("on_conflict", on_conflict))
        return self

    def update(self, values: Dict[str, Any]) -> "TableQuery":
        self._method = "PATCH"
        self._body = values
        self._prefer.append("return=representation")
        return self

    def delete(self) -> "TableQuery":
        self._method = "DELETE"
        self._prefer.append("return=representation")
        return self

    # -----------------------------------------------------
    # filters
    # -----------------------------------------------------
    def _filter(self, column: str, op: str, value: Any) -> "TableQuery":
        self._params.append((column, f"{op}.{_format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "neq", value)

    def lt(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "lt", value)

    def gt(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "gt", value)

    def is_(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "is", value)

    def ilike(self, column: str, pattern: str) -> "TableQuery":
        return self._filter(column, "ilike", pattern.replace("%", "*"))

    def in_(self, column: str, values: Iterable[Any]) -> "TableQuery":
        joined = ",".join(_quote_list_value(v) for v in values)
        self._params.append((column, f"in.({joined})"))
        return self

    def or_(self, filters: str) -> "TableQuery":
        self._params.append(("or", f"({filters})"))
        return self

    # -----------------------------------------------------
    # modifiers
    # -----------------------------------------------------
    def order(self, column: str, desc: bool = False) -> "TableQuery":
        self._params.append(("order", f"{column}.{'desc' if desc else 'asc'}"))
        return self

    def limit(self, count: int) -> "TableQuery":
        self._params.append(("limit", str(count)))
        return self

    def single(self) -> "TableQuery":
        self._single = "single"
        return self

    def maybe_single(self) -> "TableQuery":
        self._single = "maybe"
        return self

    def execute(self) -> Any:
        headers = {"Prefer": ",".join(self._prefer)} if self._prefer else None
        data = self.client.request(
            self._method,
            f"/rest/v1/{self.table}",
            params=self._params,
            json_body=self._body,
            headers=headers,
        )
        rows = data if data is not None else []

        if self._single is None:
            return rows

        if not isinstance(rows, list):
            rows = [rows]
        if len(rows) > 1:
            raise RemoteError(f"Oczekiwano jednego wiersza z {self.table}, otrzymano {len(rows)}")
        if not rows:
            if self._single == "maybe":
                return None
            raise RemoteError(f"Brak wiersza w {self.table}", status_code=406)
        return rows[0]


class RemoteDataClient:
    """
    Thin client for the hosted backend: REST tables, RPC, OTP auth and
    object storage. Every failure comes out as ``RemoteError``; nothing is
    retried here.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (url or SUPABASE_URL).rstrip("/")
        self.key = key if key is not None else SUPABASE_KEY
        self.timeout = timeout or REQUEST_TIMEOUT
        self.http = session or requests.Session()

    def _headers(self, extra: Dict[str, str] | None = None, token: str | None = None) -> Dict[str, str]:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {token or self.key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: List[Tuple[str, str]] | Dict[str, Any] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
        headers: Dict[str, str] | None = None,
        token: str | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"RemoteDataClient {method} {url}")

        extra = dict(headers or {})
        data = content
        if json_body is not None:
            extra.setdefault("Content-Type", "application/json")
            data = json.dumps(json_body, default=_json_default)

        try:
            resp = self.http.request(
                method,
                url,
                params=params,
                data=data,
                headers=self._headers(extra, token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            message, code = _error_message(resp)
            logger.error(f"{method} {path} -> {resp.status_code}: {message}")
            raise RemoteError(message, status_code=resp.status_code, code=code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteError(f"Niepoprawna odpowiedz JSON z {path}") from e

    # =====================================================
    # Tables / RPC
    # =====================================================
    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)

    def rpc(self, function: str, params: Dict[str, Any] | None = None) -> Any:
        return self.request("POST", f"/rest/v1/rpc/{function}", json_body=params or {})

    # =====================================================
    # OTP auth
    # =====================================================
    def sign_in_with_otp(self, phone: str, channel: str = "sms", data: Dict[str, Any] | None = None) -> Any:
        return self.request(
            "POST",
            "/auth/v1/otp",
            json_body={"phone": phone, "channel": channel, "data": data or {}, "create_user": True},
        )

    def verify_otp(self, phone: str, token: str, type: str = "sms") -> Dict[str, Any]:
        return self.request(
            "POST",
            "/auth/v1/verify",
            json_body={"phone": phone, "token": token, "type": type},
        )

    def get_user(self, access_token: str) -> Dict[str, Any]:
        return self.request("GET", "/auth/v1/user", token=access_token)

    def sign_out(self, access_token: str | None = None) -> None:
        self.request("POST", "/auth/v1/logout", token=access_token)

    # =====================================================
    # Storage
    # =====================================================
    def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "image/jpeg",
        upsert: bool = False,
    ) -> Any:
        return self.request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            content=content,
            headers={
                "Content-Type": content_type,
                "Cache-Control": "3600",
                "x-upsert": "true" if upsert else "false",
            },
        )

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(path)}"

    def remove(self, bucket: str, paths: List[str]) -> Any:
        return self.request("DELETE", f"/storage/v1/object/{bucket}", json_body={"prefixes": paths})

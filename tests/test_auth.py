"""
Tests for OTP login, phone lookup retries and login status routing.
"""

import pytest
import requests
from tenacity import wait_none

from walcard.data.store import USER_PHONE_KEY
from walcard.domain import messages
from walcard.domain.errors import RemoteError
from walcard.domain.schemas import AccountInfo, UserType
from walcard.services.auth_service import AuthService, normalize_phone
from walcard.utils.retry import is_network_error


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(AuthService.get_user_account_info.retry, "wait", wait_none())
    monkeypatch.setattr(AuthService._send_otp.retry, "wait", wait_none())


class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("07701234567", "9647701234567"),
            ("7701234567", "9647701234567"),
            ("+9647701234567", "9647701234567"),
            ("9647701234567", "9647701234567"),
            ("0770 123-4567", "9647701234567"),
        ],
    )
    def test_default_country(self, raw, expected):
        assert normalize_phone(None, raw) == expected

    def test_explicit_country(self):
        assert normalize_phone("+966", "0501234567") == "966501234567"


class TestNetworkErrorDetection:
    def test_transport_errors(self):
        assert is_network_error(requests.ConnectionError("refused"))
        assert is_network_error(requests.Timeout("slow"))

    def test_wrapped_transport_error(self):
        try:
            try:
                raise requests.ConnectionError("refused")
            except requests.ConnectionError as e:
                raise RemoteError("GET /rest/v1/users failed") from e
        except RemoteError as wrapped:
            assert is_network_error(wrapped)

    def test_message_markers(self):
        assert is_network_error(RemoteError("Network request failed"))
        assert is_network_error(RemoteError("Request Aborted"))
        assert is_network_error(RemoteError("read timeout"))

    def test_other_errors(self):
        assert not is_network_error(RemoteError("permission denied", status_code=403))
        assert not is_network_error(ValueError("bad"))


class TestCheckUserExists:
    """Test cases for the retried account lookup."""

    def test_retries_network_errors_three_times(self, ctx, repos, store_owner):
        """Test that a persistent network error is attempted exactly three times."""
        repos.users.account_errors = [RemoteError("Network request failed")] * 3

        assert ctx.auth_service.check_user_exists(store_owner.phone_number) is None
        assert repos.users.account_calls == 3

    def test_recovers_after_network_errors(self, ctx, repos, store_owner):
        """Test that a later attempt can succeed."""
        repos.users.account_errors = [
            RemoteError("Network request failed"),
            RemoteError("timeout"),
        ]

        info = ctx.auth_service.check_user_exists(store_owner.phone_number)

        assert info is not None
        assert info.user_id == store_owner.user_id
        assert repos.users.account_calls == 3

    def test_no_retry_for_other_errors(self, ctx, repos, store_owner):
        """Test that a non-network error is attempted once."""
        repos.users.account_errors = [RemoteError("function does not exist", status_code=404)]

        assert ctx.auth_service.check_user_exists(store_owner.phone_number) is None
        assert repos.users.account_calls == 1

    def test_admin_is_not_a_storefront_account(self, ctx, repos):
        """Test that only merchants and store owners are accepted."""
        repos.users.accounts["9647700000009"] = AccountInfo(
            has_account=True, user_id="admin-1", user_type=UserType.ADMIN, is_approved=True
        )
        assert ctx.auth_service.check_user_exists("9647700000009") is None

    def test_unknown_phone(self, ctx):
        assert ctx.auth_service.check_user_exists("9647799999999") is None


class TestOtp:
    def test_send_requires_phone(self, ctx, client):
        result = ctx.auth_service.send_otp("  ")

        assert result.success is False
        assert result.message == messages.PHONE_REQUIRED
        client.sign_in_with_otp.assert_not_called()

    def test_send_passes_metadata(self, ctx, client):
        result = ctx.auth_service.send_otp("9647701234567", "Ali")

        assert result.success is True
        client.sign_in_with_otp.assert_called_once_with(
            "9647701234567",
            channel="sms",
            data={"phone_number": "9647701234567", "full_name": "Ali"},
        )

    def test_send_retries_network_errors(self, ctx, client):
        client.sign_in_with_otp.side_effect = RemoteError("Network request failed")

        result = ctx.auth_service.send_otp("9647701234567")

        assert result.success is False
        assert result.message == messages.OTP_SEND_FAILED
        assert client.sign_in_with_otp.call_count == 3

    @pytest.mark.parametrize("token", ["12345", "1234567", "abcdef", ""])
    def test_verify_rejects_bad_format(self, ctx, client, token):
        result = ctx.auth_service.verify_otp("9647701234567", token)

        assert result.message == messages.OTP_INVALID_FORMAT
        client.verify_otp.assert_not_called()

    def test_verify(self, ctx, client):
        assert ctx.auth_service.verify_otp("9647701234567", "123456").success is True
        client.verify_otp.assert_called_once_with("9647701234567", "123456", type="sms")

    def test_verify_wrong_code(self, ctx, client):
        client.verify_otp.side_effect = RemoteError("Token has expired or is invalid", status_code=403)

        result = ctx.auth_service.verify_otp("9647701234567", "123456")

        assert result.success is False
        assert result.message == messages.OTP_VERIFY_FAILED


class TestLogin:
    """Test cases for login_user, status and logout."""

    def test_login_creates_session(self, ctx, store, store_owner):
        result = ctx.auth_service.login_user(store_owner.phone_number)

        assert result.success is True
        assert result.session.user_id == store_owner.user_id
        assert store.get_item(USER_PHONE_KEY) == store_owner.phone_number
        assert ctx.session_service.get_current_user() == result.session

    def test_login_without_account(self, ctx):
        result = ctx.auth_service.login_user("9647799999999")

        assert result.success is False
        assert result.message == messages.NO_ACCOUNT

    def test_login_pending_approval(self, ctx, repos):
        repos.users.accounts["9647700000002"] = AccountInfo(
            has_account=True, user_id="user-2", full_name="New Shop",
            user_type=UserType.STORE_OWNER, is_approved=False,
        )

        result = ctx.auth_service.login_user("9647700000002")

        assert result.success is False
        assert result.needs_approval is True
        assert ctx.session_service.get_current_user() is None

    def test_login_record_failure(self, ctx, repos, store_owner):
        repos.auth_logs.fail_create = True

        result = ctx.auth_service.login_user(store_owner.phone_number)

        assert result.success is False
        assert result.message == messages.LOGIN_FAILED

    def test_status_routes_store_owner(self, logged_in):
        status = logged_in.auth_service.check_login_status()

        assert status.is_logged_in is True
        assert status.redirect_to == "/store-owner"

    def test_status_routes_merchant(self, ctx, store_owner):
        ctx.session_service.create_session(
            store_owner.model_copy(update={"user_type": UserType.MERCHANT})
        )
        assert ctx.auth_service.check_login_status().redirect_to == "/(tabs)"

    def test_status_unapproved(self, ctx, store_owner):
        ctx.session_service.create_session(store_owner.model_copy(update={"is_approved": False}))

        status = ctx.auth_service.check_login_status()

        assert status.is_logged_in is False
        assert status.redirect_to == "/auth/pending-approval"
        assert ctx.session_service.get_current_user() is None

    def test_status_logged_out(self, ctx):
        status = ctx.auth_service.check_login_status()
        assert status.is_logged_in is False
        assert status.redirect_to is None

    def test_logout_survives_sign_out_failure(self, ctx, client, store, store_owner):
        ctx.auth_service.login_user(store_owner.phone_number)
        client.sign_out.side_effect = RemoteError("Network request failed")

        assert ctx.auth_service.logout_user() is True
        assert store.get_item(USER_PHONE_KEY) is None
        assert ctx.auth_service.get_current_user() is None

# walcard/services/auth_service.py
import re

from walcard.data.store import USER_PHONE_KEY, KeyValueStore
from walcard.domain import messages
from walcard.domain.errors import RemoteError, StoreError
from walcard.domain.schemas import (
    AccountInfo,
    ActionResult,
    LoginResult,
    LoginStatus,
    SessionUser,
    UserSession,
    UserType,
)
from walcard.repos.user_repo import UserRepo
from walcard.services.remote_client import RemoteDataClient
from walcard.services.session_service import SessionService
from walcard.utils.retry import network_retry
from walcard.utils.settings import DEFAULT_COUNTRY_CODE
from walcard.utils.logging import get_logger

logger = get_logger(__name__)

OTP_PATTERN = re.compile(r"^\d{6}$")

REDIRECTS = {
    UserType.STORE_OWNER: "/store-owner",
    UserType.MERCHANT: "/(tabs)",
    UserType.ADMIN: "/(tabs)",
}
PENDING_APPROVAL_PATH = "/auth/pending-approval"


def normalize_phone(country_code: str | None, phone: str) -> str:
    """``07701234567`` / ``+9647701234567`` -> ``9647701234567``."""
    code = (country_code or DEFAULT_COUNTRY_CODE).lstrip("+")
    digits = re.sub(r"[\s-]", "", phone.strip())
    digits = re.sub(rf"^\+?{re.escape(code)}|^0", "", digits)
    return f"{code}{digits}"


class AuthService:
    """
    Logowanie przez OTP i zycie sesji widziane z ekranow.

    Ponawianie (3 proby, staly odstep) jest tylko tutaj: sprawdzenie
    numeru i wyslanie kodu. Reszta aplikacji nie ponawia wywolan.
    """

    def __init__(
        self,
        client: RemoteDataClient,
        user_repo: UserRepo,
        session_service: SessionService,
        store: KeyValueStore,
    ):
        self.client = client
        self.user_repo = user_repo
        self.session_service = session_service
        self.store = store

    # =====================================================
    # Phone / OTP
    # =====================================================
    @network_retry()
    def get_user_account_info(self, phone: str) -> AccountInfo | None:
        logger.info(f"Checking account for {phone}")
        return self.user_repo.get_account_info(phone)

    def check_user_exists(self, phone: str) -> AccountInfo | None:
        """Account info for complete merchant/store owner accounts only."""
        try:
            info = self.get_user_account_info(phone)
        except RemoteError as e:
            logger.error(f"All attempts to check user {phone} failed: {e}")
            return None

        if info and info.has_account and info.user_type in (UserType.MERCHANT, UserType.STORE_OWNER):
            return info
        return None

    @network_retry()
    def _send_otp(self, phone: str, metadata: dict) -> None:
        self.client.sign_in_with_otp(phone, channel="sms", data=metadata)

    def send_otp(self, phone: str, full_name: str | None = None) -> ActionResult:
        if not phone.strip():
            return ActionResult(success=False, message=messages.PHONE_REQUIRED)

        metadata = {"phone_number": phone}
        if full_name:
            metadata["full_name"] = full_name

        try:
            self._send_otp(phone, metadata)
        except RemoteError as e:
            logger.error(f"OTP sending error for {phone}: {e}")
            return ActionResult(success=False, message=messages.OTP_SEND_FAILED)

        logger.info(f"OTP sent to {phone}")
        return ActionResult(success=True, message=messages.OTP_SENT)

    def verify_otp(self, phone: str, token: str) -> ActionResult:
        if not OTP_PATTERN.match(token or ""):
            return ActionResult(success=False, message=messages.OTP_INVALID_FORMAT)

        try:
            self.client.verify_otp(phone, token, type="sms")
        except RemoteError as e:
            logger.warning(f"OTP verification failed for {phone}: {e}")
            return ActionResult(success=False, message=messages.OTP_VERIFY_FAILED)

        logger.info(f"OTP verified for {phone}")
        return ActionResult(success=True, message=messages.OTP_VERIFIED)

    # =====================================================
    # Session lifecycle
    # =====================================================
    def login_user(self, phone: str) -> LoginResult:
        logger.info(f"Attempting login for {phone}")

        try:
            info = self.get_user_account_info(phone)
        except RemoteError as e:
            logger.error(f"Login error for {phone}: {e}")
            return LoginResult(success=False, message=messages.LOGIN_FAILED)

        if not info or not info.has_account or not info.user_id or not info.user_type:
            return LoginResult(success=False, message=messages.NO_ACCOUNT)

        if not info.is_approved:
            return LoginResult(success=False, message=messages.PENDING_APPROVAL, needs_approval=True)

        try:
            session = self.session_service.create_session(
                SessionUser(
                    user_id=info.user_id,
                    phone_number=phone,
                    full_name=info.full_name or "",
                    user_type=info.user_type,
                    is_approved=info.is_approved,
                )
            )
            self.store.set_item(USER_PHONE_KEY, phone)
        except (RemoteError, StoreError) as e:
            logger.error(f"Cannot create session for {phone}: {e}")
            return LoginResult(success=False, message=messages.LOGIN_FAILED)

        logger.info(f"Login successful for {session.user_type.value}")
        return LoginResult(success=True, message=messages.LOGIN_SUCCESS, session=session)

    def check_login_status(self) -> LoginStatus:
        session = self.session_service.get_session()
        if not session:
            return LoginStatus(is_logged_in=False)

        if not session.is_approved:
            self.session_service.clear_session()
            return LoginStatus(is_logged_in=False, redirect_to=PENDING_APPROVAL_PATH)

        return LoginStatus(
            is_logged_in=True,
            session=session,
            redirect_to=REDIRECTS.get(session.user_type, "/onboarding/welcome"),
        )

    def logout_user(self) -> bool:
        logger.info("Logging out user")
        self.session_service.logout_user()

        try:
            self.client.sign_out()
        except RemoteError as e:
            logger.warning(f"Backend sign out failed: {e}")

        try:
            self.store.remove_item(USER_PHONE_KEY)
        except StoreError as e:
            logger.error(f"Logout error: {e}")
            return False

        logger.info("Logout successful")
        return True

    def update_session_info(self, **updates) -> bool:
        try:
            return self.session_service.update_user_info(**updates) is not None
        except StoreError as e:
            logger.error(f"Error updating session info: {e}")
            return False

    def refresh_user_session(self) -> bool:
        return self.session_service.refresh_session()

    def get_current_user(self) -> UserSession | None:
        return self.session_service.get_current_user()

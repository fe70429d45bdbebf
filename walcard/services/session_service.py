# walcard/services/session_service.py
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from walcard.data.store import AUTH_LOG_KEY, SESSION_KEY, KeyValueStore
from walcard.domain.errors import RemoteError, StoreError
from walcard.domain.schemas import SessionUser, UserSession
from walcard.repos.auth_log_repo import AuthLogRepo
from walcard.repos.user_repo import UserRepo
from walcard.utils.settings import SESSION_TTL_DAYS
from walcard.utils.logging import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionService:
    """
    Jedno zrodlo prawdy o zalogowanym uzytkowniku.

    Stan trzymany w trzech miejscach:
    - w pamieci (get_current_user, bez I/O)
    - w lokalnym magazynie (odtworzenie po restarcie)
    - rekord sesji na serwerze (user_auth_logs), ktory decyduje o waznosci

    Kazda watpliwosc co do waznosci konczy sie wylogowaniem (fail closed).
    """

    def __init__(
        self,
        store: KeyValueStore,
        auth_log_repo: AuthLogRepo,
        user_repo: UserRepo,
        ttl_days: int = SESSION_TTL_DAYS,
    ):
        self.store = store
        self.auth_log_repo = auth_log_repo
        self.user_repo = user_repo
        self.ttl = timedelta(days=ttl_days)
        self._current: UserSession | None = None

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_session(self, user: SessionUser) -> UserSession:
        """
        Use Case: utworzenie sesji po poprawnym logowaniu OTP.

        Blad zapisu rekordu na serwerze jest propagowany - nie tworzymy
        sesji tylko lokalnie, bo serwer nie moglby jej potem zweryfikowac.
        """
        expires_at = _utcnow() + self.ttl
        auth_log = self.auth_log_repo.create(user.user_id, expires_at)

        session = UserSession(**user.model_dump(), auth_log_id=auth_log.id)

        self.store.set_item(SESSION_KEY, session.model_dump_json())
        self.store.set_item(AUTH_LOG_KEY, auth_log.id)
        self._current = session

        logger.info(f"Session created for user {session.user_id}")
        return session

    def refresh_session(self) -> bool:
        """Extend the server record by another TTL from now."""
        try:
            auth_log_id = self.store.get_item(AUTH_LOG_KEY)
            if not auth_log_id:
                return False

            self.auth_log_repo.extend(auth_log_id, _utcnow() + self.ttl)
        except (RemoteError, StoreError) as e:
            logger.error(f"Error refreshing session: {e}")
            return False

        logger.info("Session refreshed")
        return True

    def mark_session_as_used(self, auth_log_id: str) -> None:
        try:
            self.auth_log_repo.mark_used(auth_log_id)
        except RemoteError as e:
            logger.warning(f"Nie udalo sie oznaczyc sesji {auth_log_id} jako uzytej: {e}")

    def clear_session(self) -> None:
        """
        Idempotent: the server record is marked used when possible, local
        and in-memory state is always dropped.
        """
        try:
            try:
                auth_log_id = self.store.get_item(AUTH_LOG_KEY)
            except StoreError as e:
                logger.warning(f"Cannot read auth log id while clearing session: {e}")
                auth_log_id = None

            if auth_log_id:
                self.mark_session_as_used(auth_log_id)

            for key in (SESSION_KEY, AUTH_LOG_KEY):
                try:
                    self.store.remove_item(key)
                except StoreError as e:
                    logger.warning(f"Cannot remove {key}: {e}")
        finally:
            self._current = None

        logger.info("Session cleared")

    def logout_user(self) -> None:
        self.clear_session()

    def update_user_info(self, **updates) -> UserSession | None:
        if self._current is None:
            return None

        merged = self._current.model_copy(update=updates)
        # walidacja po merge, model_copy jej nie robi
        self._current = UserSession.model_validate(merged.model_dump())
        self.store.set_item(SESSION_KEY, self._current.model_dump_json())
        return self._current

    def cleanup_expired_sessions(self) -> int:
        """Mark every unused, already expired server record as used."""
        try:
            count = self.auth_log_repo.mark_expired_used(_utcnow())
        except RemoteError as e:
            logger.error(f"Error cleaning up expired sessions: {e}")
            return 0

        logger.info(f"Expired sessions cleaned up: {count}")
        return count

    # =====================================================
    # QUERIES
    # =====================================================
    def get_session(self) -> UserSession | None:
        if self._current is not None:
            return self._current

        try:
            raw = self.store.get_item(SESSION_KEY)
            auth_log_id = self.store.get_item(AUTH_LOG_KEY)

            if not raw or not auth_log_id:
                logger.info("No local session found")
                return None

            try:
                cached = UserSession.model_validate_json(raw)
            except ValidationError as e:
                logger.warning(f"Lokalna sesja uszkodzona: {e}")
                self.clear_session()
                return None

            auth_log = self.auth_log_repo.get_active(auth_log_id, cached.user_id)
            if auth_log is None:
                logger.warning("Auth log not found or already used")
                self.clear_session()
                return None

            if _utcnow() > auth_log.expires_at:
                logger.warning(f"Session {auth_log_id} expired")
                self.clear_session()
                return None

            user = self.user_repo.get_user(cached.user_id)
            if user is None:
                logger.warning(f"User {cached.user_id} not found")
                self.clear_session()
                return None

            fresh = UserSession(
                user_id=user.id,
                phone_number=user.phone_number,
                full_name=user.full_name,
                user_type=user.user_type,
                is_approved=user.is_approved,
                auth_log_id=auth_log_id,
            )
            self.store.set_item(SESSION_KEY, fresh.model_dump_json())

        except (RemoteError, StoreError) as e:
            logger.warning(f"Session validation failed, logging out: {e}")
            self.clear_session()
            return None

        self._current = fresh
        logger.info(f"Valid session found for user {fresh.user_id}")
        return fresh

    def is_logged_in(self) -> bool:
        session = self.get_session()
        return session is not None and session.is_approved

    def get_current_user(self) -> UserSession | None:
        return self._current

    def get_active_user(self) -> UserSession | None:
        """Loaded session usable for protected actions (approved account only)."""
        session = self._current
        if session is None or not session.is_approved:
            return None
        return session

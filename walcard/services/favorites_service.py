# walcard/services/favorites_service.py
import itertools
import threading
from typing import Callable, Dict, Iterable, List

from walcard.domain import messages
from walcard.domain.errors import RemoteError
from walcard.domain.schemas import ActionResult, FavoriteProduct, FavoriteResult
from walcard.repos.favorite_repo import FavoriteRepo
from walcard.services.session_service import SessionService
from walcard.utils.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[bool], None]


class FavoritesService:
    """
    Ulubione produkty uzytkownika + pub/sub w obrebie procesu.

    Subskrybenci sa przypisani do product_id i dostaja nowy stan tylko po
    udanej zmianie na serwerze (bez optymistycznego przelaczania).
    """

    def __init__(self, favorite_repo: FavoriteRepo, session_service: SessionService):
        self.repo = favorite_repo
        self.session_service = session_service
        self._listeners: Dict[str, Dict[int, Listener]] = {}
        self._tokens = itertools.count()
        self._guard = threading.Lock()

    # =====================================================
    # pub/sub
    # =====================================================
    def subscribe(self, product_id: str, callback: Listener) -> Callable[[], None]:
        """Register ``callback`` for ``product_id``; returns the unsubscribe function."""
        token = next(self._tokens)
        with self._guard:
            self._listeners.setdefault(product_id, {})[token] = callback

        def unsubscribe() -> None:
            with self._guard:
                listeners = self._listeners.get(product_id)
                if listeners is None:
                    return
                listeners.pop(token, None)
                if not listeners:
                    del self._listeners[product_id]

        return unsubscribe

    def _notify(self, product_id: str, is_favorite: bool) -> None:
        with self._guard:
            listeners = list(self._listeners.get(product_id, {}).values())

        for callback in listeners:
            try:
                callback(is_favorite)
            except Exception:
                logger.exception(f"Favorite listener for {product_id} failed")

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_to_favorites(self, product_id: str) -> FavoriteResult:
        user = self.session_service.get_active_user()
        if not user:
            return FavoriteResult(success=False, message=messages.LOGIN_REQUIRED)

        try:
            self.repo.add(user.user_id, product_id)
        except RemoteError as e:
            logger.error(f"Error adding {product_id} to favorites: {e}")
            return FavoriteResult(success=False, message=messages.FAVORITE_ADD_FAILED)

        self._notify(product_id, True)
        return FavoriteResult(success=True, message=messages.FAVORITE_ADDED, is_favorite=True)

    def remove_from_favorites(self, product_id: str) -> FavoriteResult:
        user = self.session_service.get_active_user()
        if not user:
            return FavoriteResult(success=False, message=messages.LOGIN_REQUIRED)

        try:
            self.repo.remove(user.user_id, product_id)
        except RemoteError as e:
            logger.error(f"Error removing {product_id} from favorites: {e}")
            return FavoriteResult(success=False, message=messages.FAVORITE_REMOVE_FAILED)

        self._notify(product_id, False)
        return FavoriteResult(success=True, message=messages.FAVORITE_REMOVED, is_favorite=False)

    def toggle_favorite(self, product_id: str) -> FavoriteResult:
        user = self.session_service.get_active_user()
        if not user:
            return FavoriteResult(success=False, message=messages.LOGIN_REQUIRED)

        logger.info(f"Toggling favorite status for product {product_id}")

        try:
            if self.repo.exists(user.user_id, product_id):
                self.repo.remove(user.user_id, product_id)
                is_favorite = False
            else:
                self.repo.add(user.user_id, product_id)
                is_favorite = True
        except RemoteError as e:
            logger.error(f"Error toggling favorite {product_id}: {e}")
            return FavoriteResult(success=False, message=messages.FAVORITE_TOGGLE_FAILED)

        self._notify(product_id, is_favorite)
        return FavoriteResult(
            success=True,
            message=messages.FAVORITE_ADDED if is_favorite else messages.FAVORITE_REMOVED,
            is_favorite=is_favorite,
        )

    def clear_all_favorites(self) -> ActionResult:
        user = self.session_service.get_active_user()
        if not user:
            return ActionResult(success=False, message=messages.LOGIN_REQUIRED)

        try:
            self.repo.clear(user.user_id)
        except RemoteError as e:
            logger.error(f"Error clearing favorites: {e}")
            return ActionResult(success=False, message=messages.FAVORITES_CLEAR_FAILED)

        logger.info(f"All favorites cleared for user {user.user_id}")
        return ActionResult(success=True, message=messages.FAVORITES_CLEARED)

    # =====================================================
    # QUERIES
    # =====================================================
    def is_favorite(self, product_id: str) -> bool:
        user = self.session_service.get_active_user()
        if not user:
            return False

        try:
            return self.repo.exists(user.user_id, product_id)
        except RemoteError as e:
            logger.error(f"Error checking favorite status of {product_id}: {e}")
            return False

    def get_favorite_statuses(self, product_ids: Iterable[str]) -> Dict[str, bool]:
        ids = list(product_ids)
        if not ids or not self.session_service.get_active_user():
            return {}
        return {pid: self.is_favorite(pid) for pid in ids}

    def get_favorites(self) -> List[FavoriteProduct]:
        user = self.session_service.get_active_user()
        if not user:
            logger.info("No current user for favorites")
            return []

        try:
            favorites = self.repo.list_for_user(user.user_id)
        except RemoteError as e:
            logger.error(f"Error loading favorites: {e}")
            return []

        logger.info(f"Loaded {len(favorites)} favorites")
        return favorites

    def get_favorites_count(self) -> int:
        user = self.session_service.get_active_user()
        if not user:
            return 0

        try:
            return self.repo.count(user.user_id)
        except RemoteError as e:
            logger.error(f"Error getting favorites count: {e}")
            return 0

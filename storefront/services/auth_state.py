# storefront/services/auth_state.py
from enum import Enum
from typing import Callable, List

from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AuthEvent(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"


Observer = Callable[[AuthEvent, "AuthState"], None]


class AuthState:
    """
    Stan logowania jednej sesji + synchroniczne powiadamianie obserwatorow.
    Przy wylogowaniu obserwatorzy dostaja LOGOUT, gdy dane logowania jeszcze sa,
    dopiero potem token jest usuwany.
    """

    def __init__(self):
        self.token: str | None = None
        self.actor_id: str | None = None
        self._observers: List[Observer] = []

    @property
    def is_authenticated(self) -> bool:
        return self.actor_id is not None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def login(self, token: str, actor_id: str) -> None:
        self.token = token
        self.actor_id = actor_id
        logger.info(f"Auth state: login {actor_id}")
        self._notify(AuthEvent.LOGIN)

    def restore(self, token: str, actor_id: str) -> None:
        """Odtworzenie istniejacego logowania (np. z tokenu w requescie), bez powiadamiania."""
        self.token = token
        self.actor_id = actor_id

    def logout(self) -> None:
        if not self.is_authenticated:
            return
        try:
            self._notify(AuthEvent.LOGOUT)
        finally:
            logger.info(f"Auth state: logout {self.actor_id}")
            self.token = None
            self.actor_id = None

    def _notify(self, event: AuthEvent) -> None:
        for observer in list(self._observers):
            observer(event, self)

from enum import Enum
from typing import Optional

from loguru import logger

from src.db.session import Store
from src.schemas.auth_schemas import UserIdentity
from src.services.auth_service import AuthClient, AuthEvent, Subscription
from src.utils.errors import StoreError

LOGIN_PATH = "/login"


class ViewState(str, Enum):
    CHECKING_AUTH = "checking-auth"
    LOADING_SETS = "loading-sets"
    LOADING = "loading"
    READY = "ready"
    BROWSING = "browsing"
    EMPTY = "empty"
    NOT_FOUND = "not-found"
    ERROR = "error"
    # Terminal: a página é abandonada
    REDIRECT = "redirect"


class ViewController:
    """
    Base dos controladores de página.

    Uso com escopo (a inscrição no stream de auth é sempre liberada):

        async with DashboardController(store, auth) as dashboard:
            await dashboard.mount(token)

    Cada carga recebe uma "geração"; respostas que chegam depois de um
    unmount() ou de uma carga mais nova são descartadas.
    """

    def __init__(self, store: Store, auth: AuthClient):
        self.store = store
        self.auth = auth
        self.state = ViewState.CHECKING_AUTH
        self.user: Optional[UserIdentity] = None
        self.redirect_to: Optional[str] = None
        self.error: Optional[StoreError] = None
        self._generation = 0
        self._unmounted = False
        self._subscription: Optional[Subscription] = None

    async def __aenter__(self):
        self._subscription = self.auth.on_auth_state_change(self._on_auth_change)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.unmount()

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def unmount(self):
        self._unmounted = True
        self._generation += 1
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def active(self) -> bool:
        """False depois de unmount() ou de um redirect: nenhuma resposta é mais aplicada."""
        return not self._unmounted and self.state != ViewState.REDIRECT

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return self.active and generation == self._generation

    def _set_state(self, state: ViewState):
        # redirect é terminal
        if self.state == ViewState.REDIRECT:
            return
        if state != self.state:
            logger.debug(f"{type(self).__name__}: {self.state.value} -> {state.value}")
        self.state = state

    @property
    def signed_in(self) -> bool:
        return self.user is not None and self.state != ViewState.REDIRECT

    def _redirect(self):
        self.redirect_to = LOGIN_PATH
        self._set_state(ViewState.REDIRECT)

    async def _check_auth(self, access_token: Optional[str], generation: int) -> Optional[UserIdentity]:
        self._set_state(ViewState.CHECKING_AUTH)
        try:
            user = await self.auth.get_user(access_token)
        except StoreError as e:
            logger.error(f"Auth error: {e}")
            user = None

        if not self._is_current(generation):
            return None
        if user is None:
            self._redirect()
            return None
        self.user = user
        return user

    def _on_auth_change(self, event: AuthEvent, user: Optional[UserIdentity]):
        if event != AuthEvent.SIGNED_OUT or self.user is None:
            return
        if user is None or user.id == self.user.id:
            self._generation += 1
            self._redirect()

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "user": self.user.model_dump() if self.user else None,
            "redirect_to": self.redirect_to,
            "error": str(self.error) if self.error else None,
        }

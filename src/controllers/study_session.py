import asyncio
from collections import Counter
from typing import Dict, List, Optional

from src.controllers.base import ViewController, ViewState
from src.db.session import Store
from src.schemas.flashcard_schemas import FlashcardRead
from src.schemas.study_set_schemas import StudySetRead
from src.services.auth_service import AuthClient
from src.services.flashcard_service import list_flashcards, toggle_star
from src.services.study_set_service import get_study_set
from src.utils.errors import NotFoundError
from src.utils.result import Result

# Atalhos do teclado da tela de estudo
KEY_BINDINGS = {
    " ": "flip",
    "Enter": "flip",
    "ArrowLeft": "previous",
    "ArrowRight": "next",
}


class StudySessionController(ViewController):
    """
    Estado da tela de estudo de um conjunto:
    checking-auth -> loading -> not-found | empty | browsing.

    current_card_index fica em [0, n) e dá a volta nas duas direções;
    is_flipped volta a False em qualquer navegação.
    """

    def __init__(self, store: Store, auth: AuthClient, study_set_id: str):
        super().__init__(store, auth)
        self.study_set_id = study_set_id
        self.study_set: Optional[StudySetRead] = None
        self.flashcards: List[FlashcardRead] = []
        self.current_card_index = 0
        self.is_flipped = False
        # No máximo um toggle em andamento por card; o lock some quando a fila esvazia
        self._star_locks: Dict[str, asyncio.Lock] = {}
        self._star_waiting: Counter = Counter()

    async def mount(self, access_token: Optional[str]) -> ViewState:
        generation = self._begin()
        user = await self._check_auth(access_token, generation)
        if user is None:
            return self.state

        self._set_state(ViewState.LOADING)
        set_result = await get_study_set(self.store, self.study_set_id)
        if not self._is_current(generation):
            return self.state
        if not set_result.ok:
            self.error = set_result.error
            if isinstance(set_result.error, NotFoundError):
                self._set_state(ViewState.NOT_FOUND)
            else:
                self._set_state(ViewState.ERROR)
            return self.state
        # Conjunto de outro usuário: tratado como inexistente
        if set_result.value.user_id != user.id:
            self._set_state(ViewState.NOT_FOUND)
            return self.state
        self.study_set = set_result.value

        cards_result = await list_flashcards(self.store, self.study_set_id, user.id)
        if not self._is_current(generation):
            return self.state
        if not cards_result.ok:
            self.error = cards_result.error
            self._set_state(ViewState.ERROR)
            return self.state

        self.error = None
        self.current_card_index = 0
        self.is_flipped = False
        self._apply_cards(cards_result.value)
        return self.state

    @property
    def card_count(self) -> int:
        return len(self.flashcards)

    @property
    def current_card(self) -> Optional[FlashcardRead]:
        if self.state != ViewState.BROWSING or not self.flashcards:
            return None
        return self.flashcards[self.current_card_index]

    @property
    def progress(self) -> str:
        if not self.flashcards:
            return ""
        return f"Card {self.current_card_index + 1} of {self.card_count}"

    def flip(self):
        self.is_flipped = not self.is_flipped

    def next(self):
        if self.card_count == 0:
            return
        self.is_flipped = False
        self.current_card_index = (self.current_card_index + 1) % self.card_count

    def previous(self):
        if self.card_count == 0:
            return
        self.is_flipped = False
        self.current_card_index = (self.current_card_index - 1 + self.card_count) % self.card_count

    def handle_key(self, key: str) -> bool:
        action = KEY_BINDINGS.get(key)
        if action is None:
            return False
        getattr(self, action)()
        return True

    async def toggle_star(self) -> Result[bool]:
        card = self.current_card
        if card is None or not self.signed_in:
            return Result.failure(NotFoundError("no card is being displayed", operation="toggle_star"))

        lock = self._star_locks.setdefault(card.id, asyncio.Lock())
        self._star_waiting[card.id] += 1
        try:
            async with lock:
                result = await toggle_star(self.store, self.user.id, card.id)
                # Desmontado ou redirecionado durante o toggle: sem recarga
                if result.ok and self.active:
                    await self._reload_cards()
        finally:
            self._star_waiting[card.id] -= 1
            if not self._star_waiting[card.id]:
                del self._star_waiting[card.id]
                del self._star_locks[card.id]
        return result

    async def _reload_cards(self):
        generation = self._begin()
        result = await list_flashcards(self.store, self.study_set_id, self.user.id)
        if not self._is_current(generation) or not result.ok:
            return
        self._apply_cards(result.value)

    def _apply_cards(self, cards: List[FlashcardRead]):
        self.flashcards = cards
        if not cards:
            self.current_card_index = 0
            self.is_flipped = False
            self._set_state(ViewState.EMPTY)
            return
        # Recarga mantém o card atual (ou o último, se a lista encolheu)
        self.current_card_index = min(self.current_card_index, len(cards) - 1)
        self._set_state(ViewState.BROWSING)

    def snapshot(self) -> dict:
        data = super().snapshot()
        data.update({
            "study_set": self.study_set.model_dump(mode="json") if self.study_set else None,
            "flashcards": [c.model_dump(mode="json") for c in self.flashcards],
            "current_card_index": self.current_card_index,
            "is_flipped": self.is_flipped,
            "progress": self.progress,
        })
        return data

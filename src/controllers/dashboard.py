import asyncio
from typing import List, Optional

from src.controllers.base import ViewController, ViewState
from src.db.session import Store
from src.schemas.study_set_schemas import StudySetRead
from src.services.auth_service import AuthClient
from src.services import study_set_service
from src.utils.errors import AuthenticationError, NotFoundError
from src.utils.result import Result


class DashboardController(ViewController):
    """checking-auth -> loading-sets -> ready | error (ou redirect)."""

    def __init__(self, store: Store, auth: AuthClient):
        super().__init__(store, auth)
        self.study_sets: List[StudySetRead] = []
        # Mutação + recarga andam juntas, uma de cada vez
        self._mutation_lock = asyncio.Lock()

    async def mount(self, access_token: Optional[str]) -> ViewState:
        generation = self._begin()
        user = await self._check_auth(access_token, generation)
        if user is None:
            return self.state
        await self._load_sets(generation)
        return self.state

    async def refresh(self) -> ViewState:
        if not self.signed_in:
            return self.state
        async with self._mutation_lock:
            if self.active:
                await self._load_sets(self._begin())
        return self.state

    async def create_study_set(self, title: str, description: Optional[str] = None) -> Result[StudySetRead]:
        if not self.signed_in:
            return Result.failure(AuthenticationError("not signed in", operation="create_study_set"))
        async with self._mutation_lock:
            result = await study_set_service.create_study_set(self.store, self.user.id, title, description)
            # Desmontado ou redirecionado durante a mutação: sem recarga
            if result.ok and self.active:
                await self._load_sets(self._begin())
        return result

    async def delete_study_set(self, study_set_id: str) -> Result[bool]:
        if not self.signed_in:
            return Result.failure(AuthenticationError("not signed in", operation="delete_study_set"))
        async with self._mutation_lock:
            found = await study_set_service.get_study_set(self.store, study_set_id)
            if not found.ok:
                return Result.failure(found.error)
            # Conjunto de outro usuário: para este dashboard ele não existe
            if found.value.user_id != self.user.id:
                return Result.failure(NotFoundError(
                    f"study set {study_set_id} does not exist", operation="delete_study_set"
                ))
            result = await study_set_service.delete_study_set(self.store, study_set_id)
            if self.active:
                await self._load_sets(self._begin())
        return result

    async def _load_sets(self, generation: int):
        self._set_state(ViewState.LOADING_SETS)
        result = await study_set_service.list_study_sets(self.store, self.user.id)
        if not self._is_current(generation):
            return

        if result.ok:
            self.study_sets = result.value
            self.error = None
            self._set_state(ViewState.READY)
        else:
            self.study_sets = []
            self.error = result.error
            self._set_state(ViewState.ERROR)

    def snapshot(self) -> dict:
        data = super().snapshot()
        data["study_sets"] = [s.model_dump(mode="json") for s in self.study_sets]
        return data

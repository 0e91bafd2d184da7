from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import APIRouter, FastAPI, HTTPException, status

from src.api.dependencies import (
    AccessToken, AuthDep, CurrentUser, OptionalToken, StoreDep, unwrap_or_raise
)
from src.controllers.dashboard import DashboardController
from src.controllers.study_session import StudySessionController
from src.db.session import Store
from src.schemas.auth_schemas import AuthToken, Credentials, UserIdentity
from src.schemas.flashcard_schemas import CreateFlashcardRequest, FlashcardRead, StarResponse
from src.schemas.study_set_schemas import CreateStudySetRequest, StudySetRead
from src.services.auth_service import AuthClient
from src.services import study_set_service
from src.services.flashcard_service import create_flashcard, list_flashcards, toggle_star
from src.utils.config import settings
from src.utils.logging_config import configure_logging

router = APIRouter()


@router.get("/")
def read_root():
    return {"status": "Flashcards API is running 🚀"}

# --- Auth ---

@router.post("/api/auth/signup", response_model=UserIdentity, status_code=status.HTTP_201_CREATED)
async def signup(credentials: Credentials, auth: AuthDep):
    return unwrap_or_raise(await auth.sign_up(credentials.email, credentials.password))

@router.post("/api/auth/login", response_model=AuthToken)
async def login(credentials: Credentials, auth: AuthDep):
    return unwrap_or_raise(await auth.sign_in(credentials.email, credentials.password))

@router.post("/api/auth/logout")
async def logout(token: AccessToken, auth: AuthDep):
    return {"signed_out": unwrap_or_raise(await auth.sign_out(token))}

@router.get("/api/auth/me", response_model=UserIdentity)
async def me(user: CurrentUser):
    return user

# --- Páginas (estado dos controladores) ---

@router.get("/api/dashboard")
async def dashboard(token: OptionalToken, store: StoreDep, auth: AuthDep):
    """
    Estado do dashboard. Sem sessão válida o estado é "redirect"
    e redirect_to aponta para o login.
    """
    async with DashboardController(store, auth) as controller:
        await controller.mount(token)
        return controller.snapshot()

@router.get("/api/study-sets/{study_set_id}/study")
async def study_view(study_set_id: str, token: OptionalToken, store: StoreDep, auth: AuthDep):
    async with StudySessionController(store, auth, study_set_id) as controller:
        await controller.mount(token)
        return controller.snapshot()

# --- Conjuntos ---

async def _owned_study_set(store: Store, study_set_id: str, user: UserIdentity) -> StudySetRead:
    study_set = unwrap_or_raise(await study_set_service.get_study_set(store, study_set_id))
    if study_set.user_id != user.id:
        raise HTTPException(status_code=404, detail=f"study set {study_set_id} does not exist")
    return study_set

@router.get("/api/study-sets", response_model=List[StudySetRead])
async def read_study_sets(user: CurrentUser, store: StoreDep):
    return unwrap_or_raise(await study_set_service.list_study_sets(store, user.id))

@router.post("/api/study-sets", response_model=StudySetRead, status_code=status.HTTP_201_CREATED)
async def add_study_set(request: CreateStudySetRequest, user: CurrentUser, store: StoreDep):
    result = await study_set_service.create_study_set(store, user.id, request.title, request.description)
    return unwrap_or_raise(result)

@router.get("/api/study-sets/{study_set_id}", response_model=StudySetRead)
async def read_study_set(study_set_id: str, user: CurrentUser, store: StoreDep):
    return await _owned_study_set(store, study_set_id, user)

@router.delete("/api/study-sets/{study_set_id}")
async def remove_study_set(study_set_id: str, user: CurrentUser, store: StoreDep):
    await _owned_study_set(store, study_set_id, user)
    return {"deleted": unwrap_or_raise(await study_set_service.delete_study_set(store, study_set_id))}

# --- Cards ---

@router.get("/api/study-sets/{study_set_id}/flashcards", response_model=List[FlashcardRead])
async def read_flashcards(study_set_id: str, user: CurrentUser, store: StoreDep):
    await _owned_study_set(store, study_set_id, user)
    return unwrap_or_raise(await list_flashcards(store, study_set_id, user.id))

@router.post(
    "/api/study-sets/{study_set_id}/flashcards",
    response_model=FlashcardRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_flashcard(study_set_id: str, request: CreateFlashcardRequest, user: CurrentUser, store: StoreDep):
    await _owned_study_set(store, study_set_id, user)
    result = await create_flashcard(store, study_set_id, request.term, request.definition, request.position)
    return unwrap_or_raise(result)

@router.post("/api/flashcards/{flashcard_id}/star", response_model=StarResponse)
async def star_flashcard(flashcard_id: str, user: CurrentUser, store: StoreDep):
    result = await toggle_star(store, user.id, flashcard_id)
    return unwrap_or_raise(result.map(
        lambda is_starred: StarResponse(flashcard_id=flashcard_id, is_starred=is_starred)
    ))


def create_app(database_url: Optional[str] = None) -> FastAPI:
    # Store e AuthClient nascem e morrem com a aplicação
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL)
        store = Store(database_url).connect()
        app.state.store = store
        app.state.auth = AuthClient(store)
        try:
            yield
        finally:
            store.dispose()

    app = FastAPI(title="Flashcards API", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()

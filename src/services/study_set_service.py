from typing import List, Optional
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, func

from src.db.session import Store
from src.models.study_set import StudySet
from src.models.flashcard import Flashcard
from src.models.starred_flashcard import StarredFlashcard
from src.schemas.study_set_schemas import StudySetRead
from src.utils.errors import ConstraintError, NotFoundError, StoreError
from src.utils.result import Result, store_failure


def count_flashcards(session: Session, study_set_id: str) -> int:
    statement = select(func.count(Flashcard.id)).where(Flashcard.study_set_id == study_set_id)
    return session.exec(statement).one()


def _with_count(session: Session, study_set: StudySet) -> StudySetRead:
    # A contagem não é armazenada: uma consulta de count por conjunto
    return StudySetRead(
        **study_set.model_dump(),
        flashcard_count=count_flashcards(session, study_set.id),
    )


async def list_study_sets(store: Store, user_id: str) -> Result[List[StudySetRead]]:
    """
    Conjuntos do usuário, o atualizado mais recentemente primeiro.
    Usuário sem conjuntos -> Result com lista vazia (não é erro).
    """
    try:
        with store.session() as session:
            statement = (
                select(StudySet)
                .where(StudySet.user_id == user_id)
                .order_by(StudySet.updated_at.desc(), StudySet.created_at.desc())
            )
            study_sets = session.exec(statement).all()
            return Result.success([_with_count(session, s) for s in study_sets])
    except (StoreError, SQLAlchemyError) as e:
        return store_failure("list_study_sets", e)


async def get_study_set(store: Store, study_set_id: str) -> Result[StudySetRead]:
    try:
        with store.session() as session:
            study_set = session.get(StudySet, study_set_id)
            if study_set is None:
                raise NotFoundError(f"study set {study_set_id} does not exist")
            return Result.success(_with_count(session, study_set))
    except (StoreError, SQLAlchemyError) as e:
        return store_failure("get_study_set", e)


async def create_study_set(
    store: Store, user_id: str, title: str, description: Optional[str] = None
) -> Result[StudySetRead]:
    try:
        if not title or not title.strip():
            raise ConstraintError("title must not be empty")

        with store.session() as session:
            study_set = StudySet(
                user_id=user_id,
                title=title.strip(),
                description=description.strip() if description and description.strip() else None,
            )
            session.add(study_set)
            session.commit()
            session.refresh(study_set)
            logger.info(f"Study set created: {study_set.title} (ID: {study_set.id})")
            # Recém-criado: ainda não tem cards
            return Result.success(StudySetRead(**study_set.model_dump(), flashcard_count=0))
    except (StoreError, SQLAlchemyError) as e:
        return store_failure("create_study_set", e)


async def delete_study_set(store: Store, study_set_id: str) -> Result[bool]:
    """
    Apaga favoritos, cards e o conjunto numa única transação.
    Se qualquer passo falhar nada é apagado.
    """
    try:
        with store.session() as session:
            study_set = session.get(StudySet, study_set_id)
            if study_set is None:
                raise NotFoundError(f"study set {study_set_id} does not exist")

            cards = session.exec(
                select(Flashcard).where(Flashcard.study_set_id == study_set_id)
            ).all()
            card_ids = [card.id for card in cards]

            if card_ids:
                stars = session.exec(
                    select(StarredFlashcard).where(StarredFlashcard.flashcard_id.in_(card_ids))
                ).all()
                for star in stars:
                    session.delete(star)
                session.flush()

            for card in cards:
                session.delete(card)
            session.flush()

            session.delete(study_set)
            session.commit()
            logger.info(f"Study set deleted: {study_set_id} ({len(card_ids)} cards)")
            return Result.success(True)
    except (StoreError, SQLAlchemyError) as e:
        return store_failure("delete_study_set", e)

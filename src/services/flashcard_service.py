from typing import List, Optional
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select, func

from src.db.session import Store
from src.models.study_set import StudySet, utcnow
from src.models.flashcard import Flashcard
from src.models.starred_flashcard import StarredFlashcard
from src.schemas.flashcard_schemas import FlashcardRead
from src.utils.errors import ConstraintError, NotFoundError, StoreError
from src.utils.result import Result, store_failure


async def list_flashcards(
    store: Store, study_set_id: str, user_id: Optional[str] = None
) -> Result[List[FlashcardRead]]:
    """
    Cards do conjunto em ordem de posição.

    Com user_id, uma segunda consulta busca os favoritos daquele usuário e
    cada card recebe is_starred. Sem user_id, is_starred fica None.
    """
    try:
        with store.session() as session:
            cards = session.exec(
                select(Flashcard)
                .where(Flashcard.study_set_id == study_set_id)
                .order_by(Flashcard.position.asc())
            ).all()

            if user_id is None:
                return Result.success([FlashcardRead.model_validate(c) for c in cards])

            starred_ids = set(
                session.exec(
                    select(StarredFlashcard.flashcard_id).where(StarredFlashcard.user_id == user_id)
                ).all()
            )
            return Result.success([
                FlashcardRead(**c.model_dump(), is_starred=c.id in starred_ids)
                for c in cards
            ])
    except (StoreError, SQLAlchemyError) as e:
        return store_failure("list_flashcards", e)


async def create_flashcard(
    store: Store,
    study_set_id: str,
    term: str,
    definition: str,
    position: Optional[int] = None,
) -> Result[FlashcardRead]:
    """Sem posição explícita o card vai para o fim do conjunto."""
    try:
        if not term or not term.strip() or not definition or not definition.strip():
            raise ConstraintError("term and definition are required")

        with store.session() as session:
            study_set = session.get(StudySet, study_set_id)
            if study_set is None:
                raise NotFoundError(f"study set {study_set_id} does not exist")

            if position is None:
                last = session.exec(
                    select(func.max(Flashcard.position)).where(Flashcard.study_set_id == study_set_id)
                ).one()
                position = 0 if last is None else last + 1
            elif position < 0:
                raise ConstraintError("position must be >= 0")
            else:
                taken = session.exec(
                    select(Flashcard.id)
                    .where(Flashcard.study_set_id == study_set_id)
                    .where(Flashcard.position == position)
                ).first()
                if taken is not None:
                    raise ConstraintError(f"position {position} is already taken")

            card = Flashcard(
                study_set_id=study_set_id,
                term=term,
                definition=definition,
                position=position,
            )
            session.add(card)
            study_set.updated_at = utcnow()
            session.add(study_set)
            session.commit()
            session.refresh(card)
            logger.info(f"Flashcard created in {study_set_id} at position {position}")
            return Result.success(FlashcardRead.model_validate(card))
    except (StoreError, SQLAlchemyError) as e:
        return store_failure("create_flashcard", e)


async def toggle_star(store: Store, user_id: str, flashcard_id: str) -> Result[bool]:
    """
    Favorita/desfavorita numa única transação.
    True = agora favoritado, False = agora não favoritado.
    Para o comportamento de exceção use toggle_star(...).unwrap().
    """
    try:
        with store.session() as session:
            existing = session.get(StarredFlashcard, (user_id, flashcard_id))
            if existing is not None:
                session.delete(existing)
                session.commit()
                return Result.success(False)

            if session.get(Flashcard, flashcard_id) is None:
                raise NotFoundError(f"flashcard {flashcard_id} does not exist")

            session.add(StarredFlashcard(user_id=user_id, flashcard_id=flashcard_id))
            session.commit()
            return Result.success(True)
    except (StoreError, SQLAlchemyError) as e:
        return store_failure("toggle_star", e)

from datetime import datetime
from sqlmodel import SQLModel, Field

from src.models.study_set import utcnow


class StarredFlashcard(SQLModel, table=True):
    """Tabela de associação: existir a linha = favoritado por aquele usuário."""

    __tablename__ = "starred_flashcards"

    # PK composta garante no máximo uma linha por (usuário, card)
    user_id: str = Field(foreign_key="users.id", primary_key=True)
    flashcard_id: str = Field(foreign_key="flashcards.id", primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)

from datetime import datetime
from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship

from src.models.study_set import new_id, utcnow


class Flashcard(SQLModel, table=True):
    __tablename__ = "flashcards"
    # A posição define a ordem total dentro do conjunto
    __table_args__ = (UniqueConstraint("study_set_id", "position"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    study_set_id: str = Field(foreign_key="study_sets.id", index=True)
    term: str
    definition: str
    position: int
    created_at: datetime = Field(default_factory=utcnow)

    study_set: Optional["StudySet"] = Relationship(back_populates="cards")

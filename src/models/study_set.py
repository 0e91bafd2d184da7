import uuid
from datetime import datetime, timezone
from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StudySet(SQLModel, table=True):
    __tablename__ = "study_sets"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    title: str
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    # Ordena o dashboard (mais recente primeiro)
    updated_at: datetime = Field(default_factory=utcnow, index=True)

    cards: List["Flashcard"] = Relationship(back_populates="study_set")

from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional

# Input
class CreateStudySetRequest(BaseModel):
    title: str
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Title must not be empty")
        return v.strip()

# O conjunto que devolvemos (com a contagem calculada por request)
class StudySetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    flashcard_count: int = 0

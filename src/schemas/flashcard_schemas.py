from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional

# Input
class CreateFlashcardRequest(BaseModel):
    term: str
    definition: str
    position: Optional[int] = None

    @field_validator("term", "definition")
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError("Must not be empty")
        return v

    @field_validator("position")
    @classmethod
    def validate_position(cls, v):
        if v is not None and v < 0:
            raise ValueError("Position must be >= 0")
        return v

# O card que devolvemos para o Frontend (Output)
class FlashcardRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    study_set_id: str
    term: str
    definition: str
    position: int
    created_at: datetime
    # None quando a consulta não foi feita para um usuário
    is_starred: Optional[bool] = None

class StarResponse(BaseModel):
    flashcard_id: str
    is_starred: bool

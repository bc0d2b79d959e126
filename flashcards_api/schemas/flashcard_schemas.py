from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict

FlashcardSort = Literal["created_at", "front"]


# Flashcard ativo (aceito, editado ou manual)
class FlashcardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    front: str
    back: str
    source: str
    prompt: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int


class FlashcardListResponse(BaseModel):
    data: List[FlashcardResponse]
    pagination: Pagination

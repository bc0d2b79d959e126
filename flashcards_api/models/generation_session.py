import uuid
from typing import List, Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Relationship
from flashcards_api.utils.clock import UTCDateTime, utcnow


class GenerationSession(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)

    input_text: str
    # Guardado para detecção futura de sessões duplicadas
    input_text_hash: str = Field(index=True)
    model: Optional[str] = None

    generation_duration_ms: int = 0
    accepted_unedited_count: Optional[int] = None
    accepted_edited_count: Optional[int] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    candidates: List["Flashcard"] = Relationship(back_populates="session")

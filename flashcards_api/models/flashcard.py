import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Relationship
from flashcards_api.utils.clock import UTCDateTime, utcnow


class Flashcard(SQLModel, table=True):
    """
    Tabela única de flashcards. Um "candidato" é apenas uma linha com
    ai_session_id preenchido; ao ser aceito o vínculo é limpo (graduação).
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)

    # NULL => flashcard ativo, preenchido => candidato pendente
    ai_session_id: Optional[str] = Field(default=None, foreign_key="generationsession.id", index=True)
    source: str = "ai"  # "ai" ou "manual"

    front: str = Field(max_length=200)
    back: str = Field(max_length=500)
    model: Optional[str] = None
    prompt: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    # Soft delete (rejeitado)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    session: Optional["GenerationSession"] = Relationship(back_populates="candidates")

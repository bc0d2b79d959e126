import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from flashcards_api.utils.clock import UTCDateTime, utcnow


class EventLog(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)

    # ex: "generation_session_created", "candidate_actions_processed"
    event_type: str
    event_source: str = "ai"  # "ai" ou "manual"

    ai_session_id: Optional[str] = None
    flashcard_id: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

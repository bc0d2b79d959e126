from typing import Optional
from sqlalchemy.engine import Engine
from sqlmodel import Session
from flashcards_api.models.event_log import EventLog
from flashcards_api.utils.logger import get_logger

LOG = get_logger(__name__)


# Abre e fecha sessão própria; falhas nunca sobem para a requisição
def log_event(
    bind: Engine,
    user_id: str,
    event_type: str,
    event_source: str = "ai",
    ai_session_id: Optional[str] = None,
    flashcard_id: Optional[str] = None,
) -> None:
    try:
        with Session(bind) as session:
            session.add(EventLog(
                user_id=user_id,
                event_type=event_type,
                event_source=event_source,
                ai_session_id=ai_session_id,
                flashcard_id=flashcard_id,
            ))
            session.commit()
    except Exception as e:
        LOG.warning("event_log_write_failed", extra={"event_type": event_type, "error": str(e)})

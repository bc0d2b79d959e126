from datetime import timedelta
from typing import List, Optional
from sqlmodel import Session
from flashcards_api.models.flashcard import Flashcard
from flashcards_api.services.candidate_store import CandidateStore
from flashcards_api.utils.clock import utcnow
from flashcards_api.utils.config import settings
from flashcards_api.utils.errors import NotFoundError, ValidationError
from flashcards_api.utils.logger import get_logger

LOG = get_logger(__name__)


class CandidateQueryService:
    """Visões de leitura sobre candidatos pendentes, sempre do dono e sem soft-deletados."""

    def __init__(self, session: Session, owner_id: str):
        self.store = CandidateStore(session)
        self.owner_id = owner_id

    def get_session_candidates(self, session_id: str) -> List[Flashcard]:
        # Sessão inexistente ou de outro dono => NotFound (o cliente trata como lista vazia)
        if self.store.get_owned_session(session_id, self.owner_id) is None:
            raise NotFoundError("Session not found")
        return self.store.list_pending(self.owner_id, session_id=session_id)

    def get_all_pending_candidates(self) -> List[Flashcard]:
        return self.store.list_pending(self.owner_id)

    def get_other_pending_candidates(self, exclude_session_id: Optional[str] = None) -> List[Flashcard]:
        return self.store.list_pending(self.owner_id, exclude_session_id=exclude_session_id)

    # --- Manutenção: candidatos esquecidos além da janela de retenção ---

    def get_orphaned_candidates(self, older_than_days: Optional[int] = None) -> List[Flashcard]:
        return self.store.list_pending(self.owner_id, created_before=self._cutoff(older_than_days))

    def delete_orphaned(self, older_than_days: Optional[int] = None) -> int:
        rows = self.get_orphaned_candidates(older_than_days)
        if rows:
            self.store.soft_delete(rows)
        LOG.info("orphaned_candidates_deleted", extra={"count": len(rows)})
        return len(rows)

    def _cutoff(self, older_than_days: Optional[int]):
        if older_than_days is None:
            older_than_days = settings.ORPHAN_RETENTION_DAYS
        if older_than_days < 0:
            raise ValidationError("olderThanDays must be >= 0")
        return utcnow() - timedelta(days=older_than_days)

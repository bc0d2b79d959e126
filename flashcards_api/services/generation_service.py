"""
Generation Session Manager.

Uma sessão por pedido de geração: guarda o texto, o hash do texto, a
duração da geração e os contadores de aceite (mutados só pelo processador
de ações).
"""
import hashlib
from datetime import datetime
from dataclasses import dataclass
from typing import Callable, List, Optional
from sqlmodel import Session
from flashcards_api.models.flashcard import Flashcard
from flashcards_api.models.generation_session import GenerationSession
from flashcards_api.schemas.candidate_schemas import CandidateCreate
from flashcards_api.services import ai_generator
from flashcards_api.services.ai_generator import GenerationResult
from flashcards_api.services.candidate_store import CandidateStore
from flashcards_api.services.event_log_service import log_event
from flashcards_api.utils.clock import utcnow
from flashcards_api.utils.config import settings
from flashcards_api.utils.errors import UpstreamGenerationError
from flashcards_api.utils.logger import get_logger

LOG = get_logger(__name__)


def hash_input_text(text: str) -> str:
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()


@dataclass
class CreatedSession:
    session_id: str
    input_text_hash: str
    created_at: datetime


@dataclass
class GenerationOutcome:
    session_id: str
    input_text_hash: str
    candidates: List[Flashcard]


class GenerationSessionManager:
    def __init__(self, session: Session, generator: Optional[Callable[[str, str], GenerationResult]] = None):
        self.session = session
        self.store = CandidateStore(session)
        # Resolvido em tempo de chamada para permitir monkeypatch do módulo
        self._generator = generator

    def create_session(self, owner_id: str, input_text: str, model: str) -> CreatedSession:
        input_text_hash = hash_input_text(input_text)
        row = self.store.add_session(GenerationSession(
            user_id=owner_id,
            input_text=input_text,
            input_text_hash=input_text_hash,
            model=model,
            generation_duration_ms=0,
        ))
        return CreatedSession(session_id=row.id, input_text_hash=input_text_hash, created_at=row.created_at)

    def find_duplicate_session(self, owner_id: str, input_text: str) -> Optional[str]:
        """
        Sessão anterior com o mesmo hash de texto. A política de supressão ainda
        não foi decidida: só consulta quando SUPPRESS_DUPLICATE_SESSIONS está ligado.
        """
        if not settings.SUPPRESS_DUPLICATE_SESSIONS:
            return None
        row = self.store.find_session_by_hash(owner_id, hash_input_text(input_text))
        return row.id if row else None

    def record_candidates(self, session_id: str, owner_id: str, model: str, candidates: List[CandidateCreate]) -> List[Flashcard]:
        now = utcnow()
        rows = [
            Flashcard(
                user_id=owner_id,
                ai_session_id=session_id,
                source="ai",
                front=c.front,
                back=c.back,
                prompt=c.prompt,
                model=model,
                created_at=now,
                updated_at=now,
            )
            for c in candidates
        ]
        rows = self.store.add_candidates(rows)
        LOG.info("candidates_recorded", extra={"session_id": session_id, "count": len(rows)})
        return rows

    def update_duration(self, session_id: str, duration_ms: int) -> None:
        self.store.update_session(session_id, generation_duration_ms=duration_ms)

    # ---------------------------------------------------------
    # Orquestração completa: sessão -> IA -> candidatos
    # ---------------------------------------------------------

    def create_and_generate(self, owner_id: str, input_text: str, model: Optional[str] = None) -> GenerationOutcome:
        model = model or settings.DEFAULT_MODEL
        bind = self.session.get_bind()

        duplicate_id = self.find_duplicate_session(owner_id, input_text)
        if duplicate_id:
            existing = self.store.list_pending(owner_id, session_id=duplicate_id)
            if existing:
                LOG.info("duplicate_session_reused", extra={"session_id": duplicate_id})
                row = self.store.get_owned_session(duplicate_id, owner_id)
                return GenerationOutcome(duplicate_id, row.input_text_hash, existing)

        created = self.create_session(owner_id, input_text, model)

        generator = self._generator or ai_generator.generate
        try:
            result = generator(input_text, model)
        except UpstreamGenerationError as e:
            # A sessão fica órfã (sem candidatos), sem limpeza automática
            LOG.error("generation_failed", extra={"session_id": created.session_id, "error": e.message})
            log_event(bind, owner_id, "generation_session_failed", ai_session_id=created.session_id)
            raise

        rows = self.record_candidates(created.session_id, owner_id, model, result.candidates)
        self.update_duration(created.session_id, result.duration_ms)

        log_event(bind, owner_id, "generation_session_created", ai_session_id=created.session_id)
        LOG.info("generation_session_created", extra={
            "session_id": created.session_id,
            "candidate_count": len(rows),
            "duration_ms": result.duration_ms,
        })
        return GenerationOutcome(created.session_id, created.input_text_hash, rows)

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from flashcards_api.schemas.candidate_schemas import CandidateResponse
from flashcards_api.utils.config import settings
from flashcards_api.utils.errors import CandidateServiceError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

LAST_SESSION_KEY = "lastSessionId"


class LastSessionStore:
    """
    Armazenamento durável do cliente: um único campo, o id da última sessão.
    Arquivo ausente ou corrompido equivale a "nenhuma sessão".
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.CLIENT_STATE_PATH)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable client state {self.path}: {e}")
            return None
        value = data.get(LAST_SESSION_KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) and value else None

    def save(self, session_id: str) -> None:
        self.path.write_text(json.dumps({LAST_SESSION_KEY: session_id}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class ReviewContext:
    """Estado explícito da sessão corrente, passado para o controller."""

    def __init__(self, store: LastSessionStore, session_id: Optional[str] = None, load_error: Optional[str] = None):
        self.store = store
        self.session_id = session_id
        # Motivo pelo qual a sessão salva não pôde ser carregada
        self.load_error = load_error

    @classmethod
    def initialize(cls, store: LastSessionStore, api) -> Tuple["ReviewContext", List[CandidateResponse]]:
        """
        Lê o id salvo e confirma no servidor que a sessão ainda tem candidatos.
        Lista vazia => id obsoleto, descartado. Id inválido também é descartado;
        falha do servidor mantém o id salvo para a próxima carga. Nunca propaga.
        """
        session_id = store.load()
        if not session_id:
            return cls(store), []
        try:
            candidates = api.get_session_candidates(session_id)
        except (ValidationError, NotFoundError) as e:
            logger.info(f"Discarding invalid session id {session_id}: {e.message}")
            store.clear()
            return cls(store, load_error=e.message), []
        except CandidateServiceError as e:
            logger.warning(f"Could not load session {session_id}: {e.message}")
            return cls(store, load_error=e.message), []
        if not candidates:
            logger.info(f"Discarding stale session id {session_id}")
            store.clear()
            return cls(store), []
        return cls(store, session_id), candidates

    def activate(self, session_id: str) -> None:
        self.session_id = session_id
        self.store.save(session_id)

    def reset(self) -> None:
        self.session_id = None
        self.store.clear()

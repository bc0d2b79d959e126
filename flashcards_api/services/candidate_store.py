"""
Candidate Store: primitivas de leitura/escrita sobre a tabela de flashcards.

Não contém regra de negócio. Toda consulta é filtrada pelo dono; erros do
SQLAlchemy viram StorageError.
"""
from datetime import datetime
from functools import wraps
from typing import Iterable, List, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, col
from flashcards_api.models.flashcard import Flashcard
from flashcards_api.models.generation_session import GenerationSession
from flashcards_api.utils.clock import utcnow
from flashcards_api.utils.errors import StorageError


def _storage_errors(fn):
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"{fn.__name__} failed: {e.__class__.__name__}") from e
    return wrapper


class CandidateStore:
    def __init__(self, session: Session):
        self.session = session

    # --- Sessões de geração ---

    @_storage_errors
    def add_session(self, row: GenerationSession) -> GenerationSession:
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    @_storage_errors
    def get_owned_session(self, session_id: str, owner_id: str) -> Optional[GenerationSession]:
        statement = (
            select(GenerationSession)
            .where(GenerationSession.id == session_id)
            .where(GenerationSession.user_id == owner_id)
        )
        return self.session.exec(statement).first()

    @_storage_errors
    def get_session_row(self, session_id: str) -> Optional[GenerationSession]:
        return self.session.get(GenerationSession, session_id)

    @_storage_errors
    def find_session_by_hash(self, owner_id: str, input_text_hash: str) -> Optional[GenerationSession]:
        statement = (
            select(GenerationSession)
            .where(GenerationSession.user_id == owner_id)
            .where(GenerationSession.input_text_hash == input_text_hash)
            .order_by(col(GenerationSession.created_at).desc())
        )
        return self.session.exec(statement).first()

    @_storage_errors
    def update_session(self, session_id: str, commit: bool = True, **fields) -> None:
        row = self.session.get(GenerationSession, session_id)
        if row is None:
            raise StorageError(f"Generation session {session_id} vanished during update")
        for key, value in fields.items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        self.session.add(row)
        if commit:
            self.session.commit()

    # --- Candidatos ---

    @_storage_errors
    def add_candidates(self, rows: List[Flashcard]) -> List[Flashcard]:
        self.session.add_all(rows)
        self.session.commit()
        for row in rows:
            self.session.refresh(row)
        return rows

    @_storage_errors
    def find_session_candidates(self, ids: Iterable[str], session_id: str, owner_id: str) -> List[Flashcard]:
        statement = (
            select(Flashcard)
            .where(col(Flashcard.id).in_(list(ids)))
            .where(Flashcard.ai_session_id == session_id)
            .where(Flashcard.user_id == owner_id)
            .where(col(Flashcard.deleted_at).is_(None))
        )
        return list(self.session.exec(statement).all())

    @_storage_errors
    def list_pending(
        self,
        owner_id: str,
        session_id: Optional[str] = None,
        exclude_session_id: Optional[str] = None,
        created_before: Optional[datetime] = None,
    ) -> List[Flashcard]:
        statement = (
            select(Flashcard)
            .where(Flashcard.user_id == owner_id)
            .where(col(Flashcard.ai_session_id).is_not(None))
            .where(col(Flashcard.deleted_at).is_(None))
        )
        if session_id is not None:
            statement = statement.where(Flashcard.ai_session_id == session_id)
        if exclude_session_id is not None:
            statement = statement.where(Flashcard.ai_session_id != exclude_session_id)
        if created_before is not None:
            statement = statement.where(Flashcard.created_at < created_before)
        statement = statement.order_by(col(Flashcard.created_at).asc(), col(Flashcard.id).asc())
        return list(self.session.exec(statement).all())

    @_storage_errors
    def list_active(
        self,
        owner_id: str,
        search: Optional[str] = None,
        sort: str = "created_at",
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Flashcard], int]:
        # Ativo = graduado (sem sessão) e não rejeitado
        filters = [
            Flashcard.user_id == owner_id,
            col(Flashcard.ai_session_id).is_(None),
            col(Flashcard.deleted_at).is_(None),
        ]
        if search:
            filters.append(or_(
                col(Flashcard.front).icontains(search, autoescape=True),
                col(Flashcard.back).icontains(search, autoescape=True),
            ))
        total = self.session.exec(select(func.count()).select_from(Flashcard).where(*filters)).one()

        if sort == "front":
            order = (col(Flashcard.front).asc(), col(Flashcard.id).asc())
        else:
            order = (col(Flashcard.created_at).desc(), col(Flashcard.id).asc())
        statement = select(Flashcard).where(*filters).order_by(*order).offset(offset).limit(limit)
        return list(self.session.exec(statement).all()), total

    @_storage_errors
    def graduate(self, rows: List[Flashcard], commit: bool = True) -> None:
        now = utcnow()
        for row in rows:
            row.ai_session_id = None
            row.updated_at = now
            self.session.add(row)
        if commit:
            self.session.commit()

    @_storage_errors
    def graduate_edited(self, row: Flashcard, front: str, back: str, commit: bool = True) -> None:
        row.ai_session_id = None
        row.front = front
        row.back = back
        row.updated_at = utcnow()
        self.session.add(row)
        if commit:
            self.session.commit()

    @_storage_errors
    def soft_delete(self, rows: List[Flashcard], commit: bool = True) -> None:
        now = utcnow()
        for row in rows:
            row.deleted_at = now
            self.session.add(row)
        if commit:
            self.session.commit()

    @_storage_errors
    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

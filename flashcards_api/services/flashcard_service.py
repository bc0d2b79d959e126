from typing import Optional
from sqlmodel import Session
from flashcards_api.schemas.flashcard_schemas import FlashcardListResponse, FlashcardResponse, Pagination
from flashcards_api.services.candidate_store import CandidateStore


class FlashcardService:
    """Leitura dos flashcards ativos do dono: sem candidatos pendentes e sem rejeitados."""

    def __init__(self, session: Session, owner_id: str):
        self.store = CandidateStore(session)
        self.owner_id = owner_id

    def list_flashcards(
        self,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = "created_at",
    ) -> FlashcardListResponse:
        search = search.strip() if search else None
        rows, total = self.store.list_active(
            self.owner_id,
            search=search or None,
            sort=sort,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return FlashcardListResponse(
            data=[FlashcardResponse.model_validate(r) for r in rows],
            pagination=Pagination(page=page, limit=limit, total=total),
        )

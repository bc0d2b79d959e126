from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from flashcards_api.utils.config import settings

FRONT_MAX_LENGTH = 200
BACK_MAX_LENGTH = 500


# O card gerado pela IA, antes de ser persistido
class CandidateCreate(BaseModel):
    front: str = Field(min_length=1, max_length=FRONT_MAX_LENGTH)
    back: str = Field(min_length=1, max_length=BACK_MAX_LENGTH)
    prompt: Optional[str] = None


# O candidato que devolvemos para o cliente (Output)
class CandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    front: str
    back: str
    prompt: Optional[str] = None
    ai_session_id: Optional[str] = None
    created_at: Optional[datetime] = None


class ActionItem(BaseModel):
    candidate_id: str
    action: Literal["accept", "edit", "reject"]
    # Obrigatórios para "edit"; a checagem fica no processador para falhar o lote inteiro
    edited_front: Optional[str] = Field(default=None, max_length=FRONT_MAX_LENGTH)
    edited_back: Optional[str] = Field(default=None, max_length=BACK_MAX_LENGTH)


class CandidateActionCommand(BaseModel):
    actions: List[ActionItem] = Field(min_length=1)

    @field_validator("actions")
    @classmethod
    def check_batch(cls, actions: List[ActionItem]) -> List[ActionItem]:
        if len(actions) > settings.MAX_ACTIONS_PER_BATCH:
            raise ValueError(f"at most {settings.MAX_ACTIONS_PER_BATCH} actions per request")
        ids = [a.candidate_id for a in actions]
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate candidate_id in actions")
        return actions


class ActionItemResult(BaseModel):
    candidate_id: str
    action: Literal["accept", "edit", "reject"]
    status: Literal["applied", "failed"]


class CandidateActionResponse(BaseModel):
    accepted: List[str] = []
    edited: List[str] = []
    rejected: List[str] = []
    # Resultado por item, na ordem do pedido
    items: List[ActionItemResult] = []

    def applied_ids(self) -> List[str]:
        return [i.candidate_id for i in self.items if i.status == "applied"]


class OrphanedCandidatesResponse(BaseModel):
    count: int
    candidates: List[CandidateResponse]


class DeleteOrphanedResponse(BaseModel):
    deleted: int
    message: str

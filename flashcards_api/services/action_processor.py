"""
Candidate Action Processor.

Valida e aplica um lote de ações accept/edit/reject sobre os candidatos de
uma sessão e atualiza os contadores da sessão.

Ordem das checagens: sessão do dono -> todos os candidatos encontrados ->
campos de edição presentes. Qualquer falha aqui bloqueia o lote inteiro
antes da primeira escrita.

Com ATOMIC_ACTIONS os três grupos (accept, edit, reject) e os contadores
são gravados numa única transação. Sem ela, cada grupo faz commit próprio
e uma falha depois de um grupo já gravado vira PartialActionError com o
resultado por item, para o cliente reconciliar com precisão.
"""
from typing import Dict, List, Optional, Tuple
from sqlmodel import Session
from flashcards_api.models.flashcard import Flashcard
from flashcards_api.schemas.candidate_schemas import (
    ActionItem,
    ActionItemResult,
    CandidateActionCommand,
    CandidateActionResponse,
)
from flashcards_api.services.candidate_store import CandidateStore
from flashcards_api.services.event_log_service import log_event
from flashcards_api.utils.config import settings
from flashcards_api.utils.errors import NotFoundError, PartialActionError, StorageError, ValidationError
from flashcards_api.utils.logger import get_logger

LOG = get_logger(__name__)


class CandidateActionProcessor:
    def __init__(self, session: Session, atomic: Optional[bool] = None, counter_policy: Optional[str] = None):
        self.session = session
        self.store = CandidateStore(session)
        self.atomic = settings.ATOMIC_ACTIONS if atomic is None else atomic
        self.counter_policy = counter_policy or settings.COUNTER_POLICY

    def process_actions(self, session_id: str, owner_id: str, command: CandidateActionCommand) -> CandidateActionResponse:
        # 1. Sessão existe e pertence ao dono
        generation_session = self.store.get_owned_session(session_id, owner_id)
        if generation_session is None:
            raise NotFoundError("Session not found")

        # 2. Todos os candidatos pedidos precisam estar pendentes nesta sessão
        candidate_ids = [a.candidate_id for a in command.actions]
        rows = self.store.find_session_candidates(candidate_ids, session_id, owner_id)
        if len(rows) != len(candidate_ids):
            found = {r.id for r in rows}
            missing = [cid for cid in candidate_ids if cid not in found]
            raise NotFoundError(f"Candidates not found: {', '.join(missing)}", missing_ids=missing)

        # 3. Particiona por tipo (edit sem campos falha o lote todo)
        accepts, edits, rejects = self._partition(command.actions)

        # 4/5. Aplica
        by_id: Dict[str, Flashcard] = {r.id: r for r in rows}
        if self.atomic:
            result = self._apply_atomic(generation_session.id, by_id, accepts, edits, rejects, command.actions)
        else:
            result = self._apply_grouped(generation_session.id, by_id, accepts, edits, rejects, command.actions)

        log_event(self.session.get_bind(), owner_id, "candidate_actions_processed", ai_session_id=session_id)
        LOG.info("candidate_actions_processed", extra={
            "session_id": session_id,
            "accepted": len(result.accepted),
            "edited": len(result.edited),
            "rejected": len(result.rejected),
        })
        return result

    @staticmethod
    def _partition(actions: List[ActionItem]) -> Tuple[List[ActionItem], List[ActionItem], List[ActionItem]]:
        accepts, edits, rejects = [], [], []
        for action in actions:
            if action.action == "accept":
                accepts.append(action)
            elif action.action == "edit":
                if not (action.edited_front or "").strip() or not (action.edited_back or "").strip():
                    raise ValidationError(
                        f"Edit action for candidate {action.candidate_id} is missing edited_front or edited_back",
                        details={"candidate_id": action.candidate_id},
                    )
                edits.append(action)
            else:
                rejects.append(action)
        return accepts, edits, rejects

    def _counter_fields(self, session_id: str, accepted: int, edited: int) -> dict:
        if self.counter_policy == "accumulate":
            row = self.store.get_session_row(session_id)
            accepted += row.accepted_unedited_count or 0
            edited += row.accepted_edited_count or 0
        return {"accepted_unedited_count": accepted, "accepted_edited_count": edited}

    def _apply_atomic(self, session_id, by_id, accepts, edits, rejects, actions) -> CandidateActionResponse:
        try:
            if accepts:
                self.store.graduate([by_id[a.candidate_id] for a in accepts], commit=False)
            for a in edits:
                self.store.graduate_edited(by_id[a.candidate_id], a.edited_front.strip(), a.edited_back.strip(), commit=False)
            if rejects:
                self.store.soft_delete([by_id[a.candidate_id] for a in rejects], commit=False)
            self.store.update_session(session_id, commit=False, **self._counter_fields(session_id, len(accepts), len(edits)))
            self.store.commit()
        except StorageError:
            self.store.rollback()
            LOG.exception("candidate_actions_failed", extra={"session_id": session_id})
            raise
        applied = {a.candidate_id for a in actions}
        return self._build_result(actions, applied)

    def _apply_grouped(self, session_id, by_id, accepts, edits, rejects, actions) -> CandidateActionResponse:
        applied = set()
        accepted_count = edited_count = 0
        try:
            if accepts:
                self.store.graduate([by_id[a.candidate_id] for a in accepts])
                applied.update(a.candidate_id for a in accepts)
                accepted_count = len(accepts)
            for a in edits:
                self.store.graduate_edited(by_id[a.candidate_id], a.edited_front.strip(), a.edited_back.strip())
                applied.add(a.candidate_id)
                edited_count += 1
            if rejects:
                self.store.soft_delete([by_id[a.candidate_id] for a in rejects])
                applied.update(a.candidate_id for a in rejects)
            self.store.update_session(session_id, **self._counter_fields(session_id, accepted_count, edited_count))
        except StorageError as e:
            if not applied:
                raise
            result = self._build_result(actions, applied)
            LOG.error("candidate_actions_partial_failure", extra={
                "session_id": session_id,
                "applied": len(applied),
                "failed": len(actions) - len(applied),
            })
            raise PartialActionError(e.message, result=result) from e
        return self._build_result(actions, applied)

    @staticmethod
    def _build_result(actions: List[ActionItem], applied: set) -> CandidateActionResponse:
        result = CandidateActionResponse()
        for action in actions:
            ok = action.candidate_id in applied
            result.items.append(ActionItemResult(
                candidate_id=action.candidate_id,
                action=action.action,
                status="applied" if ok else "failed",
            ))
            if not ok:
                continue
            if action.action == "accept":
                result.accepted.append(action.candidate_id)
            elif action.action == "edit":
                result.edited.append(action.candidate_id)
            else:
                result.rejected.append(action.candidate_id)
        return result

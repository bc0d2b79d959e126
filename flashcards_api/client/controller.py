"""
Controller de revisão de candidatos do lado do cliente.

Mantém duas listas: "novos" (da última geração, guardados localmente) e
"pendentes" (de outras sessões, sempre vindos do servidor). Cada candidato
novo vive numa arena indexada por id com a posição original e um estado:

    visible -> pending_action -> removed     (servidor confirmou)
                              -> visible     (servidor falhou: volta ao mesmo lugar)

Enquanto um id está em ação ele some das listas e não aceita nova ação.
Depois de toda ação os pendentes são buscados de novo no servidor.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from flashcards_api.client.selection import CAPACITY_WARNING, MAX_SELECTION, NEW, PENDING, SelectionState
from flashcards_api.client.session_store import LastSessionStore, ReviewContext
from flashcards_api.schemas.candidate_schemas import ActionItem, CandidateActionCommand, CandidateResponse
from flashcards_api.utils.errors import CandidateServiceError, PartialActionError, ValidationError

logger = logging.getLogger(__name__)


class CandidateState(str, Enum):
    VISIBLE = "visible"
    PENDING_ACTION = "pending_action"
    REMOVED = "removed"


@dataclass
class CandidateEntry:
    candidate: CandidateResponse
    position: int
    state: CandidateState = CandidateState.VISIBLE


@dataclass
class Notification:
    level: str  # "success", "warning" ou "error"
    message: str


@dataclass
class ActionOutcome:
    requested: List[str]
    confirmed: List[str] = field(default_factory=list)
    errors: List[CandidateServiceError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def rolled_back(self) -> List[str]:
        return [cid for cid in self.requested if cid not in self.confirmed]


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


class ReviewController:
    def __init__(
        self,
        api,
        context: ReviewContext,
        notify: Optional[Callable[[Notification], None]] = None,
        max_selection: int = MAX_SELECTION,
    ):
        self.api = api
        self.context = context
        self.selection = SelectionState(max_selection)
        self.notifications: List[Notification] = []
        self._notify_cb = notify
        self._new: "OrderedDict[str, CandidateEntry]" = OrderedDict()
        self._pending: List[CandidateResponse] = []
        self._in_flight: Set[str] = set()

    @classmethod
    def mount(cls, api, store: LastSessionStore, notify: Optional[Callable[[Notification], None]] = None) -> "ReviewController":
        context, candidates = ReviewContext.initialize(store, api)
        controller = cls(api, context, notify)
        if context.load_error:
            controller._notify("warning", f"Could not restore last session: {context.load_error}")
        controller._set_new(candidates)
        controller.refresh_pending()
        return controller

    # ---------------------------------------------------------
    # Visões
    # ---------------------------------------------------------

    @property
    def new_candidates(self) -> List[CandidateResponse]:
        entries = sorted(self._new.values(), key=lambda e: e.position)
        return [e.candidate for e in entries if e.state == CandidateState.VISIBLE]

    @property
    def pending_candidates(self) -> List[CandidateResponse]:
        return [
            c for c in self._pending
            if c.id not in self._in_flight and c.id not in self._new
        ]

    def state_of(self, candidate_id: str) -> Optional[CandidateState]:
        entry = self._new.get(candidate_id)
        return entry.state if entry else None

    def is_busy(self, candidate_id: str) -> bool:
        return candidate_id in self._in_flight

    # ---------------------------------------------------------
    # Carga e geração
    # ---------------------------------------------------------

    def _set_new(self, candidates: List[CandidateResponse]) -> None:
        self._new = OrderedDict(
            (c.id, CandidateEntry(candidate=c, position=i)) for i, c in enumerate(candidates)
        )

    def refresh_pending(self) -> bool:
        try:
            if self.context.session_id:
                self._pending = self.api.get_other_pending(self.context.session_id)
            else:
                self._pending = self.api.get_all_pending()
        except CandidateServiceError as e:
            self._notify("error", f"Failed to load pending candidates: {e.message}")
            return False
        visible = {c.id for c in self.pending_candidates}
        self.selection.discard([cid for cid in self.selection.ids(PENDING) if cid not in visible])
        return True

    def generate(self, input_text: str, model: Optional[str] = None) -> bool:
        try:
            result = self.api.create_session(input_text, model)
        except CandidateServiceError as e:
            self._notify("error", f"Failed to generate candidates: {e.message}")
            return False

        self.context.activate(result.id)
        self.selection.clear()
        self._set_new(result.candidates)
        n = len(result.candidates)
        self._notify("success", f"Generated {n} flashcard candidate{_plural(n)}!")
        self.refresh_pending()
        return True

    # ---------------------------------------------------------
    # Seleção
    # ---------------------------------------------------------

    def toggle_selection(self, kind: str, candidate_id: str, selected: bool = True) -> bool:
        ok = self.selection.toggle(kind, candidate_id, selected)
        if not ok:
            self._notify("warning", CAPACITY_WARNING)
        return ok

    def select_all(self, kind: str, selected: bool = True) -> bool:
        source = self.new_candidates if kind == NEW else self.pending_candidates
        ok = self.selection.select_all(kind, [c.id for c in source], selected)
        if not ok:
            self._notify("warning", CAPACITY_WARNING)
        return ok

    def clear_selection(self) -> None:
        self.selection.clear()

    # ---------------------------------------------------------
    # Ações
    # ---------------------------------------------------------

    def accept(self, candidate_id: str) -> Optional[ActionOutcome]:
        return self._run([{"candidate_id": candidate_id, "action": "accept"}], "accept candidate",
                         lambda n: "Candidate added to your flashcards!")

    def reject(self, candidate_id: str) -> Optional[ActionOutcome]:
        return self._run([{"candidate_id": candidate_id, "action": "reject"}], "reject candidate",
                         lambda n: "Candidate rejected!")

    def edit(self, candidate_id: str, front: str, back: str) -> Optional[ActionOutcome]:
        item = {"candidate_id": candidate_id, "action": "edit", "edited_front": front, "edited_back": back}
        return self._run([item], "update candidate",
                         lambda n: "Candidate edited and added to your flashcards!")

    def bulk_accept(self) -> Optional[ActionOutcome]:
        items = [{"candidate_id": cid, "action": "accept"} for cid in self.selection.all_ids()]
        return self._run(items, "accept candidates",
                         lambda n: f"{n} candidate{_plural(n)} added to your flashcards!")

    def bulk_reject(self) -> Optional[ActionOutcome]:
        items = [{"candidate_id": cid, "action": "reject"} for cid in self.selection.all_ids()]
        return self._run(items, "reject candidates", lambda n: f"{n} candidate{_plural(n)} rejected!")

    def _session_of(self, candidate_id: str) -> Optional[str]:
        entry = self._new.get(candidate_id)
        if entry is not None and entry.state == CandidateState.VISIBLE:
            return entry.candidate.ai_session_id or self.context.session_id
        for c in self._pending:
            if c.id == candidate_id:
                return c.ai_session_id
        return None

    def _run(self, items: List[dict], label: str, success_message: Callable[[int], str]) -> Optional[ActionOutcome]:
        if not items:
            return None
        ids = [i["candidate_id"] for i in items]
        busy = [cid for cid in ids if cid in self._in_flight]
        if busy:
            # Controle desabilitado enquanto a ação anterior não volta
            self._notify("warning", f"Skipped {len(busy)} candidate{_plural(len(busy))} with an action already in progress")
            items = [i for i in items if i["candidate_id"] not in self._in_flight]
            if not items:
                return None
            ids = [i["candidate_id"] for i in items]
        if len(ids) > self.selection.max_selection:
            self._notify("error", f"Maximum of {self.selection.max_selection} candidates can be processed at once")
            return None

        # Agrupa pela sessão de cada candidato
        groups: "OrderedDict[str, List[dict]]" = OrderedDict()
        outcome = ActionOutcome(requested=ids)
        for item in items:
            session_id = self._session_of(item["candidate_id"])
            if session_id is None:
                outcome.errors.append(ValidationError(f"Unknown candidate {item['candidate_id']}"))
                continue
            groups.setdefault(session_id, []).append(item)
        known = [i["candidate_id"] for group in groups.values() for i in group]

        # 1-2. Remoção otimista e limpeza da seleção
        self._begin(known)
        self.selection.discard(ids)

        # 3. Processamento no servidor, uma chamada por sessão
        for session_id, group in groups.items():
            try:
                command = CandidateActionCommand(actions=[ActionItem(**i) for i in group])
            except PydanticValidationError as e:
                outcome.errors.append(ValidationError("Invalid candidate action", details=str(e)))
                continue
            try:
                result = self.api.process_actions(session_id, command)
                outcome.confirmed.extend(result.applied_ids() or result.accepted + result.edited + result.rejected)
            except PartialActionError as e:
                if e.result is not None:
                    outcome.confirmed.extend(e.result.applied_ids())
                outcome.errors.append(e)
            except CandidateServiceError as e:
                outcome.errors.append(e)

        # 4-5. Confirma ou devolve cada candidato e reconcilia com o servidor
        self._finish(known, set(outcome.confirmed))
        self.refresh_pending()

        if outcome.ok:
            self._notify("success", success_message(len(outcome.confirmed)))
        else:
            reason = "; ".join(e.message for e in outcome.errors)
            self._notify("error", f"Failed to {label} - rolled back: {reason}")
        return outcome

    def _begin(self, ids: List[str]) -> None:
        for cid in ids:
            self._in_flight.add(cid)
            entry = self._new.get(cid)
            if entry is not None:
                entry.state = CandidateState.PENDING_ACTION

    def _finish(self, ids: List[str], confirmed: Set[str]) -> None:
        for cid in ids:
            self._in_flight.discard(cid)
            entry = self._new.get(cid)
            if entry is None:
                continue
            entry.state = CandidateState.REMOVED if cid in confirmed else CandidateState.VISIBLE

    def _notify(self, level: str, message: str) -> None:
        notification = Notification(level, message)
        self.notifications.append(notification)
        log = logger.error if level == "error" else logger.info
        log(message)
        if self._notify_cb is not None:
            self._notify_cb(notification)

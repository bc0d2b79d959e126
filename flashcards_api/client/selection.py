import logging
from typing import Iterable, List, Set

logger = logging.getLogger(__name__)

MAX_SELECTION = 100
CAPACITY_WARNING = f"Maximum of {MAX_SELECTION} candidates can be selected at once"

PENDING = "pending"
NEW = "new"


class SelectionState:
    """
    Dois conjuntos disjuntos (pendentes e novos) com limite combinado.
    Uma tentativa de passar do limite não altera nada.
    """

    def __init__(self, max_selection: int = MAX_SELECTION):
        self.max_selection = max_selection
        self._sets = {PENDING: set(), NEW: set()}

    def __len__(self) -> int:
        return sum(len(s) for s in self._sets.values())

    def ids(self, kind: str) -> Set[str]:
        return set(self._sets[kind])

    def all_ids(self) -> List[str]:
        return list(self._sets[PENDING]) + list(self._sets[NEW])

    @property
    def remaining(self) -> int:
        return self.max_selection - len(self)

    @property
    def max_reached(self) -> bool:
        return len(self) >= self.max_selection

    def toggle(self, kind: str, candidate_id: str, selected: bool) -> bool:
        """False quando o limite impediu a seleção"""
        target = self._sets[kind]
        if not selected:
            target.discard(candidate_id)
            return True
        if candidate_id in target:
            return True
        other = self._sets[self._other(kind)]
        # Mover entre os conjuntos não aumenta o total
        if candidate_id not in other and self.max_reached:
            return False
        other.discard(candidate_id)
        target.add(candidate_id)
        return True

    def select_all(self, kind: str, candidate_ids: Iterable[str], selected: bool = True) -> bool:
        """Seleciona até a capacidade restante. False quando truncou."""
        if not selected:
            self._sets[kind].clear()
            return True
        candidate_ids = list(candidate_ids)
        self._sets[kind].clear()
        capacity = self.remaining
        chosen = candidate_ids[:capacity]
        self._sets[kind].update(chosen)
        self._sets[self._other(kind)].difference_update(chosen)
        return len(chosen) == len(candidate_ids)

    def discard(self, candidate_ids: Iterable[str]) -> None:
        for cid in candidate_ids:
            for s in self._sets.values():
                s.discard(cid)

    def clear(self) -> None:
        for s in self._sets.values():
            s.clear()

    @staticmethod
    def _other(kind: str) -> str:
        return NEW if kind == PENDING else PENDING

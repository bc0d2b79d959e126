from datetime import timedelta

import pytest

from flashcards_api.models.flashcard import Flashcard
from flashcards_api.schemas.candidate_schemas import ActionItem, CandidateActionCommand
from flashcards_api.services.action_processor import CandidateActionProcessor
from flashcards_api.services.query_service import CandidateQueryService
from flashcards_api.utils.clock import utcnow
from flashcards_api.utils.errors import NotFoundError, ValidationError

from tests.factories import OWNER, OTHER_OWNER


def _reject(db_session, session_id, cid):
    command = CandidateActionCommand(actions=[ActionItem(candidate_id=cid, action='reject')])
    CandidateActionProcessor(db_session).process_actions(session_id, OWNER, command)


def _age(db_session, cid, days):
    row = db_session.get(Flashcard, cid)
    row.created_at = utcnow() - timedelta(days=days)
    db_session.add(row)
    db_session.commit()


def test_session_candidates_returns_only_that_session(db_session, make_session):
    session_a, ids_a = make_session(count=2)
    make_session(count=3)
    rows = CandidateQueryService(db_session, OWNER).get_session_candidates(session_a)
    assert {r.id for r in rows} == set(ids_a)


def test_session_candidates_for_foreign_session_is_not_found(db_session, make_session):
    session_id, _ = make_session(owner=OTHER_OWNER)
    with pytest.raises(NotFoundError):
        CandidateQueryService(db_session, OWNER).get_session_candidates(session_id)


def test_session_candidates_empty_after_everything_acted_on(db_session, make_session):
    session_id, ids = make_session(count=1)
    _reject(db_session, session_id, ids[0])
    assert CandidateQueryService(db_session, OWNER).get_session_candidates(session_id) == []


def test_all_pending_is_owner_scoped_and_ordered_by_creation(db_session, make_session):
    session_a, ids_a = make_session(count=1)
    session_b, ids_b = make_session(count=1)
    make_session(owner=OTHER_OWNER, count=2)
    _age(db_session, ids_b[0], 2)

    rows = CandidateQueryService(db_session, OWNER).get_all_pending_candidates()
    assert [r.id for r in rows] == [ids_b[0], ids_a[0]]


def test_other_pending_excludes_only_the_given_session(db_session, make_session):
    session_a, ids_a = make_session(count=2)
    session_b, ids_b = make_session(count=1)
    service = CandidateQueryService(db_session, OWNER)

    assert {r.id for r in service.get_other_pending_candidates(session_a)} == set(ids_b)
    assert {r.id for r in service.get_other_pending_candidates(session_b)} == set(ids_a)
    assert len(service.get_other_pending_candidates(None)) == 3


def test_rejected_candidate_is_not_orphaned(db_session, make_session):
    session_id, ids = make_session(count=2)
    _reject(db_session, session_id, ids[0])
    service = CandidateQueryService(db_session, OWNER)

    assert [r.id for r in service.get_all_pending_candidates()] == [ids[1]]
    assert [r.id for r in service.get_orphaned_candidates(older_than_days=0)] == [ids[1]]


def test_orphaned_uses_retention_window(db_session, make_session):
    _, ids = make_session(count=2)
    _age(db_session, ids[0], 10)
    service = CandidateQueryService(db_session, OWNER)

    assert [r.id for r in service.get_orphaned_candidates()] == [ids[0]]
    assert [r.id for r in service.get_orphaned_candidates(older_than_days=30)] == []


def test_delete_orphaned_soft_deletes(db_session, make_session):
    _, ids = make_session(count=2)
    _age(db_session, ids[0], 8)
    service = CandidateQueryService(db_session, OWNER)

    assert service.delete_orphaned() == 1
    db_session.expire_all()
    assert db_session.get(Flashcard, ids[0]).deleted_at is not None
    assert [r.id for r in service.get_all_pending_candidates()] == [ids[1]]


def test_negative_retention_is_rejected(db_session):
    with pytest.raises(ValidationError):
        CandidateQueryService(db_session, OWNER).get_orphaned_candidates(-1)

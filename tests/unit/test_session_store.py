import json
from unittest.mock import MagicMock

from flashcards_api.client.session_store import LAST_SESSION_KEY, LastSessionStore, ReviewContext
from flashcards_api.schemas.candidate_schemas import CandidateResponse
from flashcards_api.utils.errors import StorageError, ValidationError


def test_store_round_trip_and_clear(tmp_path):
    store = LastSessionStore(str(tmp_path / 'state.json'))
    assert store.load() is None
    store.save('s-1')
    assert json.loads((tmp_path / 'state.json').read_text()) == {LAST_SESSION_KEY: 's-1'}
    assert store.load() == 's-1'
    store.clear()
    store.clear()
    assert store.load() is None


def test_corrupt_state_degrades_to_no_session(tmp_path):
    path = tmp_path / 'state.json'
    path.write_text('{not json')
    assert LastSessionStore(str(path)).load() is None
    path.write_text(json.dumps({LAST_SESSION_KEY: 12}))
    assert LastSessionStore(str(path)).load() is None


def test_initialize_keeps_live_session(tmp_path):
    store = LastSessionStore(str(tmp_path / 'state.json'))
    store.save('s-1')
    api = MagicMock()
    api.get_session_candidates.return_value = [CandidateResponse(id='c1', front='Q', back='A', ai_session_id='s-1')]

    context, candidates = ReviewContext.initialize(store, api)
    assert context.session_id == 's-1'
    assert [c.id for c in candidates] == ['c1']


def test_initialize_discards_stale_session(tmp_path):
    store = LastSessionStore(str(tmp_path / 'state.json'))
    store.save('gone')
    api = MagicMock()
    api.get_session_candidates.return_value = []

    context, candidates = ReviewContext.initialize(store, api)
    assert context.session_id is None
    assert candidates == []
    assert store.load() is None


def test_initialize_without_stored_id_skips_server(tmp_path):
    api = MagicMock()
    context, _ = ReviewContext.initialize(LastSessionStore(str(tmp_path / 'none.json')), api)
    assert context.session_id is None
    api.get_session_candidates.assert_not_called()


def test_initialize_drops_garbled_session_id(tmp_path):
    store = LastSessionStore(str(tmp_path / 'state.json'))
    store.save('not-a-uuid')
    api = MagicMock()
    api.get_session_candidates.side_effect = ValidationError('Validation failed')

    context, candidates = ReviewContext.initialize(store, api)
    assert context.session_id is None
    assert context.load_error == 'Validation failed'
    assert candidates == []
    assert store.load() is None


def test_initialize_keeps_stored_id_when_server_is_down(tmp_path):
    store = LastSessionStore(str(tmp_path / 'state.json'))
    store.save('s-1')
    api = MagicMock()
    api.get_session_candidates.side_effect = StorageError('db down')

    context, candidates = ReviewContext.initialize(store, api)
    assert context.session_id is None
    assert context.load_error == 'db down'
    assert candidates == []
    assert store.load() == 's-1'

import os
import uuid
import pytest
from unittest.mock import MagicMock

# Banco em memória antes de importar o app
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('LOG_FORMAT', 'text')
os.environ.setdefault('TESTING', '1')

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import flashcards_api.db.session  # noqa: F401  registra os modelos
from flashcards_api.models.flashcard import Flashcard
from flashcards_api.models.generation_session import GenerationSession
from flashcards_api.schemas.candidate_schemas import CandidateCreate
from flashcards_api.services.ai_generator import GenerationResult
from flashcards_api.utils.config import settings

from tests.factories import OWNER, long_text


@pytest.fixture
def engine():
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def sample_text():
    return long_text


@pytest.fixture
def make_session(db_session):
    """Cria uma sessão de geração com N candidatos pendentes diretamente no banco"""
    def _make(owner=OWNER, count=3, model='m1'):
        row = GenerationSession(user_id=owner, input_text='x' * 1000, input_text_hash='h', model=model)
        db_session.add(row)
        db_session.commit()
        db_session.refresh(row)
        cards = [
            Flashcard(user_id=owner, ai_session_id=row.id, front=f'Q{i}', back=f'A{i}', prompt='p', model=model)
            for i in range(count)
        ]
        db_session.add_all(cards)
        db_session.commit()
        return row.id, [c.id for c in cards]
    return _make


@pytest.fixture
def fake_generator(monkeypatch):
    """Substitui a chamada à IA por candidatos determinísticos"""
    calls = []

    def _install(count=5, fail=None):
        def _generate(input_text, model):
            calls.append((input_text, model))
            if fail is not None:
                raise fail
            cards = [CandidateCreate(front=f'Question {i}?', back=f'Answer {i}', prompt='tests concept') for i in range(count)]
            return GenerationResult(candidates=cards, duration_ms=42)
        monkeypatch.setattr('flashcards_api.services.ai_generator.generate', _generate)
        return calls
    return _install


@pytest.fixture
def allow_test_models(monkeypatch):
    monkeypatch.setattr(settings, 'ALLOWED_MODELS', ['m1', 'm2'])
    monkeypatch.setattr(settings, 'DEFAULT_MODEL', 'm1')


@pytest.fixture
def client(engine, allow_test_models):
    from fastapi.testclient import TestClient
    from flashcards_api.db.session import get_session
    from flashcards_api.main import app

    def _override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {settings.AUTH_HEADER: OWNER}


@pytest.fixture
def mock_groq_client(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr('flashcards_api.services.ai_generator.get_client', lambda: fake)
    return fake


@pytest.fixture
def random_id():
    return lambda: str(uuid.uuid4())

from sqlmodel import SQLModel, Session, create_engine
from flashcards_api.utils.config import settings

# IMPORTANTE: Importe os modelos aqui para registrá-los no SQLModel
from flashcards_api.models.generation_session import GenerationSession
from flashcards_api.models.flashcard import Flashcard
from flashcards_api.models.event_log import EventLog

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=settings.DB_ECHO
)

def init_db():
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session

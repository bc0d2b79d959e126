from typing import List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Banco
    DATABASE_URL: str = "sqlite:///./flashcards.db"
    DB_ECHO: bool = False

    # Groq / geração
    GROQ_API_KEY: str = ""
    DEFAULT_MODEL: str = "llama-3.3-70b-versatile"
    ALLOWED_MODELS: List[str] = [
        "llama-3.3-70b-versatile",
        "llama-3.1-8b-instant",
        "meta-llama/llama-4-scout-17b-16e-instruct",
    ]
    GENERATION_TIMEOUT_SECONDS: float = 60.0
    GENERATION_TEMPERATURE: float = 0.7
    GENERATION_MAX_TOKENS: int = 2000

    # Limites de entrada
    INPUT_TEXT_MIN_LENGTH: int = 1000
    INPUT_TEXT_MAX_LENGTH: int = 10000
    MAX_ACTIONS_PER_BATCH: int = 100

    # "overwrite" = último lote vence, "accumulate" = soma entre lotes
    COUNTER_POLICY: Literal["overwrite", "accumulate"] = "overwrite"
    ATOMIC_ACTIONS: bool = True
    SUPPRESS_DUPLICATE_SESSIONS: bool = False
    ORPHAN_RETENTION_DAYS: int = 7

    AUTH_HEADER: str = "X-User-Id"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"

    # Cliente
    API_BASE_URL: str = "http://localhost:8000"
    CLIENT_STATE_PATH: str = ".flashcards_client.json"
    CLIENT_TIMEOUT_SECONDS: float = 30.0


settings = Settings()

from functools import lru_cache
from groq import Groq
from flashcards_api.utils.config import settings


@lru_cache(maxsize=1)
def get_client() -> Groq:
    # Criado sob demanda para não exigir GROQ_API_KEY em testes
    return Groq(api_key=settings.GROQ_API_KEY, timeout=settings.GENERATION_TIMEOUT_SECONDS)

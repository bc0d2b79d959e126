from typing import List, Optional
from pydantic import BaseModel, field_validator
from flashcards_api.schemas.candidate_schemas import CandidateResponse
from flashcards_api.utils.config import settings


# Input
class CreateGenerationSessionRequest(BaseModel):
    input_text: str
    model: Optional[str] = None

    @field_validator("input_text")
    @classmethod
    def check_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < settings.INPUT_TEXT_MIN_LENGTH:
            raise ValueError(f"input_text must be at least {settings.INPUT_TEXT_MIN_LENGTH} characters")
        if len(value) > settings.INPUT_TEXT_MAX_LENGTH:
            raise ValueError(f"input_text must be at most {settings.INPUT_TEXT_MAX_LENGTH} characters")
        return value

    @field_validator("model")
    @classmethod
    def check_model(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in settings.ALLOWED_MODELS:
            raise ValueError(f"Invalid model. Allowed models: {', '.join(settings.ALLOWED_MODELS)}")
        return value


# Output
class GenerationSessionResponse(BaseModel):
    id: str
    candidates: List[CandidateResponse]
    input_text_hash: str

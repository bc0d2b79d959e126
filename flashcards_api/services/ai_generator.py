import json
import time
from dataclasses import dataclass
from typing import Any, List
from pydantic import ValidationError as PydanticValidationError
from flashcards_api.schemas.candidate_schemas import CandidateCreate, FRONT_MAX_LENGTH, BACK_MAX_LENGTH
from flashcards_api.utils.config import settings
from flashcards_api.utils.errors import UpstreamGenerationError, ValidationError
from flashcards_api.utils.groq_client import get_client
from flashcards_api.utils.logger import get_logger

LOG = get_logger(__name__)

DEFAULT_PROMPT = "Flashcard generated from input text"

FLASHCARD_SYSTEM_PROMPT = """You are a flashcard generation assistant. Your task is to create high-quality flashcards from the provided text.

Rules:
- Generate 5-15 flashcards depending on content length and complexity
- Each flashcard should test a single concept
- Questions should be clear and concise (max 200 characters)
- Answers should be accurate and complete but not overly verbose (max 500 characters)
- Focus on key concepts, definitions, and important facts
- Avoid yes/no questions

Return a JSON object with this exact format:
{
  "flashcards": [
    {
      "front": "Clear, specific question",
      "back": "Accurate, concise answer",
      "prompt": "Brief explanation of what this flashcard tests"
    }
  ]
}"""


@dataclass
class GenerationResult:
    candidates: List[CandidateCreate]
    duration_ms: int


# ---------------------------------------------------------
# Validação da resposta (nada "any" entra no núcleo)
# ---------------------------------------------------------

def parse_candidates(content: str) -> List[CandidateCreate]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise UpstreamGenerationError("Failed to parse AI response", details=str(e)) from e

    raw_cards = data.get("flashcards") if isinstance(data, dict) else None
    if not isinstance(raw_cards, list) or not raw_cards:
        raise UpstreamGenerationError("AI response did not contain valid flashcards array")

    valid: List[CandidateCreate] = []
    invalid: List[Any] = []
    for card in raw_cards:
        if not isinstance(card, dict):
            invalid.append(card)
            continue
        front, back, prompt = card.get("front"), card.get("back"), card.get("prompt")
        if not isinstance(front, str) or not isinstance(back, str) or not front.strip() or not back.strip():
            invalid.append(card)
            continue
        if not isinstance(prompt, str) or not prompt.strip():
            prompt = DEFAULT_PROMPT
        try:
            valid.append(CandidateCreate(
                front=front.strip()[:FRONT_MAX_LENGTH],
                back=back.strip()[:BACK_MAX_LENGTH],
                prompt=prompt.strip(),
            ))
        except PydanticValidationError:
            invalid.append(card)

    if invalid:
        LOG.warning("invalid_flashcards_filtered", extra={"invalid_count": len(invalid)})
    if not valid:
        raise UpstreamGenerationError("No valid flashcards in AI response after validation")
    return valid


# ---------------------------------------------------------
# Chamada ao modelo
# ---------------------------------------------------------

def generate(input_text: str, model: str) -> GenerationResult:
    """
    Gera candidatos a partir do texto. Falha uma vez e propaga: sem retry interno.
    """
    if model not in settings.ALLOWED_MODELS:
        raise ValidationError(f'Model "{model}" is not allowed. Allowed models: {", ".join(settings.ALLOWED_MODELS)}')

    start_time = time.time()
    try:
        completion = get_client().chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": FLASHCARD_SYSTEM_PROMPT},
                {"role": "user", "content": f"Generate flashcards from this text:\n\n{input_text}"},
            ],
            response_format={"type": "json_object"},
            temperature=settings.GENERATION_TEMPERATURE,
            max_tokens=settings.GENERATION_MAX_TOKENS,
        )
    except Exception as e:
        raise UpstreamGenerationError(f"Flashcard generation failed: {e}") from e

    duration_ms = int((time.time() - start_time) * 1000)
    if completion.usage:
        LOG.info("llm_call", extra={
            "model": model,
            "prompt_tokens": completion.usage.prompt_tokens,
            "completion_tokens": completion.usage.completion_tokens,
            "duration_ms": duration_ms,
        })

    content = completion.choices[0].message.content if completion.choices else None
    if not content:
        raise UpstreamGenerationError("No content in AI response")

    candidates = parse_candidates(content)
    LOG.info("flashcards_validated", extra={"count": len(candidates), "model": model})
    return GenerationResult(candidates=candidates, duration_ms=duration_ms)

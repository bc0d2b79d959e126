"""
Cliente HTTP da API de candidatos.

Cada resposta passa pelos schemas pydantic antes de entrar no controller;
status de erro viram as mesmas exceções usadas no servidor.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from flashcards_api.schemas.candidate_schemas import (
    CandidateActionCommand,
    CandidateActionResponse,
    CandidateResponse,
    DeleteOrphanedResponse,
    OrphanedCandidatesResponse,
)
from flashcards_api.schemas.flashcard_schemas import FlashcardListResponse
from flashcards_api.schemas.session_schemas import GenerationSessionResponse
from flashcards_api.utils.config import settings
from flashcards_api.utils.errors import (
    CandidateServiceError,
    NotFoundError,
    PartialActionError,
    StorageError,
    UnauthorizedError,
    UpstreamGenerationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_candidate_list = TypeAdapter(List[CandidateResponse])


class CandidatesAPIClient:
    """HTTP client for the candidates API"""

    def __init__(self, owner_id: str, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip('/')
        self.timeout = timeout or settings.CLIENT_TIMEOUT_SECONDS
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            settings.AUTH_HEADER: owner_id,
        })

    def _request(self, method: str, endpoint: str, json: Any = None, params: Optional[Dict[str, Any]] = None, server_error=StorageError) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(method, url, json=json, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"API request failed: {e}")
            raise server_error(f"Request to {endpoint} failed: {e}") from e

        if response.ok:
            return response.json()
        raise self._error_from_response(response, server_error)

    @staticmethod
    def _error_from_response(response: requests.Response, server_error) -> CandidateServiceError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get('error') or f"HTTP {response.status_code}"
        details = body.get('details')

        if response.status_code == 400:
            return ValidationError(message, details=details)
        if response.status_code == 401:
            return UnauthorizedError()
        if response.status_code == 404:
            missing = details.get('missing_ids') if isinstance(details, dict) else None
            return NotFoundError(message, missing_ids=missing)
        if body.get('partial'):
            result = CandidateActionResponse.model_validate(body.get('result') or {})
            return PartialActionError(message, result=result)
        return server_error(message, details=details)

    @staticmethod
    def _parse(schema, data):
        try:
            if isinstance(schema, TypeAdapter):
                return schema.validate_python(data)
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise StorageError("Malformed response from server", details=str(e)) from e

    # Sessões de geração
    def create_session(self, input_text: str, model: Optional[str] = None) -> GenerationSessionResponse:
        payload = {'input_text': input_text}
        if model:
            payload['model'] = model
        data = self._request('POST', '/api/ai-sessions', json=payload, server_error=UpstreamGenerationError)
        return self._parse(GenerationSessionResponse, data)

    def get_session_candidates(self, session_id: str) -> List[CandidateResponse]:
        """404 é convenção para "nada pendente nesta sessão": devolve lista vazia"""
        try:
            data = self._request('GET', f'/api/ai-sessions/{session_id}/candidates')
        except NotFoundError:
            logger.warning(f"Session {session_id} not found - returning empty list")
            return []
        return self._parse(_candidate_list, data)

    def process_actions(self, session_id: str, command: CandidateActionCommand) -> CandidateActionResponse:
        data = self._request(
            'POST',
            f'/api/ai-sessions/{session_id}/candidates/actions',
            json=command.model_dump(exclude_none=True),
        )
        return self._parse(CandidateActionResponse, data)

    # Candidatos pendentes
    def get_all_pending(self) -> List[CandidateResponse]:
        return self._parse(_candidate_list, self._request('GET', '/api/candidates/pending'))

    def get_other_pending(self, exclude_session_id: Optional[str] = None) -> List[CandidateResponse]:
        params = {'excludeSessionId': exclude_session_id} if exclude_session_id else None
        return self._parse(_candidate_list, self._request('GET', '/api/candidates/other-pending', params=params))

    # Flashcards ativos
    def list_flashcards(self, search: Optional[str] = None, page: int = 1, limit: int = 20, sort: str = 'created_at') -> FlashcardListResponse:
        params = {'page': page, 'limit': limit, 'sort': sort}
        if search:
            params['search'] = search
        return self._parse(FlashcardListResponse, self._request('GET', '/api/flashcards', params=params))

    # Manutenção
    def get_orphaned(self, older_than_days: Optional[int] = None) -> OrphanedCandidatesResponse:
        params = {'olderThanDays': older_than_days} if older_than_days is not None else None
        return self._parse(OrphanedCandidatesResponse, self._request('GET', '/api/candidates/orphaned', params=params))

    def delete_orphaned(self, older_than_days: Optional[int] = None) -> DeleteOrphanedResponse:
        params = {'olderThanDays': older_than_days} if older_than_days is not None else None
        return self._parse(DeleteOrphanedResponse, self._request('DELETE', '/api/candidates/orphaned', params=params))

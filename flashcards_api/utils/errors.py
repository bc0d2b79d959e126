"""
Taxonomia de erros do serviço de candidatos.

Cada erro carrega o status HTTP correspondente; o app mapeia para
respostas JSON e o cliente converte status de volta para estas classes.
"""
from typing import Any, List, Optional


class CandidateServiceError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details


class ValidationError(CandidateServiceError):
    status_code = 400
    error = "Validation failed"


class UnauthorizedError(CandidateServiceError):
    status_code = 401
    error = "Unauthorized"


class NotFoundError(CandidateServiceError):
    status_code = 404
    error = "Resource not found"

    def __init__(self, message: Optional[str] = None, missing_ids: Optional[List[str]] = None):
        super().__init__(message, details={"missing_ids": missing_ids} if missing_ids else None)
        self.missing_ids = missing_ids or []


class UpstreamGenerationError(CandidateServiceError):
    status_code = 500
    error = "Failed to generate flashcards"


class StorageError(CandidateServiceError):
    status_code = 500
    error = "Internal server error"


class PartialActionError(StorageError):
    """Lote não atômico que falhou depois de aplicar parte das ações."""

    def __init__(self, message: Optional[str] = None, result: Any = None):
        super().__init__(message or "Candidate actions partially applied")
        self.result = result

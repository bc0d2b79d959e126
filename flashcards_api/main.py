import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlmodel import Session
from flashcards_api.db.session import init_db, get_session
from flashcards_api.schemas.candidate_schemas import (
    CandidateActionCommand,
    CandidateActionResponse,
    CandidateResponse,
    DeleteOrphanedResponse,
    OrphanedCandidatesResponse,
)
from flashcards_api.schemas.flashcard_schemas import FlashcardListResponse, FlashcardSort
from flashcards_api.schemas.session_schemas import CreateGenerationSessionRequest, GenerationSessionResponse
from flashcards_api.services.action_processor import CandidateActionProcessor
from flashcards_api.services.flashcard_service import FlashcardService
from flashcards_api.services.generation_service import GenerationSessionManager
from flashcards_api.services.query_service import CandidateQueryService
from flashcards_api.utils.auth import get_owner_id
from flashcards_api.utils.errors import CandidateServiceError, PartialActionError
from flashcards_api.utils.logger import get_logger, get_request_context, set_request_context

LOG = get_logger()

NO_CACHE = {"Cache-Control": "private, max-age=0"}


# Evento para criar tabelas ao iniciar
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

app = FastAPI(title="AI Flashcards Candidates API", lifespan=lifespan)


@app.middleware("http")
async def add_request_id_and_logging(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or os.urandom(8).hex()
    request.state.request_id = request_id
    set_request_context(request_id)
    start = time.time()
    LOG.info("http_request_start", extra={"method": request.method, "path": request.url.path})
    try:
        response: Response = await call_next(request)
    except Exception:
        LOG.exception("unhandled_exception")
        body = {"error": "Internal server error", "request_id": request_id}
        return JSONResponse(status_code=500, content=body)
    duration = int((time.time() - start) * 1000)
    LOG.info("http_request_end", extra={"method": request.method, "path": request.url.path, "status_code": response.status_code, "duration_ms": duration})
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------
# Erros -> respostas JSON
# ---------------------------------------------------------

def error_response(status: int, error: str, details=None, **extra) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    body.update(extra)
    return JSONResponse(status_code=status, content=jsonable_encoder(body))


@app.exception_handler(PartialActionError)
async def handle_partial_action(request: Request, exc: PartialActionError):
    result = exc.result.model_dump() if exc.result is not None else None
    return error_response(exc.status_code, exc.message, partial=True, result=result)


@app.exception_handler(CandidateServiceError)
async def handle_service_error(request: Request, exc: CandidateServiceError):
    if exc.status_code >= 500:
        LOG.error("service_error", extra={"error": exc.message, "path": request.url.path})
        return error_response(exc.status_code, exc.error, {"message": exc.message}, request_id=get_request_context().get("request_id"))
    return error_response(exc.status_code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    return error_response(400, "Validation failed", exc.errors())


# ---------------------------------------------------------
# Rotas
# ---------------------------------------------------------

@app.get("/")
def read_root():
    return {"status": "AI Flashcards Candidates API is running 🚀"}


@app.post("/api/ai-sessions", response_model=GenerationSessionResponse, status_code=201)
def create_generation_session(
    request: CreateGenerationSessionRequest,
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    """
    Cria a sessão, chama a IA e grava os candidatos. Devolve os candidatos já com ids.
    """
    outcome = GenerationSessionManager(session).create_and_generate(owner_id, request.input_text, request.model)
    return GenerationSessionResponse(
        id=outcome.session_id,
        candidates=[CandidateResponse.model_validate(c) for c in outcome.candidates],
        input_text_hash=outcome.input_text_hash,
    )


@app.get("/api/ai-sessions/{session_id}/candidates", response_model=List[CandidateResponse])
def list_session_candidates(
    session_id: uuid.UUID,
    response: Response,
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    response.headers.update(NO_CACHE)
    rows = CandidateQueryService(session, owner_id).get_session_candidates(str(session_id))
    return [CandidateResponse.model_validate(r) for r in rows]


@app.post("/api/ai-sessions/{session_id}/candidates/actions", response_model=CandidateActionResponse)
def process_candidate_actions(
    session_id: uuid.UUID,
    command: CandidateActionCommand,
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    return CandidateActionProcessor(session).process_actions(str(session_id), owner_id, command)


@app.get("/api/candidates/pending", response_model=List[CandidateResponse])
def list_pending_candidates(
    response: Response,
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    response.headers.update(NO_CACHE)
    rows = CandidateQueryService(session, owner_id).get_all_pending_candidates()
    return [CandidateResponse.model_validate(r) for r in rows]


@app.get("/api/candidates/other-pending", response_model=List[CandidateResponse])
def list_other_pending_candidates(
    response: Response,
    exclude_session_id: Optional[str] = Query(default=None, alias="excludeSessionId"),
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    response.headers.update(NO_CACHE)
    rows = CandidateQueryService(session, owner_id).get_other_pending_candidates(exclude_session_id or None)
    return [CandidateResponse.model_validate(r) for r in rows]


@app.get("/api/candidates/orphaned", response_model=OrphanedCandidatesResponse)
def list_orphaned_candidates(
    older_than_days: Optional[int] = Query(default=None, alias="olderThanDays", ge=0),
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    rows = CandidateQueryService(session, owner_id).get_orphaned_candidates(older_than_days)
    return OrphanedCandidatesResponse(count=len(rows), candidates=[CandidateResponse.model_validate(r) for r in rows])


@app.delete("/api/candidates/orphaned", response_model=DeleteOrphanedResponse)
def delete_orphaned_candidates(
    older_than_days: Optional[int] = Query(default=None, alias="olderThanDays", ge=0),
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    deleted = CandidateQueryService(session, owner_id).delete_orphaned(older_than_days)
    plural = "" if deleted == 1 else "s"
    return DeleteOrphanedResponse(deleted=deleted, message=f"Deleted {deleted} orphaned candidate{plural}")


@app.get("/api/flashcards", response_model=FlashcardListResponse)
def list_flashcards(
    response: Response,
    search: Optional[str] = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    sort: FlashcardSort = Query(default="created_at"),
    owner_id: str = Depends(get_owner_id),
    session: Session = Depends(get_session),
):
    """
    Flashcards ativos do dono (aceitos, editados ou manuais), paginados.
    """
    response.headers.update(NO_CACHE)
    return FlashcardService(session, owner_id).list_flashcards(search, page, limit, sort)

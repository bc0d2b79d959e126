from fastapi import Request
from flashcards_api.utils.config import settings
from flashcards_api.utils.errors import UnauthorizedError
from flashcards_api.utils.logger import get_request_context, set_request_context


def get_owner_id(request: Request) -> str:
    """
    Dono autenticado da requisição. O header é preenchido pelo gateway de auth;
    ausência é sempre 401 antes de qualquer lógica.
    """
    owner_id = (request.headers.get(settings.AUTH_HEADER) or "").strip()
    if not owner_id:
        raise UnauthorizedError()
    set_request_context(get_request_context().get("request_id"), owner_id)
    return owner_id

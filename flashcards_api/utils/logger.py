import sys
import logging
import contextvars
from pythonjsonlogger import jsonlogger
from flashcards_api.utils.config import settings

_request_ctx_var = contextvars.ContextVar('request_ctx', default={})


def set_request_context(request_id: str, user_id: str = None):
    _request_ctx_var.set({'request_id': request_id, 'user_id': user_id})


def get_request_context():
    return _request_ctx_var.get()


def _inject_request_context(record):
    ctx = get_request_context()
    record.request_id = ctx.get('request_id')
    record.user_id = ctx.get('user_id')
    return True


def get_logger(name: str = 'flashcards_api'):
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(settings.LOG_LEVEL.upper())

    ch = logging.StreamHandler(sys.stdout)
    if settings.LOG_FORMAT == 'json':
        fmt = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s %(user_id)s')
    else:
        fmt = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    ch.setFormatter(fmt)
    logger.addHandler(ch)
    logger.propagate = False

    f = logging.Filter()
    f.filter = _inject_request_context
    logger.addFilter(f)

    return logger

import logging
import sys
from typing import Optional

from .config import Settings

logger = logging.getLogger("todo_service")

DEV_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
PROD_FORMAT = "time=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

SLOW_REQUEST_MS = 1000


def configure_logging(settings: Settings) -> None:
    """Attach a stdout handler to the service logger (once) and set its level."""
    level = logging.INFO if settings.is_production else logging.DEBUG
    fmt = PROD_FORMAT if settings.is_production else DEV_FORMAT

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setFormatter(logging.Formatter(fmt))
    logger.setLevel(level)
    logger.propagate = False


def log_request(request_id: str, method: str, path: str, status: int, duration_ms: float) -> None:
    logger.info("request id=%s method=%s path=%s status=%s duration_ms=%.1f",
                request_id, method, path, status, duration_ms)
    if duration_ms > SLOW_REQUEST_MS:
        logger.warning("slow request id=%s %s %s took %.0fms (threshold %sms)",
                       request_id, method, path, duration_ms, SLOW_REQUEST_MS)


def log_auth(event: str, user_id: Optional[str] = None, email: Optional[str] = None) -> None:
    logger.info("auth event=%s user_id=%s email=%s", event, user_id, email)


def log_error(exc: BaseException, **context) -> None:
    logger.error("error %s: %s context=%s", type(exc).__name__, exc, context, exc_info=exc)

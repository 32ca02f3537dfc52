"""Failure observers handed to the Gemini service layer."""

import logging
from collections.abc import Callable

from studylens.exceptions import EmptyResponseError

ErrorObserver = Callable[[str, Exception], None]

logger = logging.getLogger("studylens")


def log_failure(operation: str, exc: Exception) -> None:
    if isinstance(exc, EmptyResponseError):
        logger.error(
            "Gemini %s returned no text (reason=%s, finish_reason=%s)",
            operation, exc.reason, exc.finish_reason,
        )
    else:
        logger.error("Gemini %s failed: %s", operation, exc, exc_info=exc)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

"""
Адаптер логгера поверх стандартного модуля logging.
"""

import json
import logging
from typing import Any, Optional

from .config import HotelSettings


class StandardLogger:
    """Реализация ILogger: сообщение плюс контекст в виде JSON."""

    def __init__(self, name: str = "hotel", logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(name)

    def _render(self, message: str, context: dict) -> str:
        if not context:
            return message
        return f"{message} {json.dumps(context, default=str, ensure_ascii=False)}"

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._render(message, kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(self._render(message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._render(message, kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._render(message, kwargs))


def configure_logging(settings: HotelSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

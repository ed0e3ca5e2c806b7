"""
Интерфейсы (порты) общего ядра.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Protocol

Document = Dict[str, Any]
SnapshotHandler = Callable[[List[Mapping[str, Any]]], None]
Unsubscribe = Callable[[], None]


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class ISnapshotFeed(Protocol):
    """
    Подписка на изменения коллекции.

    При подписке и при каждом изменении обработчик получает полный
    текущий набор документов, а не дельту.
    """

    def subscribe(self, handler: SnapshotHandler) -> Unsubscribe: ...
    def snapshot(self) -> List[Document]: ...

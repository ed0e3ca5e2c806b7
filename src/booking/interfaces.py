"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol

from shared_kernel import EntityId
from shared_kernel.interfaces import Document, ISnapshotFeed


class IReservationStore(ISnapshotFeed, Protocol):
    """
    Хранилище бронирований с подпиской на полные снимки.

    create пишет без проверок, create_if_available - условная вставка
    для строгого режима.
    """

    def create(self, document: Document) -> EntityId: ...
    def create_if_available(
        self, document: Document, room: str, nights: Iterable[date]
    ) -> EntityId: ...
    def get(self, reservation_id: EntityId) -> Document | None: ...
    def update(self, reservation_id: EntityId, changes: Document) -> Document: ...

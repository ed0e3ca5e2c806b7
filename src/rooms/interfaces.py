"""
Интерфейсы (порты) для контекста номеров.
"""

from __future__ import annotations

from typing import List, Protocol

from shared_kernel import EntityId, MaintenanceStatus
from shared_kernel.interfaces import Document, ISnapshotFeed

from .domain import RoomType


class IRoomTypeCatalog(Protocol):
    """Каталог типов номеров."""

    def get(self, name: str) -> RoomType: ...
    def find(self, name: str) -> RoomType | None: ...
    def list(self) -> List[RoomType]: ...


class IMaintenanceStore(ISnapshotFeed, Protocol):
    """Хранилище окон обслуживания с подпиской на изменения."""

    def add(self, document: Document) -> EntityId: ...
    def set_status(self, window_id: EntityId, status: MaintenanceStatus) -> Document: ...

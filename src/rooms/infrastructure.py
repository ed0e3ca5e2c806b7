"""
Инфраструктурный слой контекста номеров.

Каталог типов номеров и хранилище окон обслуживания в памяти.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError
from shared_kernel import EntityId, MaintenanceStatus, RoomTypeNotFoundError
from shared_kernel.infrastructure import InMemoryCollection
from shared_kernel.interfaces import Document, ILogger, SnapshotHandler, Unsubscribe
from shared_kernel.logger import StandardLogger

from .domain import ACTIVE_MAINTENANCE_STATUSES, MaintenanceWindow, RoomType


class InMemoryRoomTypeCatalog:
    """Каталог типов номеров в памяти. Имя уникально: при дублях побеждает последний."""

    def __init__(
        self,
        rooms: Iterable[Union[RoomType, Mapping[str, Any]]] = (),
        logger: Optional[ILogger] = None,
    ):
        self._rooms: Dict[str, RoomType] = {}
        self._logger = logger or StandardLogger(__name__)
        for room in rooms:
            self.add(room)

    def add(self, room: Union[RoomType, Mapping[str, Any]]) -> Optional[RoomType]:
        """Добавляет или заменяет тип номера; непригодный документ пропускается."""
        if not isinstance(room, RoomType):
            try:
                room = RoomType.from_document(room)
            except ValidationError as e:
                self._logger.warning(
                    "Skipping invalid room type document",
                    name=room.get("name"),
                    error=str(e),
                )
                return None
        self._rooms[room.name] = room
        return room

    def remove(self, name: str) -> bool:
        return self._rooms.pop(name, None) is not None

    def find(self, name: str) -> Optional[RoomType]:
        return self._rooms.get(name)

    def get(self, name: str) -> RoomType:
        room = self._rooms.get(name)
        if room is None:
            raise RoomTypeNotFoundError(name)
        return room

    def list(self) -> List[RoomType]:
        return list(self._rooms.values())


def _is_active_maintenance(document: Document) -> bool:
    return document.get("status") in {s.value for s in ACTIVE_MAINTENANCE_STATUSES}


class InMemoryMaintenanceStore:
    """
    Хранилище окон обслуживания.

    Подписчики получают только активные окна (pending и in-progress),
    как при запросе с фильтром по статусу.
    """

    def __init__(self, file_path: Optional[str] = None, logger: Optional[ILogger] = None):
        self._logger = logger or StandardLogger(__name__)
        self._collection = InMemoryCollection(
            "maintenance",
            file_path=file_path,
            logger=self._logger,
            snapshot_filter=_is_active_maintenance,
        )

    def subscribe(self, handler: SnapshotHandler) -> Unsubscribe:
        return self._collection.subscribe(handler)

    def snapshot(self) -> List[Document]:
        return self._collection.snapshot()

    def add(self, document: Document) -> EntityId:
        doc = dict(document)
        doc.setdefault("status", MaintenanceStatus.PENDING.value)
        window_id = self._collection.insert(doc)
        self._logger.info("Maintenance window added", id=window_id, room=doc.get("room"))
        return window_id

    def add_window(self, window: MaintenanceWindow) -> EntityId:
        """Сохраняет окно обслуживания в формате документа."""
        doc: Document = {
            "room": window.room_type_name,
            "status": window.status.value,
            "issue": window.issue,
        }
        schedule = window.schedule
        if schedule.kind == "range":
            doc["start"] = schedule.start.isoformat()
            doc["end"] = schedule.end.isoformat()
        elif schedule.kind == "due_date":
            doc["dueDate"] = schedule.due_date.isoformat()
        if window.id:
            doc["id"] = window.id
        return self.add(doc)

    def set_status(self, window_id: EntityId, status: MaintenanceStatus) -> Document:
        """Меняет статус окна с проверкой допустимости перехода."""
        status = MaintenanceStatus(status)
        doc = self._collection.get(window_id)
        if doc is None:
            raise KeyError(f"Окно обслуживания {window_id} не найдено")
        window = MaintenanceWindow.from_document(doc)
        if window is None:
            raise ValueError(f"Окно обслуживания {window_id} повреждено")

        if status == MaintenanceStatus.IN_PROGRESS:
            window.start_work()
        elif status == MaintenanceStatus.COMPLETED:
            window.complete()
        else:
            window.status = status

        self._logger.info("Maintenance status changed", id=window_id, status=status.value)
        return self._collection.update(window_id, {"status": window.status.value})

"""
Инфраструктурный слой контекста бронирования.

Содержит хранилище бронирований в памяти, рассылающее полные снимки.
"""

import threading
from datetime import date, timezone, tzinfo
from typing import Iterable, List, Optional, Set

from shared_kernel import (
    ConcurrencyException,
    EntityId,
    ReservationNotFoundError,
    ReservationStatus,
    parse_instant,
)
from shared_kernel.infrastructure import InMemoryCollection
from shared_kernel.interfaces import Document, ILogger, SnapshotHandler, Unsubscribe
from shared_kernel.logger import StandardLogger

from .domain import stay_nights


class InMemoryReservationStore:
    """Реализация хранилища бронирований в памяти."""

    def __init__(
        self,
        file_path: Optional[str] = None,
        logger: Optional[ILogger] = None,
        tz: tzinfo = timezone.utc,
    ):
        self._logger = logger or StandardLogger(__name__)
        self._collection = InMemoryCollection(
            "bookings", file_path=file_path, logger=self._logger
        )
        self._tz = tz
        self._lock = threading.Lock()

    def subscribe(self, handler: SnapshotHandler) -> Unsubscribe:
        return self._collection.subscribe(handler)

    def snapshot(self) -> List[Document]:
        return self._collection.snapshot()

    def get(self, reservation_id: EntityId) -> Optional[Document]:
        return self._collection.get(reservation_id)

    def create(self, document: Document) -> EntityId:
        """Сохраняет бронирование без каких-либо проверок доступности."""
        reservation_id = self._collection.insert(document)
        self._logger.info(
            "Reservation stored", id=reservation_id, room=document.get("room")
        )
        return reservation_id

    def create_if_available(
        self, document: Document, room: str, nights: Iterable[date]
    ) -> EntityId:
        """
        Условная вставка: ночи номера не должны быть заняты
        ни одним неотмененным бронированием.
        """
        wanted = set(nights)
        with self._lock:
            taken = wanted & self._claimed_nights(room)
            if taken:
                raise ConcurrencyException(
                    f"Ночи {sorted(d.isoformat() for d in taken)} "
                    f"номера '{room}' уже заняты"
                )
            return self.create(document)

    def _claimed_nights(self, room: str) -> Set[date]:
        claimed: Set[date] = set()
        for doc in self._collection.snapshot():
            if doc.get("room") != room:
                continue
            if doc.get("status") == ReservationStatus.CANCELLED.value:
                continue
            start = parse_instant(doc.get("checkIn"), self._tz)
            end = parse_instant(doc.get("checkOut"), self._tz)
            if start is None or end is None or end <= start:
                continue
            claimed.update(stay_nights(start, end, self._tz))
        return claimed

    def update(self, reservation_id: EntityId, changes: Document) -> Document:
        try:
            return self._collection.update(reservation_id, changes)
        except KeyError:
            raise ReservationNotFoundError(reservation_id)

    def delete(self, reservation_id: EntityId) -> bool:
        """Ручное удаление администратором, не часть жизненного цикла."""
        return self._collection.delete(reservation_id)

"""
Прикладной слой контекста номеров.

Панель администратора: статус каждого типа номера, сводные счетчики,
заезды и выезды за день, просроченные выезды.
"""

from collections import Counter
from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Mapping, Optional

from booking.domain import build_reservation_index
from pydantic import BaseModel
from shared_kernel import ReservationStatus, RoomStatus, parse_day
from shared_kernel.interfaces import ILogger, ISnapshotFeed
from shared_kernel.logger import StandardLogger

from .domain import (
    DashboardSummary,
    RoomOccupancy,
    build_maintenance_index,
    room_status,
    summarize_rooms,
)
from .interfaces import IRoomTypeCatalog


class RoomStatusDTO(BaseModel):
    """DTO статуса типа номера."""

    name: str
    slug: str
    status: RoomStatus
    under_maintenance: bool
    active_booking_count: int


class DashboardDTO(BaseModel):
    """DTO панели администратора."""

    summary: DashboardSummary
    rooms: List[RoomStatusDTO]
    reservations_by_status: Dict[ReservationStatus, int]
    check_ins_today: int
    check_outs_today: int
    overdue_check_outs: int


class DashboardService:
    """Сервис приложения для панели администратора."""

    def __init__(
        self,
        catalog: IRoomTypeCatalog,
        reservations: ISnapshotFeed,
        maintenance: ISnapshotFeed,
        tz: tzinfo,
        logger: Optional[ILogger] = None,
    ):
        self._catalog = catalog
        self._reservations = reservations
        self._maintenance = maintenance
        self._tz = tz
        self._logger = logger or StandardLogger(__name__)

    def room_statuses(self, moment: datetime) -> List[RoomOccupancy]:
        """Статус каждого типа номера на момент moment."""
        day = moment.astimezone(self._tz).date()
        reservation_index = build_reservation_index(
            self._reservations.snapshot(), self._tz
        )
        maintenance_index = build_maintenance_index(
            self._maintenance.snapshot(), day, self._tz
        )
        return [
            room_status(room.name, moment, reservation_index, maintenance_index)
            for room in self._catalog.list()
        ]

    def dashboard(self, moment: datetime) -> DashboardDTO:
        statuses = self.room_statuses(moment)
        rooms = {room.name: room for room in self._catalog.list()}
        documents = self._reservations.snapshot()
        day = moment.astimezone(self._tz).date()

        summary = summarize_rooms(statuses)
        self._logger.debug(
            "Dashboard refreshed",
            rooms=summary.total,
            occupied=summary.occupied,
            under_maintenance=summary.under_maintenance,
        )
        return DashboardDTO(
            summary=summary,
            rooms=[
                RoomStatusDTO(
                    name=s.room_type_name,
                    slug=rooms[s.room_type_name].slug,
                    status=s.status,
                    under_maintenance=s.under_maintenance,
                    active_booking_count=s.active_booking_count,
                )
                for s in statuses
            ],
            reservations_by_status=count_by_status(documents),
            check_ins_today=self._count_confirmed_on(documents, "checkIn", day),
            check_outs_today=self._count_confirmed_on(documents, "checkOut", day),
            overdue_check_outs=self._count_overdue(documents, day),
        )

    def _count_confirmed_on(
        self, documents: List[Mapping[str, Any]], field: str, day: date
    ) -> int:
        return sum(
            1
            for doc in documents
            if doc.get("status") == ReservationStatus.CONFIRMED.value
            and parse_day(doc.get(field), self._tz) == day
        )

    def _count_overdue(self, documents: List[Mapping[str, Any]], day: date) -> int:
        """Подтвержденные бронирования, чей день выезда уже прошел."""
        count = 0
        for doc in documents:
            if doc.get("status") != ReservationStatus.CONFIRMED.value:
                continue
            check_out = parse_day(doc.get("checkOut"), self._tz)
            if check_out is not None and check_out < day:
                count += 1
        return count


def count_by_status(documents: List[Mapping[str, Any]]) -> Dict[ReservationStatus, int]:
    counts = Counter(doc.get("status") for doc in documents)
    return {status: counts.get(status.value, 0) for status in ReservationStatus}

"""
Доменная модель контекста номеров.

Содержит каталог типов номеров, окна технического обслуживания
и агрегатор статусов номеров для панели администратора.
"""

import re
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from shared_kernel import (
    EntityId,
    Interval,
    IntervalIndex,
    InvalidStatusTransition,
    MaintenanceStatus,
    PricingMode,
    RoomStatus,
    parse_day,
    parse_instant,
)

ACTIVE_MAINTENANCE_STATUSES = (MaintenanceStatus.PENDING, MaintenanceStatus.IN_PROGRESS)

DEFAULT_MAX_GUESTS = 2


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


class RoomType(BaseModel):
    """Тип номера. Бронируется и тарифицируется как единое целое."""

    name: str = Field(..., min_length=1)
    nightly_rate: Decimal = Field(..., gt=0)
    capacity: int = Field(..., gt=0)
    pricing_mode: PricingMode = PricingMode.PER_ROOM
    description: str = ""
    id: Optional[EntityId] = None

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "RoomType":
        """
        Создает тип номера из документа каталога.

        Поддерживает старый формат: цена строкой с разделителями
        ("1,200.00"), необязательное числовое priceNumber и непустой
        маркер perBed ("/ Bed") для тарификации за место.
        """
        rate = _parse_rate(doc.get("priceNumber")) or _parse_rate(doc.get("price"))
        if doc.get("pricingMode"):
            mode = doc["pricingMode"]
        else:
            mode = PricingMode.PER_BED if doc.get("perBed") else PricingMode.PER_ROOM
        return cls(
            id=doc.get("id"),
            name=doc.get("name", ""),
            nightly_rate=rate or Decimal("0"),
            capacity=doc.get("maxGuests") or DEFAULT_MAX_GUESTS,
            pricing_mode=mode,
            description=doc.get("description") or "",
        )


def _parse_rate(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        rate = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        return None
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


# Форма расписания обслуживания: размеченное объединение трех вариантов


class ExplicitRange(BaseModel):
    """Явно заданный интервал обслуживания."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = "range"
    start: datetime
    end: datetime


class DueDateOnly(BaseModel):
    """Только срок: блокируется весь этот день."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["due_date"] = "due_date"
    due_date: date


class Undated(BaseModel):
    """Старые записи без дат: блокируется только сегодняшний день."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["undated"] = "undated"


MaintenanceSchedule = Union[ExplicitRange, DueDateOnly, Undated]


def resolve_schedule(
    schedule: MaintenanceSchedule, today: date, tz: tzinfo = timezone.utc
) -> Interval:
    """Превращает расписание обслуживания в интервал блокировки."""
    if isinstance(schedule, ExplicitRange):
        return Interval(start=schedule.start, end=schedule.end)
    if isinstance(schedule, DueDateOnly):
        return Interval.for_day(schedule.due_date, tz)
    return Interval.for_day(today, tz)


def schedule_from_document(
    doc: Mapping[str, Any], tz: tzinfo = timezone.utc
) -> Optional[MaintenanceSchedule]:
    """
    Определяет форму расписания по полям документа.

    Приоритет: start и end, затем dueDate, затем отсутствие дат.
    Присутствующие, но нечитаемые поля дают None: запись пропускается,
    а не понижается до следующего варианта.
    """
    if doc.get("start") and doc.get("end"):
        start = parse_instant(doc["start"], tz)
        end = parse_instant(doc["end"], tz)
        if start is None or end is None:
            return None
        return ExplicitRange(start=start, end=end)
    if doc.get("dueDate"):
        due_date = parse_day(doc["dueDate"], tz)
        if due_date is None:
            return None
        return DueDateOnly(due_date=due_date)
    return Undated()


class MaintenanceWindow(BaseModel):
    """Окно технического обслуживания типа номера."""

    id: Optional[EntityId] = None
    room_type_name: str = Field(..., min_length=1)
    status: MaintenanceStatus = MaintenanceStatus.PENDING
    schedule: MaintenanceSchedule = Field(default_factory=Undated, discriminator="kind")
    issue: str = ""

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_MAINTENANCE_STATUSES

    def start_work(self) -> None:
        """Переводит обслуживание в работу."""
        if self.status != MaintenanceStatus.PENDING:
            raise InvalidStatusTransition(
                f"Невозможно начать обслуживание в статусе {self.status.value}"
            )
        self.status = MaintenanceStatus.IN_PROGRESS

    def complete(self) -> None:
        """Завершает обслуживание. Само по себе окно никогда не истекает."""
        if not self.is_active:
            raise InvalidStatusTransition(
                f"Невозможно завершить обслуживание в статусе {self.status.value}"
            )
        self.status = MaintenanceStatus.COMPLETED

    def interval(self, today: date, tz: tzinfo = timezone.utc) -> Interval:
        return resolve_schedule(self.schedule, today, tz)

    @classmethod
    def from_document(
        cls, doc: Mapping[str, Any], tz: tzinfo = timezone.utc
    ) -> Optional["MaintenanceWindow"]:
        """Разбирает документ; для непригодных записей возвращает None."""
        schedule = schedule_from_document(doc, tz)
        if schedule is None:
            return None
        try:
            return cls(
                id=doc.get("id"),
                room_type_name=doc.get("room") or "",
                status=doc.get("status"),
                schedule=schedule,
                issue=doc.get("issue") or "",
            )
        except ValidationError:
            return None


def build_maintenance_index(
    records: Iterable[Union[MaintenanceWindow, Mapping[str, Any]]],
    today: date,
    tz: tzinfo = timezone.utc,
) -> IntervalIndex:
    """
    Строит индекс заблокированных интервалов по типам номеров.

    Учитываются только окна в статусах pending и in-progress.
    Непригодные записи пропускаются молча.
    """
    index: IntervalIndex = {}
    for record in records:
        window = (
            record
            if isinstance(record, MaintenanceWindow)
            else MaintenanceWindow.from_document(record, tz)
        )
        if window is None or not window.is_active:
            continue
        interval = window.interval(today, tz)
        if not interval.is_valid:
            continue
        index.setdefault(window.room_type_name, []).append(interval)
    return index


class RoomOccupancy(BaseModel):
    """Статус одного типа номера на момент времени."""

    room_type_name: str
    under_maintenance: bool
    active_booking_count: int = Field(..., ge=0)

    @property
    def status(self) -> RoomStatus:
        if self.under_maintenance:
            return RoomStatus.MAINTENANCE
        if self.active_booking_count > 0:
            return RoomStatus.OCCUPIED
        return RoomStatus.AVAILABLE


def room_status(
    room_type_name: str,
    today: datetime,
    reservation_index: IntervalIndex,
    maintenance_index: IntervalIndex,
) -> RoomOccupancy:
    """Обслуживание и число активных бронирований на момент today."""
    under_maintenance = any(
        interval.contains(today)
        for interval in maintenance_index.get(room_type_name, [])
    )
    active = sum(
        1
        for interval in reservation_index.get(room_type_name, [])
        if interval.contains(today)
    )
    return RoomOccupancy(
        room_type_name=room_type_name,
        under_maintenance=under_maintenance,
        active_booking_count=active,
    )


class DashboardSummary(BaseModel):
    """Сводка по всем типам номеров."""

    total: int
    available: int
    occupied: int
    under_maintenance: int
    occupancy_rate: int  # Проценты, округленные до целого

    @model_validator(mode="after")
    def counts_within_total(self) -> "DashboardSummary":
        if max(self.available, self.occupied, self.under_maintenance) > self.total:
            raise ValueError("Счетчики не могут превышать общее число номеров")
        return self


def summarize_rooms(statuses: Iterable[RoomOccupancy]) -> DashboardSummary:
    statuses = list(statuses)
    total = len(statuses)
    occupied = sum(1 for s in statuses if s.active_booking_count > 0)
    under_maintenance = sum(1 for s in statuses if s.under_maintenance)
    available = sum(
        1 for s in statuses if not s.under_maintenance and s.active_booking_count == 0
    )
    occupancy_rate = round(occupied / total * 100) if total else 0
    return DashboardSummary(
        total=total,
        available=available,
        occupied=occupied,
        under_maintenance=under_maintenance,
        occupancy_rate=occupancy_rate,
    )

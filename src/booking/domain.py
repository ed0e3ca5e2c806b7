"""
Доменная модель контекста бронирования.

Содержит агрегат бронирования, построение индекса занятых интервалов
и проверку конфликтов с бронированиями и обслуживанием.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pricing.domain import PriceBreakdown
from shared_kernel import (
    BusinessRuleValidationException,
    EntityId,
    Interval,
    IntervalIndex,
    InvalidStatusTransition,
    ReservationStatus,
    now,
    parse_instant,
)

RESERVATION_CONFLICT_MESSAGE = (
    "Выбранные даты пересекаются с существующим бронированием этого номера. "
    "День выезда свободен для нового заезда."
)
MAINTENANCE_CONFLICT_MESSAGE = (
    "Выбранные даты пересекаются с периодом обслуживания. "
    "Бронирование на время обслуживания невозможно."
)


class GuestInfo(BaseModel):
    """Контактные данные гостя."""

    name: str
    surname: str = ""
    email: str = ""
    phone: str = ""
    address: Dict[str, Any] = Field(default_factory=dict)  # Страна, регион, город


class Reservation(BaseModel):
    """Бронирование типа номера."""

    id: Optional[EntityId] = None
    room_type_name: str = Field(..., min_length=1)
    check_in: datetime
    check_out: datetime
    guest_count: int = Field(..., gt=0)
    status: ReservationStatus = ReservationStatus.PENDING
    # Снимок цены на момент создания, не пересчитывается
    payment: PriceBreakdown
    guest: GuestInfo
    special_requests: Optional[str] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "Reservation":
        if self.check_out <= self.check_in:
            raise ValueError("Дата выезда должна быть позже даты заезда")
        return self

    @property
    def interval(self) -> Interval:
        return Interval(start=self.check_in, end=self.check_out)

    @property
    def occupies_room(self) -> bool:
        """Номер занимают только подтвержденные бронирования."""
        return self.status == ReservationStatus.CONFIRMED

    def confirm(self, at: Optional[datetime] = None) -> None:
        """Подтверждает бронирование."""
        if self.status != ReservationStatus.PENDING:
            raise InvalidStatusTransition(
                f"Невозможно подтвердить бронирование в статусе {self.status.value}"
            )
        self.status = ReservationStatus.CONFIRMED
        self.updated_at = at or now()

    def cancel(self, at: Optional[datetime] = None) -> None:
        """Отменяет бронирование."""
        if self.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            raise InvalidStatusTransition(
                f"Невозможно отменить бронирование в статусе {self.status.value}"
            )
        self.status = ReservationStatus.CANCELLED
        self.updated_at = at or now()

    def complete(self, at: Optional[datetime] = None) -> None:
        """Завершает бронирование после выезда гостя."""
        if self.status != ReservationStatus.CONFIRMED:
            raise InvalidStatusTransition(
                f"Невозможно завершить бронирование в статусе {self.status.value}"
            )
        self.status = ReservationStatus.COMPLETED
        self.updated_at = at or now()
        self.completed_at = self.updated_at

    def to_document(self) -> Dict[str, Any]:
        """Документ в формате хранилища."""
        doc: Dict[str, Any] = {
            "room": self.room_type_name,
            "checkIn": self.check_in.isoformat(),
            "checkOut": self.check_out.isoformat(),
            "guests": self.guest_count,
            "status": self.status.value,
            "payment": self.payment.to_document(),
            "name": self.guest.name,
            "surname": self.guest.surname,
            "email": self.guest.email,
            "phone": self.guest.phone,
            "specialRequests": self.special_requests,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        doc.update(self.guest.address)
        if self.completed_at is not None:
            doc["completedAt"] = self.completed_at.isoformat()
        if self.id is not None:
            doc["id"] = self.id
        return doc

    @classmethod
    def from_document(
        cls, doc: Mapping[str, Any], tz: tzinfo = timezone.utc
    ) -> "Reservation":
        """Восстанавливает бронирование из документа хранилища."""
        return cls(
            id=doc.get("id"),
            room_type_name=doc.get("room") or "",
            check_in=parse_instant(doc.get("checkIn"), tz),
            check_out=parse_instant(doc.get("checkOut"), tz),
            guest_count=int(doc.get("guests") or 1),
            status=doc.get("status", ReservationStatus.PENDING.value),
            payment=PriceBreakdown.from_document(doc["payment"]),
            guest=GuestInfo(
                name=doc.get("name") or "",
                surname=doc.get("surname") or "",
                email=doc.get("email") or "",
                phone=doc.get("phone") or "",
            ),
            special_requests=doc.get("specialRequests"),
            created_at=parse_instant(doc.get("createdAt"), tz) or now(tz),
            updated_at=parse_instant(doc.get("updatedAt"), tz) or now(tz),
            completed_at=parse_instant(doc.get("completedAt"), tz),
        )


def _confirmed_interval(
    record: Union[Reservation, Mapping[str, Any]], tz: tzinfo
) -> Optional[Tuple[str, Interval]]:
    """Пара (имя номера, интервал) для подтвержденной записи или None."""
    if isinstance(record, Reservation):
        if not record.occupies_room:
            return None
        return record.room_type_name, record.interval

    if record.get("status") != ReservationStatus.CONFIRMED.value:
        return None
    room = record.get("room")
    start = parse_instant(record.get("checkIn"), tz)
    end = parse_instant(record.get("checkOut"), tz)
    if not room or start is None or end is None:
        return None
    return room, Interval(start=start, end=end)


def build_reservation_index(
    records: Iterable[Union[Reservation, Mapping[str, Any]]],
    tz: tzinfo = timezone.utc,
) -> IntervalIndex:
    """
    Строит индекс занятых интервалов по типам номеров.

    Учитываются только подтвержденные бронирования. Записи без номера,
    с отсутствующими или нечитаемыми датами пропускаются молча, чтобы
    одна испорченная запись не ломала расчет доступности для остальных.
    """
    index: IntervalIndex = {}
    for record in records:
        entry = _confirmed_interval(record, tz)
        if entry is None:
            continue
        room, interval = entry
        if not interval.is_valid:
            continue
        index.setdefault(room, []).append(interval)
    return index


class ConflictKind(str, Enum):
    NONE = "none"
    RESERVATION = "reservation"
    MAINTENANCE = "maintenance"


class ConflictResult(BaseModel):
    """
    Результат проверки конфликтов.

    Конфликт с бронированием и конфликт с обслуживанием сообщаются
    независимо: при обоих конфликтах вызывающий показывает оба предупреждения.
    """

    model_config = ConfigDict(frozen=True)

    room_type_name: str
    candidate: Interval
    reservation_conflict: bool = False
    maintenance_conflict: bool = False

    @property
    def is_clear(self) -> bool:
        return not (self.reservation_conflict or self.maintenance_conflict)

    @property
    def kind(self) -> ConflictKind:
        """Первый из найденных конфликтов; бронирования проверяются первыми."""
        if self.reservation_conflict:
            return ConflictKind.RESERVATION
        if self.maintenance_conflict:
            return ConflictKind.MAINTENANCE
        return ConflictKind.NONE

    @property
    def kinds(self) -> List[ConflictKind]:
        kinds = []
        if self.reservation_conflict:
            kinds.append(ConflictKind.RESERVATION)
        if self.maintenance_conflict:
            kinds.append(ConflictKind.MAINTENANCE)
        return kinds

    def messages(self) -> List[str]:
        messages = []
        if self.reservation_conflict:
            messages.append(RESERVATION_CONFLICT_MESSAGE)
        if self.maintenance_conflict:
            messages.append(MAINTENANCE_CONFLICT_MESSAGE)
        return messages


def check_conflict(
    room_type_name: str,
    candidate: Interval,
    reservation_index: IntervalIndex,
    maintenance_index: IntervalIndex,
) -> ConflictResult:
    """
    Проверяет интервал на пересечение с бронированиями и обслуживанием.

    Некорректный интервал (выезд не позже заезда) отклоняется
    с InvalidIntervalError, а не считается свободным.
    """
    candidate.require_valid()
    reservation_conflict = any(
        candidate.overlaps(interval)
        for interval in reservation_index.get(room_type_name, [])
    )
    maintenance_conflict = any(
        candidate.overlaps(interval)
        for interval in maintenance_index.get(room_type_name, [])
    )
    return ConflictResult(
        room_type_name=room_type_name,
        candidate=candidate,
        reservation_conflict=reservation_conflict,
        maintenance_conflict=maintenance_conflict,
    )


def safe_reservation(
    doc: Mapping[str, Any], tz: tzinfo = timezone.utc
) -> Optional[Reservation]:
    """Как Reservation.from_document, но для непригодных документов возвращает None."""
    try:
        return Reservation.from_document(doc, tz)
    except (ValidationError, KeyError, TypeError, ValueError):
        return None


def stay_nights(check_in: datetime, check_out: datetime, tz: tzinfo = timezone.utc) -> List[date]:
    """
    Календарные ночи проживания: от дня заезда до дня выезда, не включая его.

    Используются как ключи условной вставки в строгом режиме.
    """
    first = check_in.astimezone(tz).date()
    last = check_out.astimezone(tz).date()
    nights = []
    day = first
    while day < last:
        nights.append(day)
        day += timedelta(days=1)
    return nights or [first]


class ReservationConflictError(BusinessRuleValidationException):
    """Выбранные даты заняты бронированием и/или обслуживанием."""

    def __init__(self, conflict: ConflictResult):
        super().__init__(" ".join(conflict.messages()))
        self.conflict = conflict

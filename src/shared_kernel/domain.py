"""
Основные доменные типы и утилиты общего ядра.

Здесь живут полуоткрытый интервал времени, разбор моментов времени
из документов хранилища, общие перечисления и иерархия исключений.
"""

import math
from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

# Идентификаторы документов генерирует хранилище, поэтому это строки
EntityId = str


_INSTANT = TypeAdapter(datetime)
_DAY = TypeAdapter(date)


def generate_id() -> EntityId:
    """Генерирует новый идентификатор документа."""
    return uuid4().hex


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class ConcurrencyException(DomainException):
    """Исключение при проигранной условной вставке."""

    pass


class BusinessRuleValidationException(DomainException):
    """Исключение при нарушении бизнес-правил."""

    pass


class InvalidIntervalError(BusinessRuleValidationException):
    """Дата выезда не позже даты заезда."""

    def __init__(self, start: Any, end: Any):
        super().__init__(
            f"Дата выезда ({end}) должна быть позже даты заезда ({start})"
        )
        self.start = start
        self.end = end


class InvalidStatusTransition(BusinessRuleValidationException):
    """Недопустимая смена статуса."""

    pass


class RoomTypeNotFoundError(DomainException):
    """Тип номера отсутствует в каталоге."""

    def __init__(self, room_name: str):
        super().__init__(f"Тип номера '{room_name}' не найден")
        self.room_name = room_name


class ReservationNotFoundError(DomainException):
    """Бронирование не найдено."""

    def __init__(self, reservation_id: EntityId):
        super().__init__(f"Бронирование {reservation_id} не найдено")
        self.reservation_id = reservation_id


class Interval(BaseModel):
    """
    Полуоткрытый интервал [start, end).

    Вырожденный интервал (end <= start) можно создать, но он ни с чем
    не пересекается и не считается корректным.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @classmethod
    def for_day(cls, day: date, tz: tzinfo = timezone.utc) -> "Interval":
        """Интервал, покрывающий календарный день целиком."""
        return cls(
            start=datetime.combine(day, time.min, tzinfo=tz),
            end=datetime.combine(day, time.max, tzinfo=tz),
        )

    @property
    def is_valid(self) -> bool:
        return self.end > self.start

    def require_valid(self) -> "Interval":
        """Возвращает интервал или бросает InvalidIntervalError."""
        if not self.is_valid:
            raise InvalidIntervalError(self.start, self.end)
        return self

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)

    def contains(self, instant: datetime) -> bool:
        return self.is_valid and self.start <= instant < self.end


# Индекс интервалов по имени типа номера
IntervalIndex = Dict[str, List[Interval]]


def overlaps(a: Interval, b: Interval) -> bool:
    """Пересекаются ли два полуоткрытых интервала. День выезда не занят."""
    if not (a.is_valid and b.is_valid):
        return False
    return a.start < b.end and b.start < a.end


def parse_instant(value: Any, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """
    Разбирает момент времени из поля документа.

    Принимает datetime, date, ISO-строки и числа (epoch). Для пустых,
    нечитаемых и бесконечных значений возвращает None. Время без зоны
    считается временем в зоне tz.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None

    if isinstance(value, date) and not isinstance(value, datetime):
        parsed = datetime.combine(value, time.min)
    else:
        try:
            parsed = _INSTANT.validate_python(value)
        except ValidationError:
            try:
                parsed = datetime.combine(_DAY.validate_python(value), time.min)
            except ValidationError:
                return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def parse_day(value: Any, tz: tzinfo = timezone.utc) -> Optional[date]:
    """Календарный день момента времени в зоне tz."""
    instant = parse_instant(value, tz)
    if instant is None:
        return None
    return instant.astimezone(tz).date()


# Общие перечисления
class ReservationStatus(str, Enum):
    """Статусы бронирования."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class MaintenanceStatus(str, Enum):
    """Статусы обслуживания номера."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class PricingMode(str, Enum):
    """Режим тарификации."""

    PER_ROOM = "per_room"
    PER_BED = "per_bed"  # Общежитие: цена за место


class RoomStatus(str, Enum):
    """Статусы типа номера на панели администратора."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


# Общие утилиты
def now(tz: tzinfo = timezone.utc) -> datetime:
    """Возвращает текущий момент времени."""
    return datetime.now(tz)


def today(tz: tzinfo = timezone.utc) -> date:
    """Возвращает текущую дату в зоне tz."""
    return now(tz).date()

"""
Общее ядро (Shared Kernel) движка доступности номеров.

Содержит общие типы данных и утилиты, используемые в различных ограниченных контекстах.
"""

from .config import HotelSettings, get_settings
from .domain import (
    BusinessRuleValidationException,
    ConcurrencyException,
    DomainException,
    EntityId,
    Interval,
    IntervalIndex,
    InvalidIntervalError,
    InvalidStatusTransition,
    MaintenanceStatus,
    PricingMode,
    ReservationNotFoundError,
    ReservationStatus,
    RoomStatus,
    RoomTypeNotFoundError,
    generate_id,
    now,
    overlaps,
    parse_day,
    parse_instant,
    today,
)
from .logger import StandardLogger, configure_logging

__all__ = [
    # Базовые типы
    "EntityId",
    "generate_id",
    # Основные классы
    "Interval",
    "IntervalIndex",
    "overlaps",
    # Перечисления
    "ReservationStatus",
    "MaintenanceStatus",
    "PricingMode",
    "RoomStatus",
    # Исключения
    "DomainException",
    "ConcurrencyException",
    "BusinessRuleValidationException",
    "InvalidIntervalError",
    "InvalidStatusTransition",
    "RoomTypeNotFoundError",
    "ReservationNotFoundError",
    # Утилиты
    "parse_instant",
    "parse_day",
    "now",
    "today",
    # Настройки и логирование
    "HotelSettings",
    "get_settings",
    "StandardLogger",
    "configure_logging",
]

"""
Конфигурация тестов для pytest.
Добавляет каталог src в PYTHONPATH и общие фикстуры.
"""
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

# Добавляем каталог с исходниками в PYTHONPATH
root_dir = str(Path(__file__).parent.parent / "src")
if root_dir not in sys.path:
    sys.path.insert(0, root_dir)

from booking.application import BookingApplicationService  # noqa: E402
from booking.infrastructure import InMemoryReservationStore  # noqa: E402
from rooms.domain import RoomType  # noqa: E402
from rooms.infrastructure import (  # noqa: E402
    InMemoryMaintenanceStore,
    InMemoryRoomTypeCatalog,
)
from shared_kernel import HotelSettings, PricingMode  # noqa: E402

# Все тесты живут в июне 2024 года по UTC
NOW = datetime(2024, 6, 10, 8, 0, tzinfo=timezone.utc)


def at(day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Момент времени в июне 2024 года (UTC)."""
    return datetime(2024, 6, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> HotelSettings:
    return HotelSettings(_env_file=None, timezone="UTC")


@pytest.fixture
def deluxe() -> RoomType:
    return RoomType(name="Deluxe", nightly_rate=Decimal("1000"), capacity=2)


@pytest.fixture
def dormitory() -> RoomType:
    return RoomType(
        name="Dormitory",
        nightly_rate=Decimal("500"),
        capacity=4,
        pricing_mode=PricingMode.PER_BED,
    )


@pytest.fixture
def catalog(deluxe, dormitory) -> InMemoryRoomTypeCatalog:
    return InMemoryRoomTypeCatalog([deluxe, dormitory])


@pytest.fixture
def reservation_store() -> InMemoryReservationStore:
    return InMemoryReservationStore()


@pytest.fixture
def maintenance_store() -> InMemoryMaintenanceStore:
    return InMemoryMaintenanceStore()


@pytest.fixture
def booking_service(reservation_store, maintenance_store, catalog, settings):
    service = BookingApplicationService(
        reservations=reservation_store,
        maintenance=maintenance_store,
        catalog=catalog,
        settings=settings,
        clock=lambda: NOW,
    )
    service.start()
    yield service
    service.stop()


def confirmed_doc(room: str, check_in: datetime, check_out: datetime, **extra) -> dict:
    """Документ подтвержденного бронирования в формате хранилища."""
    doc = {
        "room": room,
        "checkIn": check_in.isoformat(),
        "checkOut": check_out.isoformat(),
        "status": "confirmed",
        "guests": 2,
    }
    doc.update(extra)
    return doc

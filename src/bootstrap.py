from typing import Any, Dict, Iterable, Mapping, Optional

from booking.application import BookingApplicationService
from booking.infrastructure import InMemoryReservationStore
from pricing.application import RevenueApplicationService
from pricing.domain import PricingCalculator
from rooms.application import DashboardService
from rooms.infrastructure import InMemoryMaintenanceStore, InMemoryRoomTypeCatalog
from shared_kernel import HotelSettings, StandardLogger, configure_logging, get_settings


def bootstrap_app(
    settings: Optional[HotelSettings] = None,
    rooms: Iterable[Mapping[str, Any]] = (),
    data_dir: Optional[str] = None,
) -> Dict[str, Any]:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or get_settings()
    configure_logging(settings)
    logger = StandardLogger("hotel")
    tz = settings.tz

    # 1. Хранилища и каталог
    reservations = InMemoryReservationStore(
        file_path=f"{data_dir}/bookings.json" if data_dir else None,
        logger=logger,
        tz=tz,
    )
    maintenance = InMemoryMaintenanceStore(
        file_path=f"{data_dir}/maintenance.json" if data_dir else None,
        logger=logger,
    )
    catalog = InMemoryRoomTypeCatalog(rooms, logger=logger)

    # 2. Сервисы, получающие зависимости
    calculator = PricingCalculator(settings.extra_guest_fee)
    booking_service = BookingApplicationService(
        reservations=reservations,
        maintenance=maintenance,
        catalog=catalog,
        settings=settings,
        calculator=calculator,
        logger=logger,
    )
    dashboard_service = DashboardService(
        catalog=catalog,
        reservations=reservations,
        maintenance=maintenance,
        tz=tz,
        logger=logger,
    )
    revenue_service = RevenueApplicationService(
        reservations, tz=tz, currency=settings.currency
    )

    # 3. Подписка на изменения коллекций
    booking_service.start()

    return {
        "settings": settings,
        "reservations": reservations,
        "maintenance": maintenance,
        "catalog": catalog,
        "booking_service": booking_service,
        "dashboard_service": dashboard_service,
        "revenue_service": revenue_service,
    }

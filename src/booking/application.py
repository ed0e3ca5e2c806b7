"""
Прикладной слой контекста бронирования.

Сервис держит последние снимки бронирований и обслуживания, пересобирает
индексы при каждом снимке и отвечает на запросы формы бронирования:
проверка конфликтов, расчет цены и отправка бронирования.

Проверка перед записью и сама запись - два отдельных шага. Два
одновременных запроса на пересекающиеся даты могут оба пройти проверку;
такое двойное бронирование ловит персонал при ручном подтверждении.
Строгий режим (atomic_reservations) заменяет запись условной вставкой.
"""

from datetime import date, datetime, timedelta
from typing import Any, Callable, List, Mapping, Optional, Tuple

from pricing.domain import PriceBreakdown, PricingCalculator
from pydantic import BaseModel, Field, model_validator
from rooms.domain import build_maintenance_index
from rooms.interfaces import IRoomTypeCatalog
from shared_kernel import (
    EntityId,
    HotelSettings,
    Interval,
    IntervalIndex,
    ReservationNotFoundError,
    ReservationStatus,
    now,
    parse_instant,
)
from shared_kernel.interfaces import ILogger, ISnapshotFeed, Unsubscribe
from shared_kernel.logger import StandardLogger

from .domain import (
    ConflictResult,
    GuestInfo,
    Reservation,
    ReservationConflictError,
    build_reservation_index,
    check_conflict,
    stay_nights,
)
from .interfaces import IReservationStore

# Конец интервала не входит в него
_LAST_INSTANT = timedelta(microseconds=1)

# DTO (Data Transfer Objects) для входящих данных


class CreateReservationRequest(BaseModel):
    """Запрос гостя на бронирование."""

    room_type_name: str = Field(..., min_length=1)
    check_in: datetime
    check_out: datetime
    guests: int = Field(..., gt=0)
    guest: GuestInfo
    special_requests: Optional[str] = None

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "CreateReservationRequest":
        if (self.check_in.tzinfo is None) != (self.check_out.tzinfo is None):
            raise ValueError(
                "Даты заезда и выезда должны быть обе с часовым поясом или обе без него"
            )
        if self.check_out <= self.check_in:
            raise ValueError("Дата выезда должна быть позже даты заезда")
        return self


# DTO для исходящих данных


class ReservationDTO(BaseModel):
    """DTO для представления бронирования."""

    id: EntityId
    room_type_name: str
    check_in: datetime
    check_out: datetime
    guest_count: int
    status: ReservationStatus
    payment: PriceBreakdown
    guest_name: str
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=reservation.id,
            room_type_name=reservation.room_type_name,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            guest_count=reservation.guest_count,
            status=reservation.status,
            payment=reservation.payment,
            guest_name=f"{reservation.guest.name} {reservation.guest.surname}".strip(),
            created_at=reservation.created_at.isoformat(),
            updated_at=reservation.updated_at.isoformat(),
        )


# Сервисы приложения


class BookingApplicationService:
    """Сервис приложения для формы бронирования и действий персонала."""

    def __init__(
        self,
        reservations: IReservationStore,
        maintenance: ISnapshotFeed,
        catalog: IRoomTypeCatalog,
        settings: HotelSettings,
        calculator: Optional[PricingCalculator] = None,
        logger: Optional[ILogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Инициализирует сервис."""
        self._store = reservations
        self._maintenance = maintenance
        self._catalog = catalog
        self._settings = settings
        self._tz = settings.tz
        self._calculator = calculator or PricingCalculator(settings.extra_guest_fee)
        self._logger = logger or StandardLogger(__name__)
        self._clock = clock or (lambda: now(self._tz))

        self._reservation_index: IntervalIndex = {}
        self._maintenance_documents: List[Mapping[str, Any]] = []
        self._maintenance_index: IntervalIndex = {}
        self._maintenance_day: Optional[date] = None
        self._unsubscribes: List[Unsubscribe] = []

    # Подписки на изменения

    def start(self) -> None:
        """Подписывается на обе коллекции; каждая сразу присылает снимок."""
        self._unsubscribes.append(self._store.subscribe(self.on_reservations_snapshot))
        self._unsubscribes.append(
            self._maintenance.subscribe(self.on_maintenance_snapshot)
        )

    def stop(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []

    def on_reservations_snapshot(self, documents: List[Mapping[str, Any]]) -> None:
        """Полная пересборка индекса: последний снимок всегда побеждает."""
        self._reservation_index = build_reservation_index(documents, self._tz)
        self._logger.debug(
            "Reservation index rebuilt",
            documents=len(documents),
            intervals=sum(len(v) for v in self._reservation_index.values()),
        )

    def on_maintenance_snapshot(self, documents: List[Mapping[str, Any]]) -> None:
        self._maintenance_documents = list(documents)
        self._rebuild_maintenance_index(self._today())

    def _today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    def _rebuild_maintenance_index(self, day: date) -> None:
        self._maintenance_index = build_maintenance_index(
            self._maintenance_documents, day, self._tz
        )
        self._maintenance_day = day
        self._logger.debug(
            "Maintenance index rebuilt",
            documents=len(self._maintenance_documents),
            intervals=sum(len(v) for v in self._maintenance_index.values()),
        )

    @property
    def reservation_index(self) -> IntervalIndex:
        return self._reservation_index

    @property
    def maintenance_index(self) -> IntervalIndex:
        """Индекс обслуживания; пересобирается при смене текущего дня."""
        day = self._today()
        if day != self._maintenance_day:
            self._rebuild_maintenance_index(day)
        return self._maintenance_index

    # Запросы формы бронирования

    def stay_interval(self, check_in_day: date, check_out_day: date) -> Interval:
        """Интервал проживания по дням с временем заезда и выезда по умолчанию."""
        return Interval(
            start=datetime.combine(
                check_in_day, self._settings.default_check_in_time, tzinfo=self._tz
            ),
            end=datetime.combine(
                check_out_day, self._settings.default_check_out_time, tzinfo=self._tz
            ),
        )

    def _local_interval(self, check_in: datetime, check_out: datetime) -> Interval:
        """Интервал проживания; время без зоны считается временем отеля."""
        return Interval(
            start=parse_instant(check_in, self._tz),
            end=parse_instant(check_out, self._tz),
        )

    def check_availability(
        self, room_type_name: str, check_in: datetime, check_out: datetime
    ) -> ConflictResult:
        """Проверка конфликтов при каждом изменении номера или дат."""
        return check_conflict(
            room_type_name,
            self._local_interval(check_in, check_out),
            self.reservation_index,
            self.maintenance_index,
        )

    def quote(
        self,
        room_type_name: str,
        check_in: datetime,
        check_out: datetime,
        guests: int,
    ) -> PriceBreakdown:
        """Предварительный расчет стоимости."""
        room = self._catalog.get(room_type_name)
        interval = self._local_interval(check_in, check_out).require_valid()
        return self._calculator.price_stay(room, interval.start, interval.end, guests)

    def blocked_ranges(self, room_type_name: str) -> List[Tuple[date, date]]:
        """
        Диапазоны дней (включительно), которые календарь выбора дат
        отключает для номера. День выезда гостя в них не входит.
        """
        ranges = []
        for interval in self.reservation_index.get(room_type_name, []):
            first = interval.start.astimezone(self._tz).date()
            last = interval.end.astimezone(self._tz).date() - timedelta(days=1)
            ranges.append((first, max(first, last)))
        for interval in self.maintenance_index.get(room_type_name, []):
            first = interval.start.astimezone(self._tz).date()
            last = (interval.end - _LAST_INSTANT).astimezone(self._tz).date()
            ranges.append((first, max(first, last)))
        return sorted(ranges)

    def blocked_check_in_days(
        self, room_type_name: str, first_day: date, days: int
    ) -> List[date]:
        """
        Дни, в которые нельзя заехать даже на одну ночь.

        День выезда предыдущего гостя остается свободным.
        """
        blocked = []
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            stay = self.stay_interval(day, day + timedelta(days=1))
            if not self.check_availability(room_type_name, stay.start, stay.end).is_clear:
                blocked.append(day)
        return blocked

    def submit_reservation(self, request: CreateReservationRequest) -> ReservationDTO:
        """Создает бронирование в статусе pending со снимком цены."""
        room = self._catalog.get(request.room_type_name)
        stay = self._local_interval(request.check_in, request.check_out)

        # Индекс мог измениться с момента последней проверки в форме
        conflict = self.check_availability(room.name, stay.start, stay.end)
        if not conflict.is_clear:
            self._logger.info(
                "Reservation rejected",
                room=room.name,
                conflicts=[k.value for k in conflict.kinds],
            )
            raise ReservationConflictError(conflict)

        payment = self._calculator.price_stay(room, stay.start, stay.end, request.guests)
        created_at = self._clock()
        reservation = Reservation(
            room_type_name=room.name,
            check_in=stay.start,
            check_out=stay.end,
            guest_count=request.guests,
            payment=payment,
            guest=request.guest,
            special_requests=request.special_requests,
            created_at=created_at,
            updated_at=created_at,
        )

        document = reservation.to_document()
        if self._settings.atomic_reservations:
            reservation.id = self._store.create_if_available(
                document,
                room.name,
                stay_nights(stay.start, stay.end, self._tz),
            )
        else:
            reservation.id = self._store.create(document)

        self._logger.info(
            "Reservation submitted",
            id=reservation.id,
            room=room.name,
            total=payment.total,
        )
        return ReservationDTO.from_domain(reservation)

    # Действия персонала

    def get_reservation(self, reservation_id: EntityId) -> ReservationDTO:
        return ReservationDTO.from_domain(self._load(reservation_id))

    def confirm_reservation(self, reservation_id: EntityId) -> ReservationDTO:
        """
        Подтверждает бронирование.

        Пересечение с уже подтвержденным бронированием не блокирует
        подтверждение, а попадает в лог для персонала.
        """
        reservation = self._load(reservation_id)
        conflict = check_conflict(
            reservation.room_type_name,
            reservation.interval,
            self.reservation_index,
            self.maintenance_index,
        )
        reservation.confirm(at=self._clock())
        if not conflict.is_clear:
            self._logger.warning(
                "Confirmed reservation overlaps existing bookings or maintenance",
                id=reservation_id,
                room=reservation.room_type_name,
                conflicts=[k.value for k in conflict.kinds],
            )
        return self._save_status(reservation)

    def cancel_reservation(self, reservation_id: EntityId) -> ReservationDTO:
        reservation = self._load(reservation_id)
        reservation.cancel(at=self._clock())
        return self._save_status(reservation)

    def complete_reservation(self, reservation_id: EntityId) -> ReservationDTO:
        reservation = self._load(reservation_id)
        reservation.complete(at=self._clock())
        return self._save_status(reservation)

    def _load(self, reservation_id: EntityId) -> Reservation:
        document = self._store.get(reservation_id)
        if document is None:
            raise ReservationNotFoundError(reservation_id)
        return Reservation.from_document(document, self._tz)

    def _save_status(self, reservation: Reservation) -> ReservationDTO:
        changes = {
            "status": reservation.status.value,
            "updatedAt": reservation.updated_at.isoformat(),
        }
        if reservation.completed_at is not None:
            changes["completedAt"] = reservation.completed_at.isoformat()
        self._store.update(reservation.id, changes)
        self._logger.info(
            "Reservation status changed",
            id=reservation.id,
            status=reservation.status.value,
        )
        return ReservationDTO.from_domain(reservation)

"""
Прикладной слой контекста тарификации.

Отчет о выручке по подтвержденным бронированиям.
"""

import calendar
from datetime import datetime, timedelta, tzinfo
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel
from shared_kernel import ReservationStatus, parse_instant
from shared_kernel.interfaces import ISnapshotFeed

# Поля с суммой в порядке приоритета: новый формат, затем старые
_LEGACY_TOTAL_FIELDS = ("totalPrice", "totalAmount")


class RevenuePeriod(str, Enum):
    ALL = "all"
    WEEK = "week"
    MONTH = "month"


class RevenueReport(BaseModel):
    """DTO отчета о выручке."""

    period: RevenuePeriod
    total_revenue: Decimal
    confirmed_bookings: int
    currency: str


def _one_month_before(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _period_start(period: RevenuePeriod, moment: datetime) -> Optional[datetime]:
    if period == RevenuePeriod.WEEK:
        return moment - timedelta(days=7)
    if period == RevenuePeriod.MONTH:
        return _one_month_before(moment)
    return None


def reservation_revenue(document: Mapping[str, Any]) -> Decimal:
    """Сумма бронирования; нечитаемые и неположительные суммы дают 0."""
    payment = document.get("payment")
    raw = None
    if isinstance(payment, Mapping) and "total" in payment:
        raw = payment["total"]
    else:
        for field in _LEGACY_TOTAL_FIELDS:
            if document.get(field):
                raw = document[field]
                break
    if raw is None:
        return Decimal("0")
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite() or amount <= 0:
        return Decimal("0")
    return amount


def summarize_revenue(
    documents: Iterable[Mapping[str, Any]],
    period: RevenuePeriod,
    moment: datetime,
    tz: tzinfo,
    currency: str = "PHP",
) -> RevenueReport:
    """Выручка по подтвержденным бронированиям, созданным в периоде."""
    since = _period_start(period, moment)
    total = Decimal("0")
    count = 0

    for doc in documents:
        if doc.get("status") != ReservationStatus.CONFIRMED.value:
            continue
        if since is not None:
            created_at = parse_instant(doc.get("createdAt"), tz)
            if created_at is None or created_at < since:
                continue
        count += 1
        total += reservation_revenue(doc)

    return RevenueReport(
        period=period,
        total_revenue=total,
        confirmed_bookings=count,
        currency=currency,
    )


class RevenueApplicationService:
    """Сервис приложения для отчетов о выручке."""

    def __init__(self, reservations: ISnapshotFeed, tz: tzinfo, currency: str = "PHP"):
        self._reservations = reservations
        self._tz = tz
        self._currency = currency

    def report(self, period: RevenuePeriod, moment: datetime) -> RevenueReport:
        return summarize_revenue(
            self._reservations.snapshot(),
            period,
            moment,
            self._tz,
            self._currency,
        )

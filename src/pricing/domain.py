"""
Доменная модель контекста тарификации.

Расчет стоимости проживания в двух режимах: за номер (с доплатой
за гостей сверх вместимости) и за место (общежитие).
"""

import math
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field
from shared_kernel import BusinessRuleValidationException, PricingMode

from .interfaces import IPricedRoom

EXTRA_GUEST_FEE = Decimal("200")

_ONE_DAY = timedelta(days=1)


def count_nights(check_in: datetime, check_out: datetime) -> int:
    """
    Количество ночей: потолок от длительности в сутках, минимум одна.

    Заезд в 15:00 и выезд в 11:00 через два дня дают две ночи.
    """
    nights = math.ceil((check_out - check_in) / _ONE_DAY)
    return max(1, nights)


class PriceBreakdown(BaseModel):
    """Разбивка стоимости проживания. Фиксируется в бронировании при создании."""

    model_config = ConfigDict(frozen=True)

    nights: int = Field(..., gt=0)
    guests: int = Field(..., gt=0)
    extra_guests: int = Field(0, ge=0)
    base_price: Decimal = Field(..., ge=0)
    extra_fee: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(..., ge=0)

    def to_document(self) -> Dict[str, Any]:
        """Представление для поля payment в документе бронирования."""
        return {
            "nights": self.nights,
            "guests": self.guests,
            "extraGuests": self.extra_guests,
            "basePrice": float(self.base_price),
            "extraFee": float(self.extra_fee),
            "total": float(self.total),
        }

    @classmethod
    def from_document(cls, payment: Dict[str, Any]) -> "PriceBreakdown":
        extra_fee = Decimal(str(payment.get("extraFee", 0) or 0))
        return cls(
            nights=payment["nights"],
            guests=payment["guests"],
            extra_guests=payment.get("extraGuests", 0),
            base_price=Decimal(str(payment["basePrice"])),
            extra_fee=extra_fee,
            total=Decimal(str(payment["total"])),
        )


class PricingCalculator:
    """Калькулятор стоимости. Чистая функция от входных данных."""

    def __init__(self, extra_guest_fee: Union[Decimal, int, str] = EXTRA_GUEST_FEE):
        self.extra_guest_fee = Decimal(str(extra_guest_fee))

    def price(self, room: IPricedRoom, nights: int, guests: int) -> PriceBreakdown:
        """Рассчитывает базовую цену, доплату и итог."""
        if nights < 1:
            raise BusinessRuleValidationException(
                "Минимальный срок проживания - 1 ночь"
            )
        if guests < 1:
            raise BusinessRuleValidationException(
                "Количество гостей должно быть положительным"
            )

        rate = Decimal(str(room.nightly_rate))

        if room.pricing_mode == PricingMode.PER_BED:
            # Вместимость для мест носит рекомендательный характер
            base_price = rate * guests * nights
            return PriceBreakdown(
                nights=nights,
                guests=guests,
                base_price=base_price,
                total=base_price,
            )

        extra_guests = max(0, guests - room.capacity)
        base_price = rate * nights
        extra_fee = extra_guests * self.extra_guest_fee * nights
        return PriceBreakdown(
            nights=nights,
            guests=guests,
            extra_guests=extra_guests,
            base_price=base_price,
            extra_fee=extra_fee,
            total=base_price + extra_fee,
        )

    def price_stay(
        self, room: IPricedRoom, check_in: datetime, check_out: datetime, guests: int
    ) -> PriceBreakdown:
        return self.price(room, count_nights(check_in, check_out), guests)

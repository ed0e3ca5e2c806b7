"""
Интерфейсы (порты) для контекста тарификации.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from shared_kernel import PricingMode


class IPricedRoom(Protocol):
    """Всё, что калькулятору нужно знать о типе номера."""

    @property
    def name(self) -> str: ...
    @property
    def nightly_rate(self) -> Decimal: ...
    @property
    def capacity(self) -> int: ...
    @property
    def pricing_mode(self) -> PricingMode: ...

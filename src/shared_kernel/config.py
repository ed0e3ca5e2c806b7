"""
Настройки приложения из переменных окружения HOTEL_* и файла .env.
"""

from datetime import time, tzinfo
from decimal import Decimal
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HotelSettings(BaseSettings):
    """Настройки движка доступности и тарификации."""

    model_config = SettingsConfigDict(
        env_prefix="HOTEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # Доплата за каждого гостя сверх вместимости, за ночь
    extra_guest_fee: Decimal = Field(Decimal("200"), ge=0)
    currency: str = Field("PHP", max_length=3)
    timezone: str = "UTC"

    default_check_in_time: time = time(15, 0)
    default_check_out_time: time = time(11, 0)

    # Строгий режим: условная вставка по (номер, ночь)
    atomic_reservations: bool = False

    log_level: str = "INFO"

    @field_validator("timezone")
    @classmethod
    def timezone_must_exist(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (KeyError, ValueError) as e:
            raise ValueError(f"Неизвестный часовой пояс: {v}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.timezone)


@lru_cache()
def get_settings() -> HotelSettings:
    return HotelSettings()

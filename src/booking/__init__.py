"""
Модуль контекста бронирования (Booking Context).

Отвечает за бронирование типов номеров, включая:
- Индекс занятых интервалов по подтвержденным бронированиям
- Проверку конфликтов с бронированиями и обслуживанием
- Отправку бронирования и действия персонала (подтверждение, отмена, завершение)
"""

from . import domain, interfaces, application, infrastructure

__all__ = [
    'domain',
    'application',
    'infrastructure',
    'interfaces',
]

"""
Модуль контекста тарификации (Pricing Context).

Отвечает за:
- Расчет стоимости проживания за номер и за место
- Доплату за гостей сверх вместимости
- Отчеты о выручке по подтвержденным бронированиям
"""

from . import application, domain, interfaces

__all__ = [
    "domain",
    "application",
    "interfaces",
]

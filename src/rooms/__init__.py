"""
Модуль контекста номеров (Rooms Context).

Отвечает за:
- Каталог типов номеров и режимы тарификации
- Окна технического обслуживания и индекс заблокированных интервалов
- Статусы номеров и сводку для панели администратора
"""

from . import domain, interfaces, application, infrastructure

__all__ = [
    "domain",
    "application",
    "infrastructure",
    "interfaces",
]

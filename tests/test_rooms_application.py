"""
Тесты для панели администратора и инфраструктуры контекста номеров.
"""
from datetime import date
from decimal import Decimal

import pytest
from conftest import NOW, at, confirmed_doc

from rooms.application import DashboardService, count_by_status
from rooms.domain import DueDateOnly, ExplicitRange, MaintenanceWindow, RoomType
from rooms.infrastructure import InMemoryMaintenanceStore, InMemoryRoomTypeCatalog
from shared_kernel import (
    InvalidStatusTransition,
    MaintenanceStatus,
    PricingMode,
    ReservationStatus,
    RoomStatus,
    RoomTypeNotFoundError,
)


class TestDashboardService:
    """Тесты панели администратора."""

    @pytest.fixture
    def dashboard_service(self, catalog, reservation_store, maintenance_store):
        # Подготовка
        catalog.add(RoomType(name="Suite", nightly_rate=Decimal("2500"), capacity=3))
        for doc in [
            confirmed_doc("Deluxe", at(9, 15), at(11, 11)),
            confirmed_doc("Dormitory", at(7, 15), at(10, 11)),
            confirmed_doc("Suite", at(10, 15), at(12, 11)),
            confirmed_doc("Suite", at(5, 15), at(8, 11)),
            confirmed_doc("Suite", at(20, 15), at(22, 11), status="pending"),
            confirmed_doc("Deluxe", at(10, 15), at(11, 11), status="cancelled"),
        ]:
            reservation_store.create(doc)
        maintenance_store.add({"room": "Dormitory", "issue": "Сломан кондиционер"})

        return DashboardService(
            catalog=catalog,
            reservations=reservation_store,
            maintenance=maintenance_store,
            tz=NOW.tzinfo,
        )

    def test_room_statuses(self, dashboard_service):
        statuses = {s.room_type_name: s for s in dashboard_service.room_statuses(NOW)}

        assert statuses["Deluxe"].status == RoomStatus.OCCUPIED
        assert statuses["Dormitory"].status == RoomStatus.MAINTENANCE
        assert statuses["Dormitory"].active_booking_count == 1
        assert statuses["Suite"].status == RoomStatus.AVAILABLE

    def test_summary(self, dashboard_service):
        # Действие
        dashboard = dashboard_service.dashboard(NOW)

        # Проверка
        assert dashboard.summary.total == 3
        assert dashboard.summary.occupied == 2
        assert dashboard.summary.under_maintenance == 1
        assert dashboard.summary.available == 1
        assert dashboard.summary.occupancy_rate == 67

    def test_daily_counters(self, dashboard_service):
        dashboard = dashboard_service.dashboard(NOW)

        assert dashboard.check_ins_today == 1
        assert dashboard.check_outs_today == 1
        assert dashboard.overdue_check_outs == 1
        assert dashboard.reservations_by_status == {
            ReservationStatus.PENDING: 1,
            ReservationStatus.CONFIRMED: 4,
            ReservationStatus.CANCELLED: 1,
            ReservationStatus.COMPLETED: 0,
        }

    def test_room_slugs(self, dashboard_service):
        dashboard = dashboard_service.dashboard(NOW)

        assert [room.slug for room in dashboard.rooms] == ["deluxe", "dormitory", "suite"]

    def test_later_moment(self, dashboard_service):
        statuses = {s.room_type_name: s for s in dashboard_service.room_statuses(at(11, 12))}

        assert statuses["Deluxe"].status == RoomStatus.AVAILABLE
        assert statuses["Suite"].status == RoomStatus.OCCUPIED
        # Окно без дат блокирует только текущий день
        assert statuses["Dormitory"].status == RoomStatus.MAINTENANCE


def test_count_by_status_ignores_unknown_statuses():
    counts = count_by_status([{"status": "confirmed"}, {"status": "archived"}, {}])

    assert counts[ReservationStatus.CONFIRMED] == 1
    assert sum(counts.values()) == 1


class TestRoomTypeCatalog:
    """Тесты каталога типов номеров."""

    def test_last_duplicate_wins(self):
        catalog = InMemoryRoomTypeCatalog(
            [
                {"name": "Deluxe", "price": "1,000"},
                {"name": "Deluxe", "price": "1,500", "maxGuests": 3},
            ]
        )

        assert len(catalog.list()) == 1
        assert catalog.get("Deluxe").nightly_rate == Decimal("1500")
        assert catalog.get("Deluxe").capacity == 3

    def test_invalid_documents_skipped(self):
        catalog = InMemoryRoomTypeCatalog(
            [{"name": "Broken", "price": "n/a"}, {"name": "Dorm", "price": "450", "perBed": "/ Bed"}]
        )

        assert catalog.find("Broken") is None
        assert catalog.get("Dorm").pricing_mode == PricingMode.PER_BED

    def test_unknown_pricing_mode_skipped(self):
        catalog = InMemoryRoomTypeCatalog(
            [
                {"name": "Good", "price": "1,000"},
                {"name": "Bad", "price": "900", "pricingMode": "weekly"},
            ]
        )

        assert [room.name for room in catalog.list()] == ["Good"]

    def test_get_unknown_raises(self, catalog):
        with pytest.raises(RoomTypeNotFoundError):
            catalog.get("Presidential")

    def test_remove(self, catalog):
        assert catalog.remove("Deluxe")
        assert not catalog.remove("Deluxe")
        assert catalog.find("Deluxe") is None


class TestMaintenanceStore:
    """Тесты хранилища окон обслуживания."""

    def test_snapshot_contains_active_windows_only(self, maintenance_store):
        active_id = maintenance_store.add({"room": "Deluxe", "dueDate": "2024-06-12"})
        maintenance_store.add({"room": "Suite", "status": "completed"})

        snapshot = maintenance_store.snapshot()

        assert [doc["id"] for doc in snapshot] == [active_id]
        assert snapshot[0]["status"] == "pending"

    def test_add_window_serializes_schedule(self, maintenance_store):
        maintenance_store.add_window(
            MaintenanceWindow(
                room_type_name="Deluxe",
                schedule=ExplicitRange(start=at(12), end=at(14)),
            )
        )
        maintenance_store.add_window(
            MaintenanceWindow(
                room_type_name="Suite",
                schedule=DueDateOnly(due_date=date(2024, 6, 15)),
            )
        )

        docs = {doc["room"]: doc for doc in maintenance_store.snapshot()}

        assert docs["Deluxe"]["start"] == at(12).isoformat()
        assert docs["Deluxe"]["end"] == at(14).isoformat()
        assert docs["Suite"]["dueDate"] == "2024-06-15"
        assert "start" not in docs["Suite"]

    def test_status_transitions(self, maintenance_store):
        window_id = maintenance_store.add({"room": "Deluxe"})

        doc = maintenance_store.set_status(window_id, MaintenanceStatus.IN_PROGRESS)
        assert doc["status"] == "in-progress"
        assert len(maintenance_store.snapshot()) == 1

        maintenance_store.set_status(window_id, MaintenanceStatus.COMPLETED)
        assert maintenance_store.snapshot() == []

        with pytest.raises(InvalidStatusTransition):
            maintenance_store.set_status(window_id, MaintenanceStatus.IN_PROGRESS)

    def test_unknown_window(self, maintenance_store):
        with pytest.raises(KeyError):
            maintenance_store.set_status("missing", MaintenanceStatus.COMPLETED)

    def test_persists_to_json(self, tmp_path):
        path = tmp_path / "maintenance.json"
        InMemoryMaintenanceStore(file_path=str(path)).add({"room": "Deluxe"})

        reloaded = InMemoryMaintenanceStore(file_path=str(path))

        assert [doc["room"] for doc in reloaded.snapshot()] == ["Deluxe"]

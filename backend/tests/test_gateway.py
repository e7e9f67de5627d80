"""
持久化网关测试
"""
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from hotel_admin.exceptions import NotFoundError, PersistenceError
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models.ontology import Room, RoomType, RoomStatus


def _insert_room(gateway, number, status=RoomStatus.AVAILABLE):
    return gateway.insert(Room, {
        "number": number, "type": RoomType.SINGLE, "rate": Decimal("100"), "status": status
    })


class TestPersistenceGateway:

    def test_insert_and_get(self, db_session):
        gateway = PersistenceGateway(db_session)
        room = _insert_room(gateway, "101")

        assert room.id is not None
        assert gateway.get(Room, room.id).number == "101"
        assert gateway.get(Room, 999) is None

    def test_select_filters_order_limit(self, db_session):
        gateway = PersistenceGateway(db_session)
        _insert_room(gateway, "103", RoomStatus.OCCUPIED)
        _insert_room(gateway, "101")
        _insert_room(gateway, "102", RoomStatus.CLEANING)

        assert [r.number for r in gateway.select(Room, order_by="number")] == ["101", "102", "103"]
        assert [r.number for r in gateway.select(Room, order_by="number", descending=True, limit=2)] == ["103", "102"]
        assert [r.number for r in gateway.select(Room, {"status": RoomStatus.OCCUPIED})] == ["103"]

    def test_select_in_filter(self, db_session):
        gateway = PersistenceGateway(db_session)
        _insert_room(gateway, "101")
        _insert_room(gateway, "102", RoomStatus.CLEANING)
        _insert_room(gateway, "103", RoomStatus.OCCUPIED)

        rooms = gateway.select(
            Room, {"status": (RoomStatus.CLEANING, RoomStatus.OCCUPIED)}, order_by="number"
        )
        assert [r.number for r in rooms] == ["102", "103"]

    def test_update_sets_updated_at(self, db_session):
        gateway = PersistenceGateway(db_session)
        room = _insert_room(gateway, "101")
        room.updated_at = datetime.now() - timedelta(days=1)
        db_session.commit()
        before = room.updated_at

        updated = gateway.update(Room, room.id, {"status": RoomStatus.CLEANING})

        assert updated.status == RoomStatus.CLEANING
        assert updated.updated_at > before

    def test_update_missing(self, db_session):
        with pytest.raises(NotFoundError):
            PersistenceGateway(db_session).update(Room, 999, {"status": RoomStatus.CLEANING})

    def test_delete(self, db_session):
        gateway = PersistenceGateway(db_session)
        room = _insert_room(gateway, "101")

        gateway.delete(Room, room.id)

        assert gateway.get(Room, room.id) is None
        with pytest.raises(NotFoundError):
            gateway.delete(Room, room.id)

    def test_database_error_becomes_persistence_error(self, db_session):
        gateway = PersistenceGateway(db_session)
        _insert_room(gateway, "101")

        with pytest.raises(PersistenceError):
            _insert_room(gateway, "101")

        # 回滚后会话仍可用
        assert [r.number for r in gateway.select(Room)] == ["101"]

"""
Tests for hotel_admin/services/room_service.py
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from hotel_admin.exceptions import NotFoundError, ValidationError
from hotel_admin.models.events import EventType
from hotel_admin.models.ontology import Room, RoomType, RoomStatus, Booking, BookingStatus
from hotel_admin.models.schemas import RoomCreate, RoomUpdate
from hotel_admin.services.room_service import RoomService


def _room(db, number="101", status=RoomStatus.AVAILABLE, room_type=RoomType.SINGLE):
    r = Room(number=number, type=room_type, rate=Decimal("120"), status=status)
    db.add(r)
    db.commit()
    return r


class TestRoomCrud:

    def test_create_room_is_available(self, db_session, publisher):
        svc = RoomService(db_session, event_publisher=publisher)
        room = svc.create_room(RoomCreate(number="301", type=RoomType.DOUBLE, rate=Decimal("180")))

        assert room.status == RoomStatus.AVAILABLE
        assert room.rate == Decimal("180.00")

    def test_duplicate_number_rejected(self, db_session, publisher):
        _room(db_session, "301")
        svc = RoomService(db_session, event_publisher=publisher)

        with pytest.raises(ValidationError):
            svc.create_room(RoomCreate(number="301", type=RoomType.SINGLE, rate=Decimal("90")))

    def test_update_does_not_touch_status(self, db_session, publisher):
        room = _room(db_session, status=RoomStatus.CLEANING)
        svc = RoomService(db_session, event_publisher=publisher)

        updated = svc.update_room(room.id, RoomUpdate(rate=Decimal("99"), description="Vista mar"))

        assert updated.rate == Decimal("99.00")
        assert updated.description == "Vista mar"
        assert updated.status == RoomStatus.CLEANING

    def test_update_to_taken_number(self, db_session, publisher):
        _room(db_session, "101")
        room = _room(db_session, "102")
        svc = RoomService(db_session, event_publisher=publisher)

        with pytest.raises(ValidationError):
            svc.update_room(room.id, RoomUpdate(number="101"))

    def test_filters(self, db_session, publisher):
        _room(db_session, "101")
        _room(db_session, "102", RoomStatus.OCCUPIED, RoomType.DOUBLE)
        svc = RoomService(db_session, event_publisher=publisher)

        assert [r.number for r in svc.get_rooms()] == ["101", "102"]
        assert [r.number for r in svc.get_rooms(status=RoomStatus.OCCUPIED)] == ["102"]
        assert [r.number for r in svc.get_rooms(room_type=RoomType.SINGLE)] == ["101"]

    def test_delete_with_bookings_rejected(self, db_session, publisher, sample_guest, sample_room):
        db_session.add(Booking(
            guest_id=sample_guest.id, room_id=sample_room.id,
            check_in=date.today(), check_out=date.today() + timedelta(days=1),
            status=BookingStatus.CANCELLED
        ))
        db_session.commit()

        with pytest.raises(ValidationError):
            RoomService(db_session, event_publisher=publisher).delete_room(sample_room.id)

    def test_delete_missing(self, db_session, publisher):
        with pytest.raises(NotFoundError):
            RoomService(db_session, event_publisher=publisher).delete_room(999)


class TestRoomStatus:

    def test_set_status_publishes_event(self, db_session, publisher, published_events):
        room = _room(db_session)
        svc = RoomService(db_session, event_publisher=publisher)

        svc.set_room_status(room.id, RoomStatus.OCCUPIED, booking_id=7, reason="check_in")

        assert room.status == RoomStatus.OCCUPIED
        event = published_events[0]
        assert event.event_type == EventType.ROOM_STATUS_CHANGED
        assert event.data["old_status"] == "Disponível"
        assert event.data["new_status"] == "Ocupado"
        assert event.data["booking_id"] == 7

    def test_same_status_no_event(self, db_session, publisher, published_events):
        room = _room(db_session)
        RoomService(db_session, event_publisher=publisher).set_room_status(room.id, RoomStatus.AVAILABLE)
        assert published_events == []

    def test_mark_ready_from_cleaning(self, db_session, publisher):
        room = _room(db_session, status=RoomStatus.CLEANING)
        ready = RoomService(db_session, event_publisher=publisher).mark_room_ready(room.id)
        assert ready.status == RoomStatus.AVAILABLE

    @pytest.mark.parametrize("status", [RoomStatus.AVAILABLE, RoomStatus.OCCUPIED])
    def test_mark_ready_requires_cleaning(self, db_session, publisher, status):
        room = _room(db_session, status=status)
        with pytest.raises(ValidationError):
            RoomService(db_session, event_publisher=publisher).mark_room_ready(room.id)

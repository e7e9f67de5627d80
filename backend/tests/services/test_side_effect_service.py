"""
Tests for hotel_admin/services/side_effect_service.py
Covers: journal entries written by lifecycle operations, list_outstanding, reconcile,
        purge_done
"""
from datetime import date, datetime, timedelta

from hotel_admin.models.ontology import (
    Room, RoomStatus, Guest, GuestStatus, Booking, BookingStatus,
    SideEffectEntry, SideEffectKind, SideEffectStatus
)
from hotel_admin.services.booking_service import BookingService
from hotel_admin.services.side_effect_service import SideEffectService


# ── helpers ──────────────────────────────────────────────────────────

def _checked_in_booking(db, guest, room):
    b = Booking(
        guest_id=guest.id,
        room_id=room.id,
        check_in=date.today() - timedelta(days=2),
        check_out=date.today(),
        status=BookingStatus.CHECKED_IN,
    )
    room.status = RoomStatus.OCCUPIED
    guest.status = GuestStatus.CHECKED_IN
    db.add(b)
    db.commit()
    return b


def _failed_checkout(db, publisher, gateway, guest, room):
    booking = _checked_in_booking(db, guest, room)
    gateway.fail_on("update", Room)
    BookingService(db, gateway, publisher).check_out(booking.id)
    gateway.heal()
    return booking


class TestJournal:

    def test_successful_side_effects_marked_done(self, db_session, publisher, sample_guest, sample_room):
        booking = _checked_in_booking(db_session, sample_guest, sample_room)
        BookingService(db_session, event_publisher=publisher).check_out(booking.id)

        entries = db_session.query(SideEffectEntry).all()
        assert {e.kind for e in entries} == {SideEffectKind.ROOM_STATUS, SideEffectKind.GUEST_SYNC}
        assert all(e.status == SideEffectStatus.DONE for e in entries)
        assert all(e.attempts == 1 for e in entries)

    def test_outstanding_lists_failed(self, db_session, publisher, flaky_gateway,
                                      sample_guest, sample_room):
        _failed_checkout(db_session, publisher, flaky_gateway, sample_guest, sample_room)

        outstanding = SideEffectService(db_session, event_publisher=publisher).list_outstanding()

        assert len(outstanding) == 1
        assert outstanding[0].kind == SideEffectKind.ROOM_STATUS
        assert outstanding[0].target_id == sample_room.id

    def test_action_runs_when_journal_unavailable(self, db_session, publisher, flaky_gateway,
                                                  sample_guest, sample_room):
        booking = _checked_in_booking(db_session, sample_guest, sample_room)
        flaky_gateway.fail_on("insert", SideEffectEntry)

        assert BookingService(db_session, flaky_gateway, publisher).check_out(booking.id) is True

        db_session.refresh(sample_room)
        assert sample_room.status == RoomStatus.CLEANING
        assert db_session.query(SideEffectEntry).count() == 0


class TestReconcile:

    def test_repairs_failed_room_update(self, db_session, publisher, flaky_gateway,
                                        sample_guest, sample_room):
        _failed_checkout(db_session, publisher, flaky_gateway, sample_guest, sample_room)
        db_session.refresh(sample_room)
        assert sample_room.status == RoomStatus.OCCUPIED

        result = SideEffectService(db_session, flaky_gateway, publisher).reconcile()

        assert result.repaired == 1
        assert result.still_failing == 0
        db_session.refresh(sample_room)
        assert sample_room.status == RoomStatus.CLEANING
        entry = db_session.query(SideEffectEntry).filter_by(kind=SideEffectKind.ROOM_STATUS).one()
        assert entry.status == SideEffectStatus.DONE
        assert entry.attempts == 2

    def test_still_failing_counted(self, db_session, publisher, flaky_gateway,
                                   sample_guest, sample_room):
        _failed_checkout(db_session, publisher, flaky_gateway, sample_guest, sample_room)
        flaky_gateway.fail_on("update", Room)

        result = SideEffectService(db_session, flaky_gateway, publisher).reconcile()

        assert result.repaired == 0
        assert result.still_failing == 1
        entry = db_session.query(SideEffectEntry).filter_by(kind=SideEffectKind.ROOM_STATUS).one()
        assert entry.status == SideEffectStatus.FAILED
        assert entry.attempts == 2

    def test_reruns_guest_sync(self, db_session, publisher, flaky_gateway, sample_guest, sample_room):
        booking = _checked_in_booking(db_session, sample_guest, sample_room)
        flaky_gateway.fail_on("update", Guest)
        BookingService(db_session, flaky_gateway, publisher).check_out(booking.id)
        flaky_gateway.heal()
        db_session.refresh(sample_guest)
        assert sample_guest.status == GuestStatus.CHECKED_IN

        result = SideEffectService(db_session, flaky_gateway, publisher).reconcile()

        assert result.repaired == 1
        db_session.refresh(sample_guest)
        assert sample_guest.status == GuestStatus.NO_STAY

    def test_superseded_room_update_skipped(self, db_session, publisher, flaky_gateway,
                                            sample_guest, sample_room):
        _failed_checkout(db_session, publisher, flaky_gateway, sample_guest, sample_room)
        next_guest = Guest(name="Ana", email="ana@example.com")
        db_session.add(next_guest)
        db_session.commit()
        bookings = BookingService(db_session, flaky_gateway, publisher)
        following = bookings.create_booking(next_guest.id, sample_room.id,
                                            date.today(), date.today() + timedelta(days=2))
        bookings.check_in(following.id)

        result = SideEffectService(db_session, flaky_gateway, publisher).reconcile()

        assert result.repaired == 1
        db_session.refresh(sample_room)
        assert sample_room.status == RoomStatus.OCCUPIED
        assert SideEffectService(db_session, flaky_gateway, publisher).list_outstanding() == []

    def test_nothing_outstanding(self, db_session, publisher):
        result = SideEffectService(db_session, event_publisher=publisher).reconcile()
        assert (result.repaired, result.still_failing) == (0, 0)

    def test_unreadable_entry_does_not_stop_replay(self, db_session, publisher, flaky_gateway,
                                                   sample_guest, sample_room):
        booking = _checked_in_booking(db_session, sample_guest, sample_room)
        flaky_gateway.fail_on("update", Room)
        flaky_gateway.fail_on("update", Guest)
        BookingService(db_session, flaky_gateway, publisher).check_out(booking.id)
        flaky_gateway.heal()
        room_entry = db_session.query(SideEffectEntry).filter_by(kind=SideEffectKind.ROOM_STATUS).one()
        flaky_gateway.fail_on("get", SideEffectEntry, room_entry.id)

        result = SideEffectService(db_session, flaky_gateway, publisher).reconcile()

        assert (result.repaired, result.still_failing) == (1, 1)
        db_session.refresh(sample_guest)
        db_session.refresh(sample_room)
        db_session.refresh(room_entry)
        assert sample_guest.status == GuestStatus.NO_STAY
        assert sample_room.status == RoomStatus.OCCUPIED
        assert room_entry.status == SideEffectStatus.FAILED
        assert room_entry.attempts == 2


# ── purge_done ───────────────────────────────────────────────────────

def _entry(db, booking, status, age_days, kind=SideEffectKind.GUEST_SYNC):
    stamp = datetime.now() - timedelta(days=age_days)
    e = SideEffectEntry(
        booking_id=booking.id, kind=kind, target_id=booking.guest_id,
        status=status, attempts=1, created_at=stamp, updated_at=stamp,
    )
    db.add(e)
    db.commit()
    return e


class TestPurge:

    def test_reconcile_purges_expired_done_entries(self, db_session, publisher,
                                                   sample_guest, sample_room):
        booking = _checked_in_booking(db_session, sample_guest, sample_room)
        _entry(db_session, booking, SideEffectStatus.DONE, age_days=30)
        recent = _entry(db_session, booking, SideEffectStatus.DONE, age_days=1)

        result = SideEffectService(db_session, event_publisher=publisher).reconcile()

        assert result.purged == 1
        assert [e.id for e in db_session.query(SideEffectEntry).all()] == [recent.id]

    def test_keeps_done_entries_newer_than_outstanding(self, db_session, publisher,
                                                       sample_guest, sample_room):
        booking = _checked_in_booking(db_session, sample_guest, sample_room)
        _entry(db_session, booking, SideEffectStatus.DONE, age_days=30)
        failed = _entry(db_session, booking, SideEffectStatus.FAILED, age_days=30)
        later = _entry(db_session, booking, SideEffectStatus.DONE, age_days=30,
                       kind=SideEffectKind.ROOM_STATUS)

        purged = SideEffectService(db_session, event_publisher=publisher).purge_done(retention_days=7)

        assert purged == 1
        remaining = [e.id for e in db_session.query(SideEffectEntry).order_by(SideEffectEntry.id)]
        assert remaining == [failed.id, later.id]

    def test_retention_window_respected(self, db_session, publisher, sample_guest, sample_room):
        booking = _checked_in_booking(db_session, sample_guest, sample_room)
        _entry(db_session, booking, SideEffectStatus.DONE, age_days=3)

        service = SideEffectService(db_session, event_publisher=publisher)

        assert service.purge_done(retention_days=7) == 0
        assert service.purge_done(retention_days=2) == 1

"""
副作用日志服务 - 补偿日志

预订状态写入成功后，房间状态和客人状态的更新是独立的网关调用，
不具备跨表原子性。每个副作用执行前先登记（pending），执行成功标记 done，
失败标记 failed 并记录错误；reconcile 重放所有未完成的条目。
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional
import logging

from hotel_admin.config import settings
from hotel_admin.domain.booking_state import room_status_for
from hotel_admin.exceptions import NotFoundError, PersistenceError
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models.ontology import (
    Booking, RoomStatus, SideEffectEntry, SideEffectKind, SideEffectStatus
)
from hotel_admin.services.event_bus import event_bus, Event
from hotel_admin.services.guest_service import GuestService
from hotel_admin.services.room_service import RoomService

logger = logging.getLogger(__name__)

OUTSTANDING_STATUSES = (SideEffectStatus.PENDING, SideEffectStatus.FAILED)


@dataclass
class ReconcileResult:
    """重放结果"""
    repaired: int = 0
    still_failing: int = 0
    purged: int = 0


class SideEffectService:
    """副作用日志服务"""

    def __init__(self, db, gateway: Optional[PersistenceGateway] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.gateway = gateway or PersistenceGateway(db)
        self._publish_event = event_publisher or event_bus.publish

    def record(self, booking_id: int, kind: SideEffectKind, target_id: int,
               payload: Optional[str] = None) -> Optional[SideEffectEntry]:
        """登记待执行的副作用；登记失败只记录日志"""
        try:
            return self.gateway.insert(SideEffectEntry, {
                "booking_id": booking_id,
                "kind": kind,
                "target_id": target_id,
                "payload": payload,
                "status": SideEffectStatus.PENDING,
                "attempts": 0,
            })
        except PersistenceError as e:
            logger.error(f"Could not journal {kind.value} for booking {booking_id}: {e}")
            return None

    def _finish(self, entry_id: int, attempts: int, status: SideEffectStatus,
                error: Optional[str] = None) -> None:
        try:
            self.gateway.update(SideEffectEntry, entry_id, {
                "status": status,
                "attempts": attempts,
                "last_error": error,
            })
        except PersistenceError as e:
            logger.error(f"Could not update side effect {entry_id}: {e}")

    def run(self, booking_id: int, kind: SideEffectKind, target_id: int,
            payload: Optional[str], action: Callable[[], Any]) -> bool:
        """
        登记并执行一个副作用

        执行失败不回滚前序的预订状态写入，只记录日志并保留 failed 条目供重放。

        Returns:
            True 如果副作用执行成功
        """
        entry = self.record(booking_id, kind, target_id, payload)
        entry_id = entry.id if entry else None
        try:
            action()
        except (PersistenceError, NotFoundError) as e:
            logger.error(
                f"Side effect {kind.value} for booking {booking_id} "
                f"(target {target_id}) failed: {e}"
            )
            if entry_id:
                self._finish(entry_id, 1, SideEffectStatus.FAILED, str(e))
            return False

        if entry_id:
            self._finish(entry_id, 1, SideEffectStatus.DONE)
        return True

    def list_outstanding(self) -> List[SideEffectEntry]:
        """未完成（pending / failed）的副作用条目，按登记顺序"""
        return self.gateway.select(
            SideEffectEntry, {"status": OUTSTANDING_STATUSES}, order_by="id"
        )

    def _is_superseded(self, entry: SideEffectEntry) -> bool:
        """房间状态条目是否已被后续变更取代"""
        if entry.kind != SideEffectKind.ROOM_STATUS:
            return False

        newer = [
            e for e in self.gateway.select(
                SideEffectEntry,
                {"kind": SideEffectKind.ROOM_STATUS, "target_id": entry.target_id}
            )
            if e.id > entry.id
        ]
        if newer:
            return True

        booking = self.gateway.get(Booking, entry.booking_id)
        if booking is None:
            return True
        expected = room_status_for(booking.status)
        return expected is None or expected.value != entry.payload

    def _replay(self, entry: SideEffectEntry) -> None:
        if entry.kind == SideEffectKind.ROOM_STATUS:
            RoomService(self.db, self.gateway, self._publish_event).set_room_status(
                entry.target_id, RoomStatus(entry.payload),
                booking_id=entry.booking_id, reason="reconcile"
            )
        else:
            GuestService(self.db, self.gateway, self._publish_event).sync_guest_status(
                entry.target_id
            )

    def purge_done(self, retention_days: Optional[int] = None,
                   now: Optional[datetime] = None) -> int:
        """
        清理超过保留期的已完成条目

        仍有未完成条目时，只清理比最早的未完成条目更早的条目，
        较新的已完成条目用于判断未完成的房间状态是否已被取代。

        Returns:
            删除的条目数
        """
        if retention_days is None:
            retention_days = settings.JOURNAL_RETENTION_DAYS
        cutoff = (now or datetime.now()) - timedelta(days=retention_days)

        outstanding_ids = [e.id for e in self.list_outstanding()]
        oldest_outstanding = min(outstanding_ids) if outstanding_ids else None

        purged = 0
        for entry in self.gateway.select(SideEffectEntry, {"status": SideEffectStatus.DONE}):
            finished_at = entry.updated_at or entry.created_at
            if finished_at is None or finished_at >= cutoff:
                continue
            if oldest_outstanding is not None and entry.id > oldest_outstanding:
                continue
            try:
                self.gateway.delete(SideEffectEntry, entry.id)
            except (PersistenceError, NotFoundError) as e:
                logger.error(f"Could not purge side effect {entry.id}: {e}")
                continue
            purged += 1

        if purged:
            logger.info(f"Purged {purged} completed side effects older than {retention_days} days")
        return purged

    def reconcile(self) -> ReconcileResult:
        """重放所有未完成的副作用，随后清理过期的已完成条目"""
        result = ReconcileResult()
        outstanding = [(e.id, e.attempts or 0) for e in self.list_outstanding()]

        for entry_id, attempts in outstanding:
            try:
                entry = self.gateway.get(SideEffectEntry, entry_id)
                if entry is None:
                    continue
                if self._is_superseded(entry):
                    logger.info(f"Side effect {entry_id} superseded, skipping")
                    self._finish(entry_id, attempts, SideEffectStatus.DONE, "superseded")
                    result.repaired += 1
                    continue
                self._replay(entry)
            except (PersistenceError, NotFoundError) as e:
                logger.error(f"Reconcile of side effect {entry_id} failed: {e}")
                self._finish(entry_id, attempts + 1, SideEffectStatus.FAILED, str(e))
                result.still_failing += 1
                continue

            self._finish(entry_id, attempts + 1, SideEffectStatus.DONE)
            result.repaired += 1

        if outstanding:
            logger.info(
                f"Reconcile finished: {result.repaired} repaired, "
                f"{result.still_failing} still failing"
            )

        try:
            result.purged = self.purge_done()
        except PersistenceError as e:
            logger.error(f"Journal purge failed: {e}")
        return result

"""
客人服务 - 客人管理 + 状态同步器
客人状态是派生字段：由客人当前的有效预订（已预订 / 已入住）计算，
只由 sync_guest_status 写入
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional
import logging

from sqlalchemy import or_

from hotel_admin.domain.booking_state import derive_guest_status
from hotel_admin.exceptions import NotFoundError, PersistenceError, ValidationError
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models.events import EventType, GuestStatusChangedData
from hotel_admin.models.ontology import (
    Guest, GuestStatus, Booking, ACTIVE_BOOKING_STATUSES
)
from hotel_admin.models.schemas import GuestCreate, GuestUpdate
from hotel_admin.services.event_bus import event_bus, Event

logger = logging.getLogger(__name__)


@dataclass
class ConsistencyWarning:
    """客人存储状态与推导状态不一致"""
    guest_id: int
    guest_name: str
    current_status: GuestStatus
    expected_status: GuestStatus
    booking_ids: List[int] = field(default_factory=list)


class GuestService:
    """客人服务"""

    def __init__(self, db, gateway: Optional[PersistenceGateway] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.gateway = gateway or PersistenceGateway(db)
        # 支持依赖注入事件发布器，便于测试
        self._publish_event = event_publisher or event_bus.publish

    # ============== 客人管理 ==============

    def get_guests(self, search: Optional[str] = None,
                   status: Optional[GuestStatus] = None) -> List[Guest]:
        """获取客人列表（按姓名排序）"""
        query = self.db.query(Guest)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Guest.name.like(pattern),
                    Guest.email.like(pattern),
                    Guest.cpf.like(pattern)
                )
            )
        if status:
            query = query.filter(Guest.status == status)

        return query.order_by(Guest.name).all()

    def get_guest(self, guest_id: int) -> Optional[Guest]:
        """获取单个客人"""
        return self.gateway.get(Guest, guest_id)

    def create_guest(self, data: GuestCreate) -> Guest:
        """创建客人，初始状态为无住宿"""
        values = data.model_dump()
        values["status"] = GuestStatus.NO_STAY
        return self.gateway.insert(Guest, values)

    def update_guest(self, guest_id: int, data: GuestUpdate) -> Guest:
        """更新客人信息（不含状态）"""
        if not self.get_guest(guest_id):
            raise NotFoundError("客人不存在")
        return self.gateway.update(Guest, guest_id, data.model_dump(exclude_unset=True))

    def delete_guest(self, guest_id: int) -> None:
        """删除客人，存在预订记录时不允许删除"""
        if not self.get_guest(guest_id):
            raise NotFoundError("客人不存在")
        if self.gateway.select(Booking, {"guest_id": guest_id}, limit=1):
            raise ValidationError("客人存在预订记录，不能删除")
        self.gateway.delete(Guest, guest_id)

    def get_guest_booking_history(self, guest_id: int, limit: int = 10) -> List[dict]:
        """获取客人预订历史"""
        if not self.get_guest(guest_id):
            raise NotFoundError("客人不存在")
        bookings = self.gateway.select(
            Booking, {"guest_id": guest_id}, order_by="check_in", descending=True, limit=limit
        )
        return [
            {
                "id": b.id,
                "room_id": b.room_id,
                "room_number": b.room.number if b.room else None,
                "check_in": b.check_in,
                "check_out": b.check_out,
                "status": b.status,
                "payment_status": b.payment_status,
                "total_amount": b.total_amount,
            }
            for b in bookings
        ]

    # ============== 状态同步 ==============

    def sync_guest_status(self, guest_id: int) -> GuestStatus:
        """
        根据客人的有效预订同步客人状态

        - 有已入住预订：在住
        - 否则有已预订预订：已预订
        - 否则：无住宿

        仅在状态变化时写入；重复调用结果相同（幂等）。

        Raises:
            NotFoundError: 客人不存在
            PersistenceError: 网关调用失败
        """
        guest = self.gateway.get(Guest, guest_id)
        if guest is None:
            raise NotFoundError("客人不存在")

        bookings = self.gateway.select(
            Booking, {"guest_id": guest_id, "status": ACTIVE_BOOKING_STATUSES}
        )
        new_status = derive_guest_status(b.status for b in bookings)
        old_status = guest.status

        if old_status != new_status:
            guest = self.gateway.update(Guest, guest_id, {"status": new_status})
            logger.info(f"Guest {guest_id} status {old_status.value} -> {new_status.value}")
            self._publish_event(Event(
                event_type=EventType.GUEST_STATUS_CHANGED,
                timestamp=datetime.now(),
                data=GuestStatusChangedData(
                    guest_id=guest_id,
                    guest_name=guest.name,
                    old_status=old_status.value,
                    new_status=new_status.value
                ).to_dict(),
                source="guest_service"
            ))

        return new_status

    def sync_all_guest_statuses(self) -> int:
        """
        批量同步所有客人状态（一致性修复用）

        单个客人失败只记录日志，继续处理其余客人。

        Returns:
            状态实际发生变化的客人数
        """
        guests = self.gateway.select(Guest, order_by="id")
        snapshot = [(g.id, g.status) for g in guests]
        updated = 0
        failed = 0

        for guest_id, old_status in snapshot:
            try:
                if self.sync_guest_status(guest_id) != old_status:
                    updated += 1
            except (PersistenceError, NotFoundError) as e:
                failed += 1
                logger.error(f"Guest {guest_id} status sync failed: {e}")

        logger.info(f"{updated} guests re-synchronized, {failed} failed")
        return updated

    def check_status_inconsistencies(self) -> List[ConsistencyWarning]:
        """检查客人存储状态与有效预订推导状态之间的不一致（只读）"""
        guests = self.gateway.select(Guest, order_by="name")
        active = self.gateway.select(Booking, {"status": ACTIVE_BOOKING_STATUSES})

        by_guest: Dict[int, List[Booking]] = {}
        for booking in active:
            by_guest.setdefault(booking.guest_id, []).append(booking)

        warnings = []
        for guest in guests:
            bookings = by_guest.get(guest.id, [])
            expected = derive_guest_status(b.status for b in bookings)
            if guest.status != expected:
                warnings.append(ConsistencyWarning(
                    guest_id=guest.id,
                    guest_name=guest.name,
                    current_status=guest.status,
                    expected_status=expected,
                    booking_ids=[b.id for b in bookings]
                ))

        if warnings:
            logger.warning(f"{len(warnings)} guest status inconsistencies found")
        return warnings

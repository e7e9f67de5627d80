"""
预订服务 - 预订生命周期管理

- 创建预订：校验、计算总价、同步客人状态
- 状态变更：入住 / 退房 / 取消，驱动房间状态和客人状态
- 预订字段编辑、付款状态更新

预订状态写入是主操作；房间状态和客人状态的后续更新通过副作用日志执行，
失败不会回滚预订状态，可通过 reconcile 修复。
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from hotel_admin.domain.booking_state import calculate_nights, validate_transition
from hotel_admin.exceptions import NotFoundError, PersistenceError, ValidationError
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models.events import (
    EventType, BookingCreatedData, BookingStatusChangedData, BookingPaymentStatusChangedData
)
from hotel_admin.models.ontology import (
    Booking, BookingStatus, BookingPaymentStatus, Guest, Room,
    SideEffectKind, ACTIVE_BOOKING_STATUSES
)
from hotel_admin.models.schemas import BookingUpdate
from hotel_admin.services.event_bus import event_bus, Event
from hotel_admin.services.guest_service import GuestService
from hotel_admin.services.room_service import RoomService
from hotel_admin.services.side_effect_service import SideEffectService

logger = logging.getLogger(__name__)

STATUS_EVENTS = {
    BookingStatus.CHECKED_IN: EventType.BOOKING_CHECKED_IN,
    BookingStatus.CHECKED_OUT: EventType.BOOKING_CHECKED_OUT,
    BookingStatus.CANCELLED: EventType.BOOKING_CANCELLED,
}


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


class BookingService:
    """预订服务"""

    def __init__(self, db, gateway: Optional[PersistenceGateway] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.gateway = gateway or PersistenceGateway(db)
        self._publish_event = event_publisher or event_bus.publish
        self.room_service = RoomService(db, self.gateway, self._publish_event)
        self.guest_service = GuestService(db, self.gateway, self._publish_event)
        self.side_effects = SideEffectService(db, self.gateway, self._publish_event)

    # ============== 查询 ==============

    def get_bookings(self, status: Optional[BookingStatus] = None,
                     guest_id: Optional[int] = None,
                     room_id: Optional[int] = None) -> List[Booking]:
        """获取预订列表（按入住日期倒序）"""
        filters: Dict[str, Any] = {}
        if status:
            filters["status"] = status
        if guest_id:
            filters["guest_id"] = guest_id
        if room_id:
            filters["room_id"] = room_id
        return self.gateway.select(Booking, filters, order_by="check_in", descending=True)

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """获取单个预订"""
        return self.gateway.get(Booking, booking_id)

    def get_active_bookings(self) -> List[Booking]:
        """获取有效预订（已预订 + 已入住）"""
        return self.gateway.select(
            Booking, {"status": ACTIVE_BOOKING_STATUSES}, order_by="check_in"
        )

    def get_booking_detail(self, booking_id: int) -> Optional[dict]:
        """获取预订详情（包含客人和房间信息）"""
        booking = self.get_booking(booking_id)
        if not booking:
            return None

        return {
            "id": booking.id,
            "guest_id": booking.guest_id,
            "room_id": booking.room_id,
            "check_in": booking.check_in,
            "check_out": booking.check_out,
            "status": booking.status,
            "payment_status": booking.payment_status,
            "payment_method": booking.payment_method,
            "total_amount": booking.total_amount,
            "notes": booking.notes,
            "created_at": booking.created_at,
            "updated_at": booking.updated_at,
            "guest_name": booking.guest.name if booking.guest else None,
            "guest_email": booking.guest.email if booking.guest else None,
            "room_number": booking.room.number if booking.room else None,
            "room_type": booking.room.type if booking.room else None,
            "nights": calculate_nights(booking.check_in, booking.check_out),
        }

    def _require_booking(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if not booking:
            raise NotFoundError("预订不存在")
        return booking

    def _load_booking(self, booking_id: int) -> Optional[Booking]:
        """读取预订；读取失败记录日志并返回 None，预订不存在抛出 NotFoundError"""
        try:
            return self._require_booking(booking_id)
        except PersistenceError as e:
            logger.error(f"Booking {booking_id} could not be loaded: {e}")
            return None

    def _check_room_availability(self, room: Room, check_in: date, check_out: date,
                                 exclude_booking_id: Optional[int] = None) -> None:
        """同一房间的有效预订日期不能重叠"""
        bookings = self.gateway.select(
            Booking, {"room_id": room.id, "status": ACTIVE_BOOKING_STATUSES}
        )
        for other in bookings:
            if other.id == exclude_booking_id:
                continue
            if other.check_in < check_out and other.check_out > check_in:
                raise ValidationError(
                    f"房间 {room.number} 在 {other.check_in} 至 {other.check_out} 已有预订"
                )

    # ============== 创建 ==============

    def create_booking(self, guest_id: int, room_id: int,
                       check_in: Union[date, datetime], check_out: Union[date, datetime],
                       payment_method: Optional[str] = None) -> Booking:
        """
        创建预订

        总价 = 间夜数 × 房价；新预订状态为已预订、付款状态为待付款。
        创建后同步客人状态，同步失败只记录日志。

        Raises:
            ValidationError: 缺少参数、日期不合法或房间日期冲突
            NotFoundError: 客人或房间不存在
            PersistenceError: 预订写入失败
        """
        if not guest_id or not room_id:
            raise ValidationError("必须指定客人和房间")
        if check_in is None or check_out is None:
            raise ValidationError("必须指定入住和离店日期")
        if isinstance(check_in, datetime) != isinstance(check_out, datetime):
            raise ValidationError("入住和离店必须同为日期或同为日期时间")
        start, end = _as_date(check_in), _as_date(check_out)
        # 按日期存储，同一天内的时段会被截断为零晚
        if check_out <= check_in or end <= start:
            raise ValidationError("离店日期必须晚于入住日期")

        guest = self.gateway.get(Guest, guest_id)
        if not guest:
            raise NotFoundError("客人不存在")
        room = self.gateway.get(Room, room_id)
        if not room:
            raise NotFoundError("房间不存在")

        self._check_room_availability(room, start, end)

        nights = calculate_nights(check_in, check_out)
        total_amount = Decimal(room.rate) * nights

        booking = self.gateway.insert(Booking, {
            "guest_id": guest_id,
            "room_id": room_id,
            "check_in": start,
            "check_out": end,
            "status": BookingStatus.RESERVED,
            "payment_status": BookingPaymentStatus.PENDING,
            "payment_method": payment_method,
            "total_amount": total_amount,
        })
        logger.info(
            f"Booking {booking.id} created: guest {guest_id}, room {room.number}, "
            f"{nights} nights, total {total_amount}"
        )

        self.side_effects.run(
            booking.id, SideEffectKind.GUEST_SYNC, guest_id, None,
            lambda: self.guest_service.sync_guest_status(guest_id)
        )

        self._publish_event(Event(
            event_type=EventType.BOOKING_CREATED,
            timestamp=datetime.now(),
            data=BookingCreatedData(
                booking_id=booking.id,
                guest_id=guest_id,
                room_id=room_id,
                check_in=start.isoformat(),
                check_out=end.isoformat(),
                total_amount=float(total_amount)
            ).to_dict(),
            source="booking_service"
        ))
        return booking

    # ============== 生命周期 ==============

    def update_booking_status(self, booking_id: int, new_status: BookingStatus) -> bool:
        """
        变更预订状态并驱动房间 / 客人状态

        1. 校验转换（终态不可变更）
        2. 写入预订状态；失败返回 False
        3. 入住 -> 房间占用，退房 -> 房间待清洁（副作用，失败不回滚）
        4. 同步客人状态（副作用，失败不回滚）

        目标状态与当前状态相同时视为成功且不做任何写入。

        Raises:
            NotFoundError: 预订不存在
            ValidationError: 非法状态转换
        """
        new_status = BookingStatus(new_status)
        booking = self._load_booking(booking_id)
        if booking is None:
            return False

        old_status = booking.status
        if old_status == new_status:
            return True

        transition = validate_transition(old_status, new_status)
        guest_id, room_id = booking.guest_id, booking.room_id

        try:
            self.gateway.update(Booking, booking_id, {"status": new_status})
        except PersistenceError as e:
            logger.error(f"Booking {booking_id} status update to {new_status.value} failed: {e}")
            return False

        logger.info(f"Booking {booking_id} status {old_status.value} -> {new_status.value}")

        room_status = transition.room_status
        if room_status is not None:
            self.side_effects.run(
                booking_id, SideEffectKind.ROOM_STATUS, room_id, room_status.value,
                lambda: self.room_service.set_room_status(
                    room_id, room_status, booking_id=booking_id, reason=transition.trigger
                )
            )

        self.side_effects.run(
            booking_id, SideEffectKind.GUEST_SYNC, guest_id, None,
            lambda: self.guest_service.sync_guest_status(guest_id)
        )

        self._publish_event(Event(
            event_type=STATUS_EVENTS[new_status],
            timestamp=datetime.now(),
            data=BookingStatusChangedData(
                booking_id=booking_id,
                guest_id=guest_id,
                room_id=room_id,
                old_status=old_status.value,
                new_status=new_status.value
            ).to_dict(),
            source="booking_service"
        ))
        return True

    def check_in(self, booking_id: int) -> bool:
        """
        办理入住：已预订 -> 已入住，房间 -> 占用

        同一房间已有在住预订时拒绝入住；读取失败返回 False。
        """
        booking = self._load_booking(booking_id)
        if booking is None:
            return False
        validate_transition(booking.status, BookingStatus.CHECKED_IN)

        try:
            occupants = self.gateway.select(
                Booking, {"room_id": booking.room_id, "status": BookingStatus.CHECKED_IN}
            )
        except PersistenceError as e:
            logger.error(f"Occupancy check for room {booking.room_id} failed: {e}")
            return False
        if any(b.id != booking_id for b in occupants):
            raise ValidationError("房间仍有在住客人，不能办理入住")
        return self.update_booking_status(booking_id, BookingStatus.CHECKED_IN)

    def check_out(self, booking_id: int) -> bool:
        """办理退房：已入住 -> 已退房，房间 -> 待清洁"""
        booking = self._load_booking(booking_id)
        if booking is None:
            return False
        validate_transition(booking.status, BookingStatus.CHECKED_OUT)
        return self.update_booking_status(booking_id, BookingStatus.CHECKED_OUT)

    def cancel_booking(self, booking_id: int) -> bool:
        """取消预订：已预订 -> 已取消"""
        return self.update_booking_status(booking_id, BookingStatus.CANCELLED)

    # ============== 编辑 ==============

    def update_booking_payment_status(self, booking_id: int,
                                      payment_status: BookingPaymentStatus) -> bool:
        """更新预订付款状态；读取或写入失败返回 False"""
        payment_status = BookingPaymentStatus(payment_status)
        booking = self._load_booking(booking_id)
        if booking is None:
            return False

        old_status = booking.payment_status
        if old_status == payment_status:
            return True

        try:
            self.gateway.update(Booking, booking_id, {"payment_status": payment_status})
        except PersistenceError as e:
            logger.error(f"Booking {booking_id} payment status update failed: {e}")
            return False

        logger.info(
            f"Booking {booking_id} payment status {old_status.value} -> {payment_status.value}"
        )
        self._publish_event(Event(
            event_type=EventType.BOOKING_PAYMENT_STATUS_CHANGED,
            timestamp=datetime.now(),
            data=BookingPaymentStatusChangedData(
                booking_id=booking_id,
                old_status=old_status.value,
                new_status=payment_status.value
            ).to_dict(),
            source="booking_service"
        ))
        return True

    def update_booking(self, booking_id: int,
                       data: Union[BookingUpdate, Dict[str, Any]]) -> Booking:
        """
        编辑预订字段

        生命周期状态不可通过编辑变更。日期变化且未显式给出总价时按房价重新计算。
        """
        if isinstance(data, BookingUpdate):
            patch = data.model_dump(exclude_unset=True)
        else:
            patch = dict(data)
        if "status" in patch:
            raise ValidationError("预订状态只能通过入住、退房或取消变更")

        booking = self._require_booking(booking_id)

        if "check_in" in patch or "check_out" in patch:
            check_in = _as_date(patch.get("check_in", booking.check_in))
            check_out = _as_date(patch.get("check_out", booking.check_out))
            if check_out <= check_in:
                raise ValidationError("离店日期必须晚于入住日期")
            if booking.status in ACTIVE_BOOKING_STATUSES:
                self._check_room_availability(
                    booking.room, check_in, check_out, exclude_booking_id=booking_id
                )
            patch["check_in"], patch["check_out"] = check_in, check_out
            if "total_amount" not in patch:
                patch["total_amount"] = Decimal(booking.room.rate) * calculate_nights(check_in, check_out)

        booking = self.gateway.update(Booking, booking_id, patch)
        logger.info(f"Booking {booking_id} updated: {sorted(patch)}")
        return booking

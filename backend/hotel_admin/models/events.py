"""
领域事件定义 (Domain Events)
预订生命周期、房间状态和客人状态的变更事件
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Dict, Any


class EventType(str, Enum):
    """事件类型枚举"""
    # 预订相关
    BOOKING_CREATED = "booking.created"
    BOOKING_CHECKED_IN = "booking.checked_in"
    BOOKING_CHECKED_OUT = "booking.checked_out"
    BOOKING_CANCELLED = "booking.cancelled"
    BOOKING_PAYMENT_STATUS_CHANGED = "booking.payment_status_changed"

    # 房间相关
    ROOM_STATUS_CHANGED = "room.status_changed"

    # 客人相关
    GUEST_STATUS_CHANGED = "guest.status_changed"

    # 支付相关
    PAYMENT_RECORDED = "payment.recorded"
    PAYMENT_STATUS_CHANGED = "payment.status_changed"


@dataclass
class BaseEventData:
    """事件数据基类"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
        return result


@dataclass
class BookingCreatedData(BaseEventData):
    """预订创建事件数据"""
    booking_id: int = 0
    guest_id: int = 0
    room_id: int = 0
    check_in: str = ""   # date as string
    check_out: str = ""  # date as string
    total_amount: float = 0.0


@dataclass
class BookingStatusChangedData(BaseEventData):
    """预订状态变更事件数据（入住 / 退房 / 取消）"""
    booking_id: int = 0
    guest_id: int = 0
    room_id: int = 0
    old_status: str = ""
    new_status: str = ""


@dataclass
class BookingPaymentStatusChangedData(BaseEventData):
    """预订付款状态变更事件数据"""
    booking_id: int = 0
    old_status: str = ""
    new_status: str = ""


@dataclass
class RoomStatusChangedData(BaseEventData):
    """房间状态变更事件数据"""
    room_id: int = 0
    room_number: str = ""
    old_status: str = ""
    new_status: str = ""
    booking_id: Optional[int] = None
    reason: str = ""


@dataclass
class GuestStatusChangedData(BaseEventData):
    """客人状态变更事件数据"""
    guest_id: int = 0
    guest_name: str = ""
    old_status: str = ""
    new_status: str = ""


@dataclass
class PaymentEventData(BaseEventData):
    """支付事件数据"""
    payment_id: int = 0
    booking_id: int = 0
    amount: float = 0.0
    method: str = ""
    old_status: str = ""
    new_status: str = ""

"""
预订状态规则

- 预订状态机：Reserved → CheckedIn → CheckedOut，Reserved → Cancelled；
  CheckedOut 和 Cancelled 为终态
- 客人状态推导：由客人的有效预订计算
- 间夜数计算
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Union
import math

from hotel_admin.exceptions import ValidationError
from hotel_admin.models.ontology import BookingStatus, GuestStatus, RoomStatus


@dataclass(frozen=True)
class StateTransition:
    """
    状态转换定义

    Attributes:
        from_state: 源状态
        to_state: 目标状态
        trigger: 触发动作
        room_status: 转换后房间应处的状态，None 表示不影响房间
    """

    from_state: BookingStatus
    to_state: BookingStatus
    trigger: str
    room_status: Optional[RoomStatus] = None


BOOKING_TRANSITIONS: List[StateTransition] = [
    StateTransition(BookingStatus.RESERVED, BookingStatus.CHECKED_IN, "check_in", RoomStatus.OCCUPIED),
    StateTransition(BookingStatus.RESERVED, BookingStatus.CANCELLED, "cancel"),
    StateTransition(BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT, "check_out", RoomStatus.CLEANING),
]

TERMINAL_STATES = frozenset({BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED})

_TRANSITION_MAP = {(t.from_state, t.to_state): t for t in BOOKING_TRANSITIONS}


def find_transition(current: BookingStatus, target: BookingStatus) -> Optional[StateTransition]:
    """查找转换定义，不存在返回 None"""
    return _TRANSITION_MAP.get((BookingStatus(current), BookingStatus(target)))


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """检查转换是否合法"""
    return find_transition(current, target) is not None


def validate_transition(current: BookingStatus, target: BookingStatus) -> StateTransition:
    """校验转换，非法时抛出 ValidationError"""
    transition = find_transition(current, target)
    if transition is None:
        current = BookingStatus(current)
        if current in TERMINAL_STATES:
            raise ValidationError(f"预订已处于终态 {current.value}，不能变更为 {BookingStatus(target).value}")
        raise ValidationError(f"预订状态不能从 {current.value} 变更为 {BookingStatus(target).value}")
    return transition


def room_status_for(target: BookingStatus) -> Optional[RoomStatus]:
    """根据目标预订状态推导房间状态，只有入住和退房影响房间"""
    for transition in BOOKING_TRANSITIONS:
        if transition.to_state == target:
            return transition.room_status
    return None


def derive_guest_status(booking_statuses: Iterable[BookingStatus]) -> GuestStatus:
    """
    根据客人的预订状态推导客人状态

    已取消、已退房的预订不参与计算；在住优先于已预订
    """
    statuses = {BookingStatus(s) for s in booking_statuses}
    if BookingStatus.CHECKED_IN in statuses:
        return GuestStatus.CHECKED_IN
    if BookingStatus.RESERVED in statuses:
        return GuestStatus.RESERVED
    return GuestStatus.NO_STAY


def calculate_nights(check_in: Union[date, datetime], check_out: Union[date, datetime]) -> int:
    """间夜数：不足一天按一天计，最少 1 晚"""
    if isinstance(check_in, datetime) or isinstance(check_out, datetime):
        start = check_in if isinstance(check_in, datetime) else datetime.combine(check_in, datetime.min.time())
        end = check_out if isinstance(check_out, datetime) else datetime.combine(check_out, datetime.min.time())
        days = math.ceil((end - start).total_seconds() / 86400)
    else:
        days = (check_out - check_in).days
    return max(1, days)

"""
房间服务
管理 Room 对象；房间状态由预订生命周期和清洁完成驱动，
状态变更时发布 room.status_changed 事件
"""
from typing import List, Optional, Callable
from datetime import datetime
import logging

from hotel_admin.exceptions import NotFoundError, ValidationError
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models.events import EventType, RoomStatusChangedData
from hotel_admin.models.ontology import Room, RoomStatus, RoomType, Booking
from hotel_admin.models.schemas import RoomCreate, RoomUpdate
from hotel_admin.services.event_bus import event_bus, Event

logger = logging.getLogger(__name__)


class RoomService:
    """房间服务"""

    def __init__(self, db, gateway: Optional[PersistenceGateway] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.gateway = gateway or PersistenceGateway(db)
        self._publish_event = event_publisher or event_bus.publish

    def get_rooms(self, status: Optional[RoomStatus] = None,
                  room_type: Optional[RoomType] = None) -> List[Room]:
        """获取房间列表（按房间号排序）"""
        filters = {}
        if status:
            filters["status"] = status
        if room_type:
            filters["type"] = room_type
        return self.gateway.select(Room, filters, order_by="number")

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        return self.gateway.get(Room, room_id)

    def get_room_by_number(self, number: str) -> Optional[Room]:
        """根据房间号获取房间"""
        rooms = self.gateway.select(Room, {"number": number}, limit=1)
        return rooms[0] if rooms else None

    def create_room(self, data: RoomCreate) -> Room:
        """创建房间，初始状态为空闲"""
        if self.get_room_by_number(data.number):
            raise ValidationError(f"房间号 {data.number} 已存在")

        values = data.model_dump()
        values["status"] = RoomStatus.AVAILABLE
        return self.gateway.insert(Room, values)

    def update_room(self, room_id: int, data: RoomUpdate) -> Room:
        """更新房间信息（不含状态）"""
        if not self.get_room(room_id):
            raise NotFoundError("房间不存在")

        update_data = data.model_dump(exclude_unset=True)
        if "number" in update_data:
            existing = self.get_room_by_number(update_data["number"])
            if existing and existing.id != room_id:
                raise ValidationError(f"房间号 {update_data['number']} 已存在")

        return self.gateway.update(Room, room_id, update_data)

    def delete_room(self, room_id: int) -> None:
        """删除房间，存在预订记录时不允许删除"""
        if not self.get_room(room_id):
            raise NotFoundError("房间不存在")
        if self.gateway.select(Booking, {"room_id": room_id}, limit=1):
            raise ValidationError("房间存在预订记录，不能删除")
        self.gateway.delete(Room, room_id)

    def set_room_status(self, room_id: int, status: RoomStatus,
                        booking_id: Optional[int] = None, reason: str = "") -> Room:
        """
        设置房间状态（供预订生命周期和清洁流程调用）

        Raises:
            NotFoundError: 房间不存在
            PersistenceError: 网关调用失败
        """
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("房间不存在")

        old_status = room.status
        if old_status == status:
            return room

        room = self.gateway.update(Room, room_id, {"status": status})
        logger.info(f"Room {room.number} status {old_status.value} -> {status.value} ({reason})")

        self._publish_event(Event(
            event_type=EventType.ROOM_STATUS_CHANGED,
            timestamp=datetime.now(),
            data=RoomStatusChangedData(
                room_id=room.id,
                room_number=room.number,
                old_status=old_status.value,
                new_status=status.value,
                booking_id=booking_id,
                reason=reason
            ).to_dict(),
            source="room_service"
        ))
        return room

    def mark_room_ready(self, room_id: int) -> Room:
        """清洁完成：待清洁 -> 空闲"""
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("房间不存在")
        if room.status != RoomStatus.CLEANING:
            raise ValidationError(f"房间状态为 {room.status.value}，只有待清洁的房间可以标记为空闲")
        return self.set_room_status(room_id, RoomStatus.AVAILABLE, reason="cleaning_done")

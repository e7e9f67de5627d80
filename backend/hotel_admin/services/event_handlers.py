"""
事件处理器 - 生命周期审计日志
订阅预订、房间、客人、支付领域事件并写入审计日志
"""
from typing import Callable, List, Optional
import logging

from hotel_admin.models.events import EventType
from hotel_admin.services.event_bus import event_bus, Event

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("hotel_admin.audit")

AUDITED_EVENTS: List[EventType] = list(EventType)


class EventHandlers:
    """
    事件处理器集合

    支持依赖注入以便于测试：
    - audit_sink: 审计记录输出，默认写入 hotel_admin.audit 日志
    """

    def __init__(self, audit_sink: Optional[Callable[[str], None]] = None):
        self._audit_sink = audit_sink or audit_logger.info
        self._registered = False

    @staticmethod
    def format_event(event: Event) -> str:
        """审计记录格式：事件类型 来源 关键字段"""
        data = event.data
        fields = " ".join(
            f"{key}={data[key]}"
            for key in ("booking_id", "room_id", "guest_id", "payment_id",
                        "old_status", "new_status", "reason")
            if data.get(key) not in (None, "")
        )
        event_type = event.event_type
        if isinstance(event_type, EventType):
            event_type = event_type.value
        return f"[{event.event_id}] {event_type} from {event.source}: {fields}"

    def handle_lifecycle_event(self, event: Event) -> None:
        """记录生命周期事件"""
        self._audit_sink(self.format_event(event))

    def register_handlers(self, event_bus_instance=None) -> None:
        """注册所有事件处理器"""
        if self._registered:
            return

        bus = event_bus_instance or event_bus
        for event_type in AUDITED_EVENTS:
            bus.subscribe(event_type, self.handle_lifecycle_event)

        self._registered = True
        logger.info("Event handlers registered successfully")

    def unregister_handlers(self, event_bus_instance=None) -> None:
        """取消注册所有事件处理器（用于测试）"""
        bus = event_bus_instance or event_bus
        for event_type in AUDITED_EVENTS:
            bus.unsubscribe(event_type, self.handle_lifecycle_event)

        self._registered = False
        logger.info("Event handlers unregistered")


# 全局事件处理器实例
event_handlers = EventHandlers()


def register_event_handlers():
    """注册所有事件处理器（应用启动时调用）"""
    event_handlers.register_handlers()

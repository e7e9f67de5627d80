"""
事件总线 - 内存级发布/订阅
生命周期服务发布领域事件，订阅者（审计日志等）与业务逻辑解耦
"""
from typing import Callable, Dict, List, Any, Optional, Union
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading

from hotel_admin.models.events import EventType

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """事件"""
    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # 触发来源（服务名）
    event_id: str = field(default_factory=lambda: datetime.now().strftime("%Y%m%d%H%M%S%f"))


def _key(event_type: Union[str, EventType]) -> str:
    return event_type.value if isinstance(event_type, EventType) else event_type


class EventBus:
    """
    内存级事件总线（线程安全单例）

    使用方式：
    1. 订阅事件：event_bus.subscribe(EventType.BOOKING_CHECKED_OUT, handler)
    2. 发布事件：event_bus.publish(Event(...))
    3. 取消订阅：event_bus.unsubscribe(EventType.BOOKING_CHECKED_OUT, handler)
    """

    HISTORY_SIZE = 100

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._subscribers: Dict[str, List[Callable]] = {}
        self._history: deque = deque(maxlen=self.HISTORY_SIZE)
        self._subscriber_lock = threading.Lock()
        self._initialized = True
        logger.info("EventBus initialized")

    def subscribe(self, event_type: Union[str, EventType], handler: Callable) -> None:
        """订阅事件，同一处理器重复订阅只登记一次"""
        key = _key(event_type)
        with self._subscriber_lock:
            handlers = self._subscribers.setdefault(key, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.info(f"Handler {handler.__name__} subscribed to {key}")

    def unsubscribe(self, event_type: Union[str, EventType], handler: Callable) -> None:
        """取消订阅"""
        key = _key(event_type)
        with self._subscriber_lock:
            handlers = self._subscribers.get(key, [])
            if handler in handlers:
                handlers.remove(handler)
                logger.info(f"Handler {handler.__name__} unsubscribed from {key}")

    def publish(self, event: Event) -> None:
        """
        发布事件（同步执行所有处理器）

        处理器异常只记录日志，不影响其他处理器，也不回传给发布方
        """
        key = _key(event.event_type)
        self._history.append(event)

        with self._subscriber_lock:
            handlers = list(self._subscribers.get(key, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler {handler.__name__} error for {key}: {e}",
                    exc_info=True
                )

    def get_history(self, event_type: Optional[Union[str, EventType]] = None,
                    limit: int = 50) -> List[Event]:
        """获取事件历史（最新的在前）"""
        history = list(self._history)
        if event_type:
            key = _key(event_type)
            history = [e for e in history if _key(e.event_type) == key]
        return list(reversed(history))[:limit]

    def clear_subscribers(self) -> None:
        """清空所有订阅（用于测试）"""
        with self._subscriber_lock:
            self._subscribers.clear()

    def clear_history(self) -> None:
        """清空事件历史"""
        self._history.clear()


# 全局事件总线实例
event_bus = EventBus()

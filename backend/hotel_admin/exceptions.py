"""
业务异常定义

ValidationError 和 NotFoundError 继承 ValueError，路由层沿用
``except ValueError`` 的处理方式；PersistenceError 表示持久化网关调用失败。
"""


class HotelAdminError(Exception):
    """业务异常基类"""


class ValidationError(HotelAdminError, ValueError):
    """输入不合法，在任何持久化调用之前被拒绝"""


class NotFoundError(HotelAdminError, ValueError):
    """引用的预订 / 客人 / 房间不存在"""


class PersistenceError(HotelAdminError, RuntimeError):
    """持久化网关调用失败（网络或数据库错误）"""

"""
业务实体定义
所有业务实体通过 SQLAlchemy 对象、属性、链接进行建模
枚举的存储值沿用原系统数据中的葡语标签
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date,
    ForeignKey, Text, Enum as SQLEnum, Numeric
)
from sqlalchemy.orm import relationship
from hotel_admin.database import Base


# ============== 枚举定义 ==============

class RoomType(str, Enum):
    """房型"""
    SINGLE = "Solteiro"   # 单人间
    DOUBLE = "Casal"      # 双人间


class RoomStatus(str, Enum):
    """房间状态"""
    AVAILABLE = "Disponível"  # 空闲
    OCCUPIED = "Ocupado"      # 入住中
    CLEANING = "Limpeza"      # 待清洁


class GuestStatus(str, Enum):
    """客人状态（由客人的有效预订推导，不允许直接修改）"""
    NO_STAY = "Sem estadia"   # 无住宿
    RESERVED = "Reservado"    # 已预订
    CHECKED_IN = "Hospedado"  # 在住


class BookingStatus(str, Enum):
    """预订生命周期状态"""
    RESERVED = "Reservado"           # 已预订
    CHECKED_IN = "Check-in Feito"    # 已入住
    CHECKED_OUT = "Check-out Feito"  # 已退房
    CANCELLED = "Cancelada"          # 已取消


class BookingPaymentStatus(str, Enum):
    """预订付款状态"""
    PENDING = "Pendente"       # 待付款
    PARTIAL = "Parcial"        # 部分付款
    PAID = "Pago"              # 已付款
    REFUNDED = "Reembolsado"   # 已退款


class PaymentStatus(str, Enum):
    """支付记录状态"""
    PROCESSING = "Processando"  # 处理中
    APPROVED = "Aprovado"       # 已批准
    REJECTED = "Rejeitado"      # 已拒绝
    REFUNDED = "Estornado"      # 已退款


class SideEffectKind(str, Enum):
    """生命周期副作用类型"""
    ROOM_STATUS = "room_status"  # 更新房间状态
    GUEST_SYNC = "guest_sync"    # 同步客人状态


class SideEffectStatus(str, Enum):
    """副作用执行状态"""
    PENDING = "pending"  # 已登记，未执行
    DONE = "done"        # 已完成
    FAILED = "failed"    # 执行失败，待重放


# 有效预订：参与客人状态推导、房间占用判断
ACTIVE_BOOKING_STATUSES = (BookingStatus.RESERVED, BookingStatus.CHECKED_IN)


def _enum_column(enum_cls, **kwargs) -> Column:
    """以枚举值（而非成员名）存储"""
    return Column(
        SQLEnum(enum_cls, values_callable=lambda e: [m.value for m in e]),
        **kwargs
    )


# ============== 实体定义 ==============

class Room(Base):
    """
    房间对象
    状态只由预订生命周期（入住 / 退房）和清洁完成驱动
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(10), unique=True, nullable=False)   # 房间号
    type = _enum_column(RoomType, nullable=False)
    status = _enum_column(RoomStatus, default=RoomStatus.AVAILABLE, nullable=False)
    rate = Column(Numeric(10, 2), nullable=False)               # 每晚价格
    description = Column(Text)                                  # 描述
    image_url = Column(String(255))                             # 图片地址
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # 链接
    bookings = relationship("Booking", back_populates="room")


class Guest(Base):
    """
    客人对象
    status 为派生字段：始终等于 GuestService.sync_guest_status 的结果
    """
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)            # 姓名
    email = Column(String(100), nullable=False)           # 邮箱
    phone = Column(String(20))                            # 手机号
    cpf = Column(String(14))                              # 税号 (CPF)
    status = _enum_column(GuestStatus, default=GuestStatus.NO_STAY, nullable=False)
    birth_date = Column(Date)                             # 出生日期
    gender = Column(String(20))                           # 性别
    address = Column(Text)                                # 地址
    nationality = Column(String(50), default="Brasil")    # 国籍
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # 链接
    bookings = relationship("Booking", back_populates="guest")


class Booking(Base):
    """
    预订对象 - 连接一位客人和一间房的聚合根
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    check_in = Column(Date, nullable=False)               # 入住日期
    check_out = Column(Date, nullable=False)              # 离店日期
    status = _enum_column(BookingStatus, default=BookingStatus.RESERVED, nullable=False)
    payment_status = _enum_column(
        BookingPaymentStatus, default=BookingPaymentStatus.PENDING, nullable=False
    )
    payment_method = Column(String(50))                   # 付款方式
    total_amount = Column(Numeric(10, 2))                 # 总价
    notes = Column(Text)                                  # 备注
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # 链接
    guest = relationship("Guest", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking")


class Payment(Base):
    """
    支付记录对象
    属于 Booking
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)       # 支付金额
    method = Column(String(50), nullable=False)           # 支付方式
    status = _enum_column(PaymentStatus, default=PaymentStatus.PROCESSING, nullable=False)
    payment_date = Column(Date)                           # 支付日期
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # 链接
    booking = relationship("Booking", back_populates="payments")


class SideEffectEntry(Base):
    """
    副作用日志
    预订状态变更后的房间 / 客人更新先登记再执行，失败的条目可重放
    """
    __tablename__ = "side_effects"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    kind = _enum_column(SideEffectKind, nullable=False)
    target_id = Column(Integer, nullable=False)           # 房间ID 或 客人ID
    payload = Column(String(50))                          # 目标状态（房间状态值）
    status = _enum_column(SideEffectStatus, default=SideEffectStatus.PENDING, nullable=False)
    attempts = Column(Integer, default=0)                 # 执行次数
    last_error = Column(Text)                             # 最近一次错误
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

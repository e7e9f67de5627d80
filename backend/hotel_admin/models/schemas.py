"""
Pydantic 模式定义
用于 API 请求/响应验证
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict, model_validator
from hotel_admin.models.ontology import (
    RoomType, RoomStatus, GuestStatus, BookingStatus, BookingPaymentStatus,
    PaymentStatus, SideEffectKind, SideEffectStatus
)


# ============== 房间 Schemas ==============

class RoomBase(BaseModel):
    number: str = Field(..., max_length=10)
    type: RoomType
    rate: Decimal = Field(..., ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=255)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    """房间编辑；状态不在可编辑字段内"""
    number: Optional[str] = Field(None, max_length=10)
    type: Optional[RoomType] = None
    rate: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=255)


class RoomResponse(RoomBase):
    id: int
    status: RoomStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 客人 Schemas ==============

class GuestBase(BaseModel):
    name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    cpf: Optional[str] = Field(None, max_length=14)
    birth_date: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    nationality: str = Field(default="Brasil", max_length=50)


class GuestCreate(GuestBase):
    pass


class GuestUpdate(BaseModel):
    """客人编辑；status 由同步器维护，不可编辑"""
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    cpf: Optional[str] = Field(None, max_length=14)
    birth_date: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    nationality: Optional[str] = Field(None, max_length=50)


class GuestResponse(GuestBase):
    id: int
    status: GuestStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class GuestSyncResponse(BaseModel):
    guest_id: int
    status: GuestStatus


# ============== 预订 Schemas ==============

class BookingCreate(BaseModel):
    guest_id: int
    room_id: int
    check_in: date
    check_out: date
    payment_method: Optional[str] = Field(None, max_length=50)


class BookingUpdate(BaseModel):
    """预订字段编辑；生命周期状态通过入住 / 退房 / 取消接口变更"""
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_status: Optional[BookingPaymentStatus] = None


class BookingPaymentStatusUpdate(BaseModel):
    payment_status: BookingPaymentStatus


class BookingResponse(BaseModel):
    id: int
    guest_id: int
    room_id: int
    check_in: date
    check_out: date
    status: BookingStatus
    payment_status: BookingPaymentStatus
    payment_method: Optional[str] = None
    total_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    room_number: Optional[str] = None
    room_type: Optional[RoomType] = None
    nights: int = 1
    model_config = ConfigDict(from_attributes=True)


class LifecycleResult(BaseModel):
    booking_id: int
    success: bool
    message: str


# ============== 支付 Schemas ==============

class PaymentCreate(BaseModel):
    booking_id: int
    amount: Decimal = Field(..., gt=0)
    method: str = Field(..., max_length=50)
    status: PaymentStatus = PaymentStatus.PROCESSING
    payment_date: Optional[date] = None

    @model_validator(mode="after")
    def check_initial_status(self):
        if self.status not in (PaymentStatus.PROCESSING, PaymentStatus.APPROVED):
            raise ValueError("新支付记录的状态只能是处理中或已批准")
        return self


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    amount: Decimal
    method: str
    status: PaymentStatus
    payment_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BookingPaymentApproval(BaseModel):
    """直接确认待付款预订的付款"""
    method: Optional[str] = Field(None, max_length=50)
    amount: Optional[Decimal] = Field(None, ge=0)


class TransactionResponse(BaseModel):
    """统一交易视图：支付记录 + 尚无支付记录的待付款预订"""
    id: str
    booking_id: int
    amount: Decimal
    method: str
    status: str
    payment_date: Optional[date] = None
    created_at: datetime
    is_pending_booking: bool = False


# ============== 报表 Schemas ==============

class DashboardMetrics(BaseModel):
    total_rooms: int
    occupied_rooms: int
    available_rooms: int
    cleaning_rooms: int
    occupancy_rate: float
    total_revenue: Decimal
    monthly_revenue: Decimal
    active_guests: int
    pending_bookings: int
    today_check_ins: int
    today_check_outs: int


class PaymentMetrics(BaseModel):
    total_revenue: Decimal
    pending_payments: Decimal
    today_transactions: int
    monthly_transactions: int
    payment_methods: Dict[str, int]
    status_breakdown: Dict[str, int]
    revenue_growth: float
    pending_growth: float


class OccupancyPoint(BaseModel):
    date: date
    occupied: int
    available: int
    occupancy_rate: float


class RevenuePoint(BaseModel):
    week: str
    start_date: date
    end_date: date
    revenue: Decimal


class RecentBooking(BaseModel):
    id: int
    guest_name: str
    guest_email: str
    room_number: str
    room_type: str
    check_in: date
    check_out: date
    status: BookingStatus
    amount: Optional[Decimal] = None


class PaymentMethodStat(BaseModel):
    method: str
    count: int
    total: Decimal
    percentage: float


# ============== 诊断 Schemas ==============

class ConsistencyWarningResponse(BaseModel):
    guest_id: int
    guest_name: str
    current_status: GuestStatus
    expected_status: GuestStatus
    booking_ids: List[int]


class SyncAllResponse(BaseModel):
    updated_count: int


class SideEffectResponse(BaseModel):
    id: int
    booking_id: int
    kind: SideEffectKind
    target_id: int
    payload: Optional[str] = None
    status: SideEffectStatus
    attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReconcileResponse(BaseModel):
    repaired: int
    still_failing: int
    purged: int = 0

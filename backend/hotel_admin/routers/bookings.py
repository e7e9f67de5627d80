"""
预订管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.exceptions import NotFoundError
from hotel_admin.models.ontology import BookingStatus
from hotel_admin.models.schemas import (
    BookingCreate, BookingUpdate, BookingPaymentStatusUpdate,
    BookingResponse, LifecycleResult
)
from hotel_admin.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["预订管理"])

RETRY_MESSAGE = "数据写入失败，请稍后重试"


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    status: Optional[BookingStatus] = None,
    guest_id: Optional[int] = None,
    room_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """获取预订列表"""
    service = BookingService(db)
    bookings = service.get_bookings(status, guest_id, room_id)
    return [BookingResponse(**service.get_booking_detail(b.id)) for b in bookings]


@router.get("/active", response_model=List[BookingResponse])
def list_active_bookings(db: Session = Depends(get_db)):
    """获取有效预订（已预订 + 已入住）"""
    service = BookingService(db)
    return [BookingResponse(**service.get_booking_detail(b.id)) for b in service.get_active_bookings()]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    """获取预订详情"""
    service = BookingService(db)
    detail = service.get_booking_detail(booking_id)
    if not detail:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="预订不存在")
    return BookingResponse(**detail)


@router.post("", response_model=BookingResponse)
def create_booking(data: BookingCreate, db: Session = Depends(get_db)):
    """创建预订"""
    service = BookingService(db)
    try:
        booking = service.create_booking(
            data.guest_id, data.room_id, data.check_in, data.check_out, data.payment_method
        )
        return BookingResponse(**service.get_booking_detail(booking.id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/{booking_id}", response_model=BookingResponse)
def update_booking(booking_id: int, data: BookingUpdate, db: Session = Depends(get_db)):
    """编辑预订字段"""
    service = BookingService(db)
    try:
        booking = service.update_booking(booking_id, data)
        return BookingResponse(**service.get_booking_detail(booking.id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{booking_id}/cancel", response_model=LifecycleResult)
def cancel_booking(booking_id: int, db: Session = Depends(get_db)):
    """取消预订"""
    service = BookingService(db)
    try:
        success = service.cancel_booking(booking_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not success:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=RETRY_MESSAGE)
    return LifecycleResult(booking_id=booking_id, success=True, message="预订已取消")


@router.put("/{booking_id}/payment-status", response_model=LifecycleResult)
def update_payment_status(
    booking_id: int,
    data: BookingPaymentStatusUpdate,
    db: Session = Depends(get_db)
):
    """更新预订付款状态"""
    service = BookingService(db)
    try:
        success = service.update_booking_payment_status(booking_id, data.payment_status)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if not success:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=RETRY_MESSAGE)
    return LifecycleResult(
        booking_id=booking_id, success=True,
        message=f"付款状态已更新为 {data.payment_status.value}"
    )

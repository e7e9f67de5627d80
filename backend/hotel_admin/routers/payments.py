"""
支付管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.exceptions import NotFoundError
from hotel_admin.models.ontology import PaymentStatus
from hotel_admin.models.schemas import (
    PaymentCreate, PaymentResponse, TransactionResponse,
    BookingPaymentApproval, BookingResponse
)
from hotel_admin.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["支付管理"])


@router.get("", response_model=List[PaymentResponse])
def list_payments(
    status: Optional[PaymentStatus] = None,
    booking_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """获取支付记录"""
    service = PaymentService(db)
    return service.get_payments(status, booking_id)


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(db: Session = Depends(get_db)):
    """获取统一交易列表（支付记录 + 待付款预订）"""
    service = PaymentService(db)
    return service.get_all_transactions()


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    """获取支付记录详情"""
    service = PaymentService(db)
    payment = service.get_payment(payment_id)
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="支付记录不存在")
    return payment


@router.post("", response_model=PaymentResponse)
def create_payment(data: PaymentCreate, db: Session = Depends(get_db)):
    """登记支付"""
    service = PaymentService(db)
    try:
        return service.create_payment(data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{payment_id}/approve", response_model=PaymentResponse)
def approve_payment(payment_id: int, db: Session = Depends(get_db)):
    """批准支付"""
    service = PaymentService(db)
    try:
        return service.approve_payment(payment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{payment_id}/reject", response_model=PaymentResponse)
def reject_payment(payment_id: int, db: Session = Depends(get_db)):
    """拒绝支付"""
    service = PaymentService(db)
    try:
        return service.reject_payment(payment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
def refund_payment(payment_id: int, db: Session = Depends(get_db)):
    """退款"""
    service = PaymentService(db)
    try:
        return service.refund_payment(payment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/bookings/{booking_id}/approve", response_model=BookingResponse)
def approve_booking_payment(
    booking_id: int,
    data: BookingPaymentApproval,
    db: Session = Depends(get_db)
):
    """确认尚无支付记录的预订付款"""
    service = PaymentService(db)
    try:
        service.approve_booking_payment(booking_id, data.method, data.amount)
        return BookingResponse(**service.booking_service.get_booking_detail(booking_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{payment_id}")
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    """删除支付记录"""
    service = PaymentService(db)
    try:
        service.delete_payment(payment_id)
        return {"message": "删除成功"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

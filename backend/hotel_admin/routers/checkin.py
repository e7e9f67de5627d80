"""
入住管理路由
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.exceptions import NotFoundError
from hotel_admin.models.schemas import LifecycleResult
from hotel_admin.routers.bookings import RETRY_MESSAGE
from hotel_admin.services.booking_service import BookingService

router = APIRouter(prefix="/checkin", tags=["入住管理"])


@router.post("/{booking_id}", response_model=LifecycleResult)
def check_in(booking_id: int, db: Session = Depends(get_db)):
    """办理入住"""
    service = BookingService(db)
    try:
        success = service.check_in(booking_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not success:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=RETRY_MESSAGE)
    return LifecycleResult(booking_id=booking_id, success=True, message="入住成功")

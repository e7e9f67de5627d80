"""
客人管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.exceptions import NotFoundError
from hotel_admin.models.ontology import GuestStatus
from hotel_admin.models.schemas import (
    GuestCreate, GuestUpdate, GuestResponse, GuestSyncResponse
)
from hotel_admin.services.guest_service import GuestService

router = APIRouter(prefix="/guests", tags=["客人管理"])


@router.get("", response_model=List[GuestResponse])
def list_guests(
    search: Optional[str] = None,
    status: Optional[GuestStatus] = None,
    db: Session = Depends(get_db)
):
    """获取客人列表"""
    service = GuestService(db)
    return service.get_guests(search, status)


@router.get("/{guest_id}", response_model=GuestResponse)
def get_guest(guest_id: int, db: Session = Depends(get_db)):
    """获取客人详情"""
    service = GuestService(db)
    guest = service.get_guest(guest_id)
    if not guest:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="客人不存在")
    return guest


@router.get("/{guest_id}/bookings")
def get_guest_bookings(guest_id: int, limit: int = 10, db: Session = Depends(get_db)):
    """获取客人预订历史"""
    service = GuestService(db)
    try:
        return service.get_guest_booking_history(guest_id, limit)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=GuestResponse)
def create_guest(data: GuestCreate, db: Session = Depends(get_db)):
    """创建客人"""
    service = GuestService(db)
    try:
        return service.create_guest(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{guest_id}", response_model=GuestResponse)
def update_guest(guest_id: int, data: GuestUpdate, db: Session = Depends(get_db)):
    """更新客人信息（状态由系统维护）"""
    service = GuestService(db)
    try:
        return service.update_guest(guest_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{guest_id}")
def delete_guest(guest_id: int, db: Session = Depends(get_db)):
    """删除客人"""
    service = GuestService(db)
    try:
        service.delete_guest(guest_id)
        return {"message": "删除成功"}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{guest_id}/sync", response_model=GuestSyncResponse)
def sync_guest_status(guest_id: int, db: Session = Depends(get_db)):
    """按有效预订重新计算客人状态"""
    service = GuestService(db)
    try:
        return GuestSyncResponse(guest_id=guest_id, status=service.sync_guest_status(guest_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

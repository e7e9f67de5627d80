"""
数据诊断路由
客人状态一致性检查 / 批量同步，副作用日志查看与重放
"""
from dataclasses import asdict
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.schemas import (
    ConsistencyWarningResponse, SyncAllResponse, SideEffectResponse, ReconcileResponse
)
from hotel_admin.services.guest_service import GuestService
from hotel_admin.services.side_effect_service import SideEffectService

router = APIRouter(prefix="/diagnostics", tags=["数据诊断"])


@router.get("/inconsistencies", response_model=List[ConsistencyWarningResponse])
def list_inconsistencies(db: Session = Depends(get_db)):
    """列出客人状态与有效预订不一致的记录"""
    service = GuestService(db)
    return [asdict(w) for w in service.check_status_inconsistencies()]


@router.post("/sync-guests", response_model=SyncAllResponse)
def sync_all_guests(db: Session = Depends(get_db)):
    """批量同步所有客人状态"""
    service = GuestService(db)
    return SyncAllResponse(updated_count=service.sync_all_guest_statuses())


@router.get("/side-effects", response_model=List[SideEffectResponse])
def list_outstanding_side_effects(db: Session = Depends(get_db)):
    """列出未完成的副作用"""
    service = SideEffectService(db)
    return service.list_outstanding()


@router.post("/reconcile", response_model=ReconcileResponse)
def reconcile(db: Session = Depends(get_db)):
    """重放未完成的副作用"""
    service = SideEffectService(db)
    return asdict(service.reconcile())

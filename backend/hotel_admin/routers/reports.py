"""
报表路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from hotel_admin.database import get_db
from hotel_admin.models.schemas import (
    DashboardMetrics, PaymentMetrics, OccupancyPoint, RevenuePoint,
    RecentBooking, PaymentMethodStat
)
from hotel_admin.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["统计报表"])


@router.get("/dashboard", response_model=DashboardMetrics)
def get_dashboard(db: Session = Depends(get_db)):
    """获取仪表盘数据"""
    service = ReportService(db)
    return DashboardMetrics(**service.get_dashboard_metrics())


@router.get("/payments", response_model=PaymentMetrics)
def get_payment_metrics(db: Session = Depends(get_db)):
    """获取支付统计"""
    service = ReportService(db)
    return PaymentMetrics(**service.get_payment_metrics())


@router.get("/occupancy", response_model=List[OccupancyPoint])
def get_occupancy_chart(
    days: int = Query(default=7, ge=1, le=90),
    db: Session = Depends(get_db)
):
    """获取最近 N 天入住情况"""
    service = ReportService(db)
    return service.get_occupancy_chart(days)


@router.get("/revenue", response_model=List[RevenuePoint])
def get_revenue_chart(
    weeks: int = Query(default=4, ge=1, le=52),
    db: Session = Depends(get_db)
):
    """获取最近 N 周营收"""
    service = ReportService(db)
    return service.get_revenue_chart(weeks)


@router.get("/recent-bookings", response_model=List[RecentBooking])
def get_recent_bookings(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """获取最近预订"""
    service = ReportService(db)
    return service.get_recent_bookings(limit)


@router.get("/payment-methods", response_model=List[PaymentMethodStat])
def get_payment_method_stats(db: Session = Depends(get_db)):
    """获取付款方式统计"""
    service = ReportService(db)
    return service.get_payment_method_stats()

"""
报表服务 - 仪表盘和支付统计
只读：基于房间、预订、支付的当前快照计算指标
"""
from collections import Counter
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
import logging

from hotel_admin.config import settings
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models.ontology import (
    Room, RoomStatus, Guest, GuestStatus, Booking, BookingStatus,
    BookingPaymentStatus, Payment, PaymentStatus
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def occupancy_rate(occupied: int, total: int) -> float:
    """入住率（百分比），没有房间时为 0"""
    if total <= 0:
        return 0.0
    return round(occupied / total * 100, 2)


def growth_percentage(current, prior) -> float:
    """环比增长率（百分比），基数为 0 时为 0"""
    if not prior:
        return 0.0
    return round(float((Decimal(current) - Decimal(prior)) / Decimal(prior) * 100), 2)


def month_window(today: date) -> Tuple[date, date]:
    """本月 [月初, 下月初)"""
    start = today.replace(day=1)
    end = (start + timedelta(days=32)).replace(day=1)
    return start, end


def previous_month_window(today: date) -> Tuple[date, date]:
    """上月 [月初, 本月初)"""
    end = today.replace(day=1)
    start = (end - timedelta(days=1)).replace(day=1)
    return start, end


def _created_on(entity) -> Optional[date]:
    return entity.created_at.date() if entity.created_at else None


def _in_window(day: Optional[date], start: date, end: date) -> bool:
    return day is not None and start <= day < end


def paid_bookings_without_payment(payments: Iterable[Payment],
                                  bookings: Iterable[Booking]) -> List[Booking]:
    """已付款但没有已批准支付记录的预订（避免重复计算收入）"""
    covered = {p.booking_id for p in payments if p.status == PaymentStatus.APPROVED}
    return [
        b for b in bookings
        if b.payment_status == BookingPaymentStatus.PAID and b.id not in covered
    ]


def pending_bookings_without_payment(payments: Iterable[Payment],
                                     bookings: Iterable[Booking]) -> List[Booking]:
    """待付款且没有任何支付记录的预订（已取消的除外）"""
    with_payment = {p.booking_id for p in payments}
    return [
        b for b in bookings
        if b.payment_status == BookingPaymentStatus.PENDING
        and b.status != BookingStatus.CANCELLED
        and b.id not in with_payment
    ]


def calculate_revenue(payments: List[Payment], bookings: List[Booking]) -> Decimal:
    """收入 = 已批准支付金额 + 无已批准支付记录的已付款预订金额"""
    approved = sum((p.amount for p in payments if p.status == PaymentStatus.APPROVED), ZERO)
    paid = sum(
        (b.total_amount or ZERO for b in paid_bookings_without_payment(payments, bookings)),
        ZERO
    )
    return approved + paid


def calculate_pending(payments: List[Payment], bookings: List[Booking]) -> Decimal:
    """待收 = 处理中支付金额 + 无支付记录的待付款预订金额"""
    processing = sum((p.amount for p in payments if p.status == PaymentStatus.PROCESSING), ZERO)
    pending = sum(
        (b.total_amount or ZERO for b in pending_bookings_without_payment(payments, bookings)),
        ZERO
    )
    return processing + pending


class ReportService:
    """报表服务"""

    def __init__(self, db, gateway: Optional[PersistenceGateway] = None):
        self.db = db
        self.gateway = gateway or PersistenceGateway(db)

    def _snapshot(self) -> Tuple[List[Payment], List[Booking]]:
        payments, bookings = self.gateway.select(Payment), self.gateway.select(Booking)
        logger.debug(f"Report snapshot: {len(payments)} payments, {len(bookings)} bookings")
        return payments, bookings

    def _revenue_between(self, payments: List[Payment], bookings: List[Booking],
                         start: date, end: date) -> Decimal:
        window_payments = [
            p for p in payments
            if _in_window(p.payment_date or _created_on(p), start, end)
        ]
        # 去重依据使用全部支付记录，窗口外的已批准支付同样覆盖其预订
        approved = sum(
            (p.amount for p in window_payments if p.status == PaymentStatus.APPROVED), ZERO
        )
        paid = sum(
            (b.total_amount or ZERO for b in paid_bookings_without_payment(payments, bookings)
             if _in_window(_created_on(b), start, end)),
            ZERO
        )
        return approved + paid

    def _pending_between(self, payments: List[Payment], bookings: List[Booking],
                         start: date, end: date) -> Decimal:
        processing = sum(
            (p.amount for p in payments
             if p.status == PaymentStatus.PROCESSING and _in_window(_created_on(p), start, end)),
            ZERO
        )
        pending = sum(
            (b.total_amount or ZERO for b in pending_bookings_without_payment(payments, bookings)
             if _in_window(_created_on(b), start, end)),
            ZERO
        )
        return processing + pending

    def _transactions_between(self, payments: List[Payment], bookings: List[Booking],
                              start: date, end: date) -> int:
        count = sum(1 for p in payments if _in_window(_created_on(p), start, end))
        count += sum(
            1 for b in pending_bookings_without_payment(payments, bookings)
            if _in_window(_created_on(b), start, end)
        )
        return count

    def get_dashboard_metrics(self, today: Optional[date] = None) -> dict:
        """获取仪表盘指标"""
        today = today or date.today()
        rooms = self.gateway.select(Room)
        guests = self.gateway.select(Guest, {"status": GuestStatus.CHECKED_IN})
        payments, bookings = self._snapshot()

        total_rooms = len(rooms)
        by_status = Counter(r.status for r in rooms)
        occupied = by_status[RoomStatus.OCCUPIED]
        start, end = month_window(today)

        return {
            "total_rooms": total_rooms,
            "occupied_rooms": occupied,
            "available_rooms": by_status[RoomStatus.AVAILABLE],
            "cleaning_rooms": by_status[RoomStatus.CLEANING],
            "occupancy_rate": occupancy_rate(occupied, total_rooms),
            "total_revenue": calculate_revenue(payments, bookings),
            "monthly_revenue": self._revenue_between(payments, bookings, start, end),
            "active_guests": len(guests),
            "pending_bookings": sum(1 for b in bookings if b.status == BookingStatus.RESERVED),
            "today_check_ins": sum(
                1 for b in bookings
                if b.check_in == today and b.status == BookingStatus.RESERVED
            ),
            "today_check_outs": sum(
                1 for b in bookings
                if b.check_out == today and b.status == BookingStatus.CHECKED_IN
            ),
        }

    def get_payment_metrics(self, today: Optional[date] = None) -> dict:
        """获取支付统计（含本月与上月的环比）"""
        today = today or date.today()
        payments, bookings = self._snapshot()
        pending_bookings = pending_bookings_without_payment(payments, bookings)

        this_start, this_end = month_window(today)
        last_start, last_end = previous_month_window(today)
        tomorrow = today + timedelta(days=1)

        methods = Counter(p.method for p in payments)
        statuses = Counter(p.status.value for p in payments)
        if pending_bookings:
            methods[BookingPaymentStatus.PENDING.value] += len(pending_bookings)
            statuses[BookingPaymentStatus.PENDING.value] += len(pending_bookings)

        return {
            "total_revenue": calculate_revenue(payments, bookings),
            "pending_payments": calculate_pending(payments, bookings),
            "today_transactions": self._transactions_between(payments, bookings, today, tomorrow),
            "monthly_transactions": self._transactions_between(
                payments, bookings, this_start, this_end
            ),
            "payment_methods": dict(methods),
            "status_breakdown": dict(statuses),
            "revenue_growth": growth_percentage(
                self._revenue_between(payments, bookings, this_start, this_end),
                self._revenue_between(payments, bookings, last_start, last_end)
            ),
            "pending_growth": growth_percentage(
                self._pending_between(payments, bookings, this_start, this_end),
                self._pending_between(payments, bookings, last_start, last_end)
            ),
        }

    def get_occupancy_chart(self, days: int = 7, today: Optional[date] = None) -> List[dict]:
        """最近 N 天每日入住情况（按实际房间数计算）"""
        today = today or date.today()
        total_rooms = len(self.gateway.select(Room))
        bookings = [
            b for b in self.gateway.select(Booking)
            if b.status != BookingStatus.CANCELLED
        ]

        points = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            occupied = min(
                sum(1 for b in bookings if b.check_in <= day < b.check_out),
                total_rooms
            )
            points.append({
                "date": day,
                "occupied": occupied,
                "available": total_rooms - occupied,
                "occupancy_rate": occupancy_rate(occupied, total_rooms),
            })
        return points

    def get_revenue_chart(self, weeks: int = 4, today: Optional[date] = None) -> List[dict]:
        """最近 N 周每周收入，最后一周包含今天"""
        today = today or date.today()
        payments, bookings = self._snapshot()

        points = []
        for index in range(weeks):
            weeks_back = weeks - 1 - index
            end = today + timedelta(days=1) - timedelta(weeks=weeks_back)
            start = end - timedelta(weeks=1)
            points.append({
                "week": f"Sem {index + 1}",
                "start_date": start,
                "end_date": end - timedelta(days=1),
                "revenue": self._revenue_between(payments, bookings, start, end),
            })
        return points

    def get_recent_bookings(self, limit: Optional[int] = None) -> List[dict]:
        """最近创建的预订"""
        limit = limit or settings.RECENT_BOOKINGS_LIMIT
        bookings = self.gateway.select(
            Booking, order_by="created_at", descending=True, limit=limit
        )
        return [
            {
                "id": b.id,
                "guest_name": b.guest.name if b.guest else "",
                "guest_email": b.guest.email if b.guest else "",
                "room_number": b.room.number if b.room else "",
                "room_type": b.room.type.value if b.room else "",
                "check_in": b.check_in,
                "check_out": b.check_out,
                "status": b.status,
                "amount": b.total_amount,
            }
            for b in bookings
        ]

    def get_payment_method_stats(self) -> List[dict]:
        """已批准支付按付款方式统计"""
        approved = self.gateway.select(Payment, {"status": PaymentStatus.APPROVED})
        total_count = len(approved)

        stats = {}
        for payment in approved:
            entry = stats.setdefault(payment.method, {"count": 0, "total": ZERO})
            entry["count"] += 1
            entry["total"] += payment.amount

        return sorted(
            (
                {
                    "method": method,
                    "count": entry["count"],
                    "total": entry["total"],
                    "percentage": round(entry["count"] / total_count * 100, 2),
                }
                for method, entry in stats.items()
            ),
            key=lambda s: s["count"],
            reverse=True
        )

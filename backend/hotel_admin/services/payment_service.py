"""
支付服务
支付记录的创建和状态流转，并同步对应预订的付款状态：

- 批准：支付 -> 已批准，预订 -> 已付款
- 拒绝：支付 -> 已拒绝，预订 -> 待付款
- 退款：仅已批准的支付可退款，支付 -> 已退款，预订 -> 已退款
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional
import logging

from hotel_admin.exceptions import NotFoundError, ValidationError
from hotel_admin.gateway import PersistenceGateway
from hotel_admin.models.events import EventType, PaymentEventData
from hotel_admin.models.ontology import (
    Booking, BookingStatus, BookingPaymentStatus, Payment, PaymentStatus
)
from hotel_admin.models.schemas import PaymentCreate
from hotel_admin.services.booking_service import BookingService
from hotel_admin.services.event_bus import event_bus, Event

logger = logging.getLogger(__name__)

# 支付状态变更 -> (允许的源状态, 预订付款状态)
PAYMENT_ACTIONS = {
    PaymentStatus.APPROVED: (
        (PaymentStatus.PROCESSING, PaymentStatus.REJECTED), BookingPaymentStatus.PAID
    ),
    PaymentStatus.REJECTED: (
        (PaymentStatus.PROCESSING,), BookingPaymentStatus.PENDING
    ),
    PaymentStatus.REFUNDED: (
        (PaymentStatus.APPROVED,), BookingPaymentStatus.REFUNDED
    ),
}


class PaymentService:
    """支付服务"""

    def __init__(self, db, gateway: Optional[PersistenceGateway] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.gateway = gateway or PersistenceGateway(db)
        self._publish_event = event_publisher or event_bus.publish
        self.booking_service = BookingService(db, self.gateway, self._publish_event)

    def get_payments(self, status: Optional[PaymentStatus] = None,
                     booking_id: Optional[int] = None) -> List[Payment]:
        """获取支付记录（按创建时间倒序）"""
        filters = {}
        if status:
            filters["status"] = status
        if booking_id:
            filters["booking_id"] = booking_id
        return self.gateway.select(Payment, filters, order_by="created_at", descending=True)

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """获取单个支付记录"""
        return self.gateway.get(Payment, payment_id)

    def _sync_booking_payment_status(self, booking_id: int,
                                     status: BookingPaymentStatus) -> None:
        if not self.booking_service.update_booking_payment_status(booking_id, status):
            logger.warning(
                f"Booking {booking_id} payment status not updated to {status.value}"
            )

    def _publish_payment(self, event_type: EventType, payment: Payment,
                         old_status: str = "") -> None:
        self._publish_event(Event(
            event_type=event_type,
            timestamp=datetime.now(),
            data=PaymentEventData(
                payment_id=payment.id,
                booking_id=payment.booking_id,
                amount=float(payment.amount),
                method=payment.method,
                old_status=old_status,
                new_status=payment.status.value
            ).to_dict(),
            source="payment_service"
        ))

    def create_payment(self, data: PaymentCreate) -> Payment:
        """
        登记支付

        已批准的支付将预订标记为已付款，否则预订保持待付款。
        """
        if not self.gateway.get(Booking, data.booking_id):
            raise NotFoundError("预订不存在")

        payment = self.gateway.insert(Payment, {
            "booking_id": data.booking_id,
            "amount": data.amount,
            "method": data.method,
            "status": data.status,
            "payment_date": data.payment_date or date.today(),
        })
        logger.info(
            f"Payment {payment.id} recorded for booking {data.booking_id}: "
            f"{payment.amount} via {payment.method} ({payment.status.value})"
        )

        booking_status = (
            BookingPaymentStatus.PAID if payment.status == PaymentStatus.APPROVED
            else BookingPaymentStatus.PENDING
        )
        self._sync_booking_payment_status(data.booking_id, booking_status)
        self._publish_payment(EventType.PAYMENT_RECORDED, payment)
        return payment

    def _change_status(self, payment_id: int, new_status: PaymentStatus) -> Payment:
        payment = self.get_payment(payment_id)
        if not payment:
            raise NotFoundError("支付记录不存在")

        allowed, booking_status = PAYMENT_ACTIONS[new_status]
        old_status = payment.status
        if old_status not in allowed:
            raise ValidationError(
                f"支付状态为 {old_status.value}，不能变更为 {new_status.value}"
            )

        payment = self.gateway.update(Payment, payment_id, {"status": new_status})
        logger.info(f"Payment {payment_id} status {old_status.value} -> {new_status.value}")

        self._sync_booking_payment_status(payment.booking_id, booking_status)
        self._publish_payment(EventType.PAYMENT_STATUS_CHANGED, payment, old_status.value)
        return payment

    def approve_payment(self, payment_id: int) -> Payment:
        """批准支付"""
        return self._change_status(payment_id, PaymentStatus.APPROVED)

    def reject_payment(self, payment_id: int) -> Payment:
        """拒绝支付"""
        return self._change_status(payment_id, PaymentStatus.REJECTED)

    def refund_payment(self, payment_id: int) -> Payment:
        """退款（仅已批准的支付）"""
        return self._change_status(payment_id, PaymentStatus.REFUNDED)

    def approve_booking_payment(self, booking_id: int, method: Optional[str] = None,
                                amount: Optional[Decimal] = None) -> Booking:
        """
        直接确认预订付款（尚无支付记录的待付款预订）

        可同时更新付款方式和金额，预订付款状态变为已付款。
        """
        if not self.booking_service.get_booking(booking_id):
            raise NotFoundError("预订不存在")

        patch = {}
        if method:
            patch["payment_method"] = method
        if amount is not None:
            patch["total_amount"] = amount
        if patch:
            self.booking_service.update_booking(booking_id, patch)

        self._sync_booking_payment_status(booking_id, BookingPaymentStatus.PAID)
        return self.booking_service.get_booking(booking_id)

    def delete_payment(self, payment_id: int) -> None:
        """删除支付记录"""
        if not self.get_payment(payment_id):
            raise NotFoundError("支付记录不存在")
        self.gateway.delete(Payment, payment_id)
        logger.info(f"Payment {payment_id} deleted")

    def get_all_transactions(self) -> List[dict]:
        """
        统一交易列表：全部支付记录 + 尚无支付记录的待付款预订

        待付款预订以 booking-{id} 为标识，按创建时间倒序合并。
        """
        payments = self.get_payments()
        bookings = self.gateway.select(
            Booking, {"payment_status": BookingPaymentStatus.PENDING}
        )
        paid_booking_ids = {p.booking_id for p in payments}

        transactions = [
            {
                "id": str(p.id),
                "booking_id": p.booking_id,
                "amount": p.amount,
                "method": p.method,
                "status": p.status.value,
                "payment_date": p.payment_date,
                "created_at": p.created_at,
                "is_pending_booking": False,
            }
            for p in payments
        ]
        transactions.extend(
            {
                "id": f"booking-{b.id}",
                "booking_id": b.id,
                "amount": b.total_amount or Decimal("0"),
                "method": b.payment_method or "Pendente",
                "status": BookingPaymentStatus.PENDING.value,
                "payment_date": None,
                "created_at": b.created_at,
                "is_pending_booking": True,
            }
            for b in bookings
            if b.id not in paid_booking_ids and b.status != BookingStatus.CANCELLED
        )

        transactions.sort(key=lambda t: t["created_at"], reverse=True)
        return transactions

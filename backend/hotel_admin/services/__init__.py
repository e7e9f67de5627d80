# Business Services
from hotel_admin.services.room_service import RoomService
from hotel_admin.services.guest_service import GuestService
from hotel_admin.services.booking_service import BookingService
from hotel_admin.services.payment_service import PaymentService
from hotel_admin.services.side_effect_service import SideEffectService
from hotel_admin.services.report_service import ReportService

__all__ = [
    'RoomService', 'GuestService', 'BookingService',
    'PaymentService', 'SideEffectService', 'ReportService'
]

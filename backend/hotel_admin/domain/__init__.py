# Domain rules
from hotel_admin.domain.booking_state import (
    BOOKING_TRANSITIONS, can_transition, validate_transition,
    derive_guest_status, calculate_nights
)

__all__ = [
    'BOOKING_TRANSITIONS', 'can_transition', 'validate_transition',
    'derive_guest_status', 'calculate_nights'
]

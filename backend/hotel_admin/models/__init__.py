# Entity Models
from hotel_admin.models.ontology import (
    Room, Guest, Booking, Payment, SideEffectEntry
)

__all__ = [
    'Room', 'Guest', 'Booking', 'Payment', 'SideEffectEntry'
]

# API Routers
from hotel_admin.routers import rooms, guests, bookings, checkin, checkout, payments, reports, diagnostics

__all__ = ['rooms', 'guests', 'bookings', 'checkin', 'checkout', 'payments', 'reports', 'diagnostics']

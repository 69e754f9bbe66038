"""Multi-tenant salon appointment booking engine."""
from salon_booking.settings import VERSION

__version__ = VERSION

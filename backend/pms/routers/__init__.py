# API Routers
from pms.routers import reservation_status, day_roll

__all__ = ['reservation_status', 'day_roll']

"""
Service layer helpers that orchestrate the repository and domain logic.
"""

from .availability import AvailabilityService
from .available_dates import AvailableDatesScanner
from .repository import BookingRepositoryProtocol

__all__ = ["AvailabilityService", "AvailableDatesScanner", "BookingRepositoryProtocol"]

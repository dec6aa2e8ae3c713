"""
Adapters layer - Data sources for the availability services.
"""

from .fixtures import FixtureFile
from .memory_repository import InMemoryBookingRepository

__all__ = ["FixtureFile", "InMemoryBookingRepository"]

"""Availability domain - Windows, slots, recurrence and overlap validation"""

from .router import router

__all__ = ["router"]

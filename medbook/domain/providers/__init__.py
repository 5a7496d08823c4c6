"""Providers domain - Doctors whose time is offered for booking"""

from .router import router

__all__ = ["router"]

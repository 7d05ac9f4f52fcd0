# app/modules/owner/__init__.py
"""
Owner module

- Dashboard with per-employee revenue and shop totals
- Employee sales and bill breakdowns
- Block, unblock and delete employees
- Mark bills as fake
"""

from .router import router as owner_router
from .service import OwnerService
from .repository import OwnerRepository

__all__ = [
    "owner_router",
    "OwnerService",
    "OwnerRepository"
]

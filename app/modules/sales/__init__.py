# app/modules/sales/__init__.py
"""
Sales module - mechanic bills

- Bill creation, with optional verification images
- Quick $500 repair bill
- Item removal, save changes and bill deletion
- Verification images for existing bills
- Mechanic dashboard, catalog and printable invoice

Every change is saved first and then mirrored to the Discord bill channel.

Layout:
- router.py: FastAPI endpoints
- service.py: sale lifecycle coordination
- repository.py: data access
- schemas.py: pydantic request/response models
"""

from .router import router as sales_router, catalog_router
from .service import SalesService
from .repository import SalesRepository

__all__ = [
    "sales_router",
    "catalog_router",
    "SalesService",
    "SalesRepository"
]

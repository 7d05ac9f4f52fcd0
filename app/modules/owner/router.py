# app/modules/owner/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import require_capabilities
from app.core.auth.session import Capability, SessionContext
from app.modules.sales.router import get_sales_service
from app.modules.sales.schemas import OperationResult, SaleResponse
from app.modules.sales.service import SalesService
from .service import OwnerService
from .schemas import (
    EmployeeFilter, BlockEmployeeRequest,
    OwnerDashboardResponse, EmployeeSalesResponse, EmployeeActionResponse
)

router = APIRouter(prefix="/owner", tags=["Owner"])

see_all_sales = require_capabilities([Capability.SEE_ALL_SALES])
manage_employees = require_capabilities([Capability.BLOCK_EMPLOYEES])
mark_fake = require_capabilities([Capability.MARK_FAKE])


def get_owner_service(
    db: Session = Depends(get_db),
    sales_service: SalesService = Depends(get_sales_service)
) -> OwnerService:
    return OwnerService(db, sales_service)

# ==================== DASHBOARD ====================

@router.get("/dashboard", response_model=OwnerDashboardResponse)
async def get_owner_dashboard(
    filter: EmployeeFilter = Query(EmployeeFilter.all, description="all | blocked"),
    session: SessionContext = Depends(see_all_sales),
    service: OwnerService = Depends(get_owner_service)
):
    """
    Owner dashboard

    - Today's (since UTC midnight), last 7 days and all-time revenue per employee
    - Shop totals including the owner's own bills
    - Bills marked as fake never count towards revenue
    """
    return service.get_dashboard(session, filter)

# ==================== SALES ====================

@router.get("/employees/{employee_id}/sales", response_model=EmployeeSalesResponse)
async def get_employee_sales(
    employee_id: int,
    session: SessionContext = Depends(see_all_sales),
    service: OwnerService = Depends(get_owner_service)
):
    return service.get_employee_sales(employee_id)

@router.get("/sales/{sale_id}", response_model=SaleResponse)
async def get_sale_breakdown(
    sale_id: int,
    session: SessionContext = Depends(see_all_sales),
    sales_service: SalesService = Depends(get_sales_service)
):
    return sales_service.get_sale(session, sale_id)

@router.post("/sales/{sale_id}/toggle-fake", response_model=OperationResult)
async def toggle_fake_sale(
    sale_id: int,
    session: SessionContext = Depends(mark_fake),
    sales_service: SalesService = Depends(get_sales_service)
):
    """Mark or unmark a bill as fake; the Discord message follows"""
    return await sales_service.toggle_fake(session, sale_id)

# ==================== EMPLOYEES ====================

@router.post("/employees/{employee_id}/block", response_model=EmployeeActionResponse)
async def block_employee(
    employee_id: int,
    data: BlockEmployeeRequest,
    session: SessionContext = Depends(manage_employees),
    service: OwnerService = Depends(get_owner_service)
):
    return service.block_employee(employee_id, data.reason)

@router.post("/employees/{employee_id}/unblock", response_model=EmployeeActionResponse)
async def unblock_employee(
    employee_id: int,
    session: SessionContext = Depends(manage_employees),
    service: OwnerService = Depends(get_owner_service)
):
    return service.unblock_employee(employee_id)

@router.delete("/employees/{employee_id}", response_model=EmployeeActionResponse)
async def delete_employee(
    employee_id: int,
    session: SessionContext = Depends(manage_employees),
    service: OwnerService = Depends(get_owner_service)
):
    """Deletes the employee together with all of their bills"""
    return service.delete_employee(employee_id)

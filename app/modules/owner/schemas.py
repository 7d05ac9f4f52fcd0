from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.modules.sales.schemas import SaleResponse, AnnouncementSummary

class EmployeeFilter(str, Enum):
    all = "all"
    blocked = "blocked"

# ==================== EMPLOYEES ====================

class EmployeeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    character_name: str
    discord_id: str
    is_blocked: bool
    block_reason: Optional[str] = None
    blocked_at: Optional[datetime] = None
    created_at: datetime

class EmployeeStats(BaseModel):
    """Revenue figures exclude bills marked as fake; sales_count does not"""
    employee: EmployeeSummary
    today_sales: float
    weekly_sales: float
    total_sales: float
    sales_count: int

class BlockEmployeeRequest(BaseModel):
    reason: str = Field(..., description="Shown to the employee when they try to log in")

    @field_validator('reason')
    @classmethod
    def reason_not_blank(cls, v: str):
        v = (v or "").strip()
        if not v:
            raise ValueError('Please provide a reason for blocking')
        return v

class EmployeeActionResponse(BaseModel):
    success: bool = True
    message: str
    employee: Optional[EmployeeSummary] = None

# ==================== DASHBOARD ====================

class ShopTotals(BaseModel):
    total_revenue: float
    today_revenue: float
    weekly_revenue: float
    total_employees: int
    blocked_employees: int

class OwnerDashboardResponse(BaseModel):
    success: bool = True
    filter: EmployeeFilter
    employees: List[EmployeeStats]
    totals: ShopTotals
    recent_owner_sales: List[SaleResponse]
    owner_sales: List[SaleResponse]
    announcement: Optional[AnnouncementSummary] = None

class EmployeeSalesResponse(BaseModel):
    success: bool = True
    employee: EmployeeSummary
    sales: List[SaleResponse]

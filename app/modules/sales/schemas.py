from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional, Dict, Any
from datetime import datetime
from enum import Enum

# ==================== ENUMS ====================

class OperationOutcome(str, Enum):
    committed = "committed"
    committed_with_notification_warning = "committed_with_notification_warning"
    aborted = "aborted"

class SaleStatus(str, Enum):
    needs_verification = "needs_verification"
    verified = "verified"
    fake = "fake"

# ==================== BASE CLASS FOR RESPONSES (Pydantic v2) ====================

class SalesBaseModel(BaseModel):
    """
    Base class for every response schema of the module,
    reading straight from ORM rows.
    """
    model_config = ConfigDict(from_attributes=True)

# ==================== REQUEST SCHEMAS ====================

class SaleItemRequest(BaseModel):
    item_name: str = Field(..., min_length=1, description="Service or part name")
    item_category: str = Field(..., min_length=1, description="Catalog category")
    item_type: str = Field("Stock", description="Upgrade level or 'Stock'")
    quantity: int = Field(1, ge=1, description="Quantity")
    price: float = Field(..., ge=0, description="Unit price")

class SaleCreateRequest(BaseModel):
    customer_name: str = Field("", description="Customer character name")
    vehicle_plate: str = Field("", description="Vehicle plate")
    items: List[SaleItemRequest] = Field(default_factory=list, description="Bill items")
    discount_percentage: float = Field(0, description="Discount %, clamped to 0-100")

    @field_validator('customer_name', 'vehicle_plate')
    @classmethod
    def strip_text(cls, v: str):
        return (v or "").strip()

    @field_validator('vehicle_plate')
    @classmethod
    def upper_plate(cls, v: str):
        return v.upper()

# ==================== RESPONSE SCHEMAS ====================

class SaleItemResponse(SalesBaseModel):
    id: int
    sale_id: int
    item_name: str
    item_category: str
    item_type: str
    quantity: int
    price: float
    subtotal: float

class SaleResponse(SalesBaseModel):
    id: int
    employee_id: int
    customer_name: str
    vehicle_plate: str
    discount_percentage: float
    subtotal: float
    discount_amount: float
    tax_amount: float
    total_amount: float
    is_fake: bool
    is_verified: bool
    verified_at: Optional[datetime] = None
    discord_message_id: Optional[str] = None
    created_at: datetime

    # Derived
    status: SaleStatus
    item_count: int = 0
    items: Optional[List[SaleItemResponse]] = None

class OperationResult(BaseModel):
    """Outcome of one sale mutation"""
    success: bool = True
    outcome: OperationOutcome
    message: str
    sale_id: Optional[int] = None
    sale: Optional[SaleResponse] = None
    warnings: List[str] = Field(default_factory=list)

class AnnouncementSummary(SalesBaseModel):
    id: int
    message: str
    expires_at: datetime
    created_at: datetime

class EmployeeDashboardResponse(BaseModel):
    success: bool = True
    employee_id: int
    character_name: str
    customer_count: int
    total_sales: float
    unverified_count: int
    recent_sales: List[SaleResponse]
    all_sales: List[SaleResponse]
    announcement: Optional[AnnouncementSummary] = None

class CatalogResponse(BaseModel):
    categories: List[Dict[str, Any]]
    tax_rate: float

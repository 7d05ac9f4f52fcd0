# app/modules/sales/router.py
from fastapi import APIRouter, Depends, File, UploadFile, Form
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from typing import Optional, List
import json

from pydantic import ValidationError as SchemaValidationError

from app.config.database import get_db
from app.core.auth.dependencies import get_current_session, require_capabilities
from app.core.auth.session import Capability, SessionContext
from app.core.exceptions import ValidationError
from app.shared.catalog import get_catalog
from app.shared.services.discord_webhook_client import (
    DiscordWebhookClient, get_notification_gateway
)
from app.shared.services.pricing import TAX_RATE
from .service import SalesService, VerificationImages
from .schemas import (
    SaleCreateRequest, SaleResponse, OperationResult,
    EmployeeDashboardResponse, CatalogResponse
)

router = APIRouter(prefix="/sales", tags=["Sales - Mechanic"])
catalog_router = APIRouter(tags=["Catalog"])


def get_sales_service(
    db: Session = Depends(get_db),
    notifier: DiscordWebhookClient = Depends(get_notification_gateway)
) -> SalesService:
    return SalesService(db, notifier)


async def _read_images(
    car_image: Optional[UploadFile],
    mechanic_sheet: Optional[UploadFile]
) -> Optional[VerificationImages]:
    if car_image is None and mechanic_sheet is None:
        return None
    return VerificationImages(
        car_image=await car_image.read() if car_image else None,
        mechanic_sheet=await mechanic_sheet.read() if mechanic_sheet else None,
        car_image_type=(car_image.content_type if car_image else None) or "image/jpeg",
        mechanic_sheet_type=(mechanic_sheet.content_type if mechanic_sheet else None) or "image/jpeg"
    )

# ==================== CATALOG ====================

@catalog_router.get("/catalog", response_model=CatalogResponse)
async def get_item_catalog():
    """Categories, items and prices used to build bill lines"""
    return CatalogResponse(categories=get_catalog(), tax_rate=TAX_RATE)

# ==================== CREATE ====================

@router.post("/create", response_model=OperationResult)
async def create_sale(
    # Form fields so the verification images can travel in the same request
    customer_name: str = Form("", description="Customer character name"),
    vehicle_plate: str = Form("", description="Vehicle plate"),
    items: str = Form(..., description="JSON string with the bill items"),
    discount_percentage: float = Form(0, description="Discount % (0-100)"),
    car_image: Optional[UploadFile] = File(None, description="Car photo"),
    mechanic_sheet: Optional[UploadFile] = File(None, description="Mechanic sheet photo"),
    session: SessionContext = Depends(require_capabilities([Capability.CREATE_SALES])),
    service: SalesService = Depends(get_sales_service)
):
    """
    Create a bill

    - Totals are computed server side (discount, then 14% tax)
    - Verified right away when both images are attached or the author is the owner
    - Posted to the Discord bill channel; a failed post comes back as a warning
    """
    try:
        draft = SaleCreateRequest(
            customer_name=customer_name,
            vehicle_plate=vehicle_plate,
            items=json.loads(items),
            discount_percentage=discount_percentage
        )
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid items JSON: {str(e)}")
    except SchemaValidationError as e:
        raise ValidationError(
            "Invalid bill items",
            details={"errors": [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]}
        )

    return await service.create_sale(
        draft,
        employee_id=session.employee_id,
        author_auto_verifies=session.can(Capability.AUTO_VERIFY_OWN_SALES),
        verification_images=await _read_images(car_image, mechanic_sheet)
    )

@router.post("/quick-bill", response_model=OperationResult)
async def create_quick_bill(
    session: SessionContext = Depends(require_capabilities([Capability.CREATE_SALES])),
    service: SalesService = Depends(get_sales_service)
):
    """$500 vehicle repair bill, verified on creation"""
    return await service.quick_bill(session.employee_id)

# ==================== READS ====================

@router.get("/dashboard", response_model=EmployeeDashboardResponse)
async def get_dashboard(
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    return service.get_dashboard(session)

@router.get("", response_model=List[SaleResponse])
async def list_my_sales(
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    return service.list_sales(session.employee_id)

@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: int,
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    """Bill with its full item breakdown"""
    return service.get_sale(session, sale_id)

@router.get("/{sale_id}/invoice", response_class=HTMLResponse)
async def get_invoice(
    sale_id: int,
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    """Printable invoice"""
    return HTMLResponse(service.render_invoice(session, sale_id))

# ==================== MUTATIONS ====================

@router.post("/{sale_id}/verify", response_model=OperationResult)
async def verify_sale(
    sale_id: int,
    car_image: Optional[UploadFile] = File(None, description="Car photo"),
    mechanic_sheet: Optional[UploadFile] = File(None, description="Mechanic sheet photo"),
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    """Attach both verification images to an existing bill"""
    return await service.add_verification_images(
        session, sale_id, await _read_images(car_image, mechanic_sheet)
    )

@router.delete("/{sale_id}/items/{item_id}", response_model=OperationResult)
async def delete_sale_item(
    sale_id: int,
    item_id: int,
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    return await service.delete_item(session, sale_id, item_id)

@router.post("/{sale_id}/save", response_model=OperationResult)
async def save_sale_changes(
    sale_id: int,
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    """Recompute totals and refresh the Discord message"""
    return await service.edit_totals(session, sale_id)

@router.delete("/{sale_id}", response_model=OperationResult)
async def delete_sale(
    sale_id: int,
    session: SessionContext = Depends(get_current_session),
    service: SalesService = Depends(get_sales_service)
):
    return await service.delete_sale(session, sale_id)

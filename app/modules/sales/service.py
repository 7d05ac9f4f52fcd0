# app/modules/sales/service.py
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth.session import Capability, SessionContext
from app.core.exceptions import (
    NotFoundError, NotificationError, PermissionDeniedError, PersistenceError, ValidationError
)
from app.modules.announcements.repository import AnnouncementRepository
from app.shared import catalog
from app.shared.database.models import Announcement, Sale
from app.shared.services.bill_notification import (
    CAR_IMAGE_FILENAME, MECHANIC_SHEET_FILENAME,
    bill_details_from_sale, build_created_embed, build_updated_embed
)
from app.shared.services.discord_webhook_client import DiscordWebhookClient, WebhookFile
from app.shared.services.invoice_renderer import render_invoice
from app.shared.services.pricing import calculate_totals
from app.shared.time_utils import current_week_bounds, utcnow
from .repository import SalesRepository
from .schemas import (
    SaleCreateRequest, SaleItemRequest, SaleResponse, SaleItemResponse, SaleStatus,
    OperationResult, OperationOutcome, EmployeeDashboardResponse, AnnouncementSummary
)

logger = logging.getLogger(__name__)

RECENT_SALES_LIMIT = 5
QUICK_BILL_LABEL = "**AUTO-VERIFIED** (Repair Bill)"


@dataclass(frozen=True)
class VerificationImages:
    """The two photos that prove a bill: the car and the mechanic sheet"""
    car_image: Optional[bytes] = None
    mechanic_sheet: Optional[bytes] = None
    car_image_type: str = "image/jpeg"
    mechanic_sheet_type: str = "image/jpeg"

    @property
    def complete(self) -> bool:
        return bool(self.car_image) and bool(self.mechanic_sheet)

    def as_files(self) -> List[WebhookFile]:
        return [
            WebhookFile(CAR_IMAGE_FILENAME, self.car_image, self.car_image_type),
            WebhookFile(MECHANIC_SHEET_FILENAME, self.mechanic_sheet, self.mechanic_sheet_type),
        ]


def sale_status(sale: Sale) -> SaleStatus:
    if sale.is_fake:
        return SaleStatus.fake
    if sale.is_verified:
        return SaleStatus.verified
    return SaleStatus.needs_verification


def to_sale_response(sale: Sale, items=None, item_count: Optional[int] = None) -> SaleResponse:
    """Sale row to API shape; ``items`` switches on the full breakdown"""
    data = SaleResponse.model_validate({
        **{column.name: getattr(sale, column.name) for column in Sale.__table__.columns},
        "status": sale_status(sale),
        "item_count": item_count if item_count is not None else len(items or []),
    })
    if items is not None:
        data.items = [SaleItemResponse.model_validate(item) for item in items]
    return data


class SalesService:
    """
    Coordinates every change to a sale between the database and the
    Discord bill channel.

    The database write always comes first and decides the outcome: if it
    fails the operation is aborted with ``PersistenceError``. Discord calls
    happen after the commit and their failures only add warnings to the
    returned ``OperationResult``.
    """

    def __init__(self, db: Session, notifier: DiscordWebhookClient):
        self.db = db
        self.notifier = notifier
        self.repository = SalesRepository(db)

    # ==================== CREATE ====================

    async def create_sale(
        self,
        draft: SaleCreateRequest,
        employee_id: int,
        author_auto_verifies: bool,
        verification_images: Optional[VerificationImages] = None,
        auto_verified_label: str = "**AUTO-VERIFIED**"
    ) -> OperationResult:
        """
        Persist a new bill and post it to the bill channel.

        The bill starts verified when the author auto-verifies their own
        sales or when both verification images come with it.
        """
        self._validate_draft(draft)

        images_attached = verification_images is not None and verification_images.complete
        is_verified = author_auto_verifies or images_attached
        pricing = calculate_totals(draft.items, draft.discount_percentage)

        with self._persisting("save the bill"):
            employee = self.repository.get_employee(employee_id)
            if not employee:
                raise NotFoundError(f"Employee {employee_id} not found")

            sale = self.repository.create_sale_with_items(
                sale_data={
                    "employee_id": employee_id,
                    "customer_name": draft.customer_name,
                    "vehicle_plate": draft.vehicle_plate,
                    "discount_percentage": pricing.discount_percentage,
                    "subtotal": pricing.subtotal,
                    "discount_amount": pricing.discount_amount,
                    "tax_amount": pricing.tax_amount,
                    "total_amount": pricing.total,
                    "is_verified": is_verified,
                    "verified_at": utcnow() if is_verified else None,
                },
                items_data=[self._item_data(item) for item in draft.items]
            )
            items = self.repository.get_sale_items(sale.id)

        logger.info(
            f"🧾 Sale {sale.id} created by employee {employee_id} "
            f"(total {pricing.total}, verified={is_verified})"
        )

        warnings: List[str] = []
        embed = build_created_embed(
            bill_details_from_sale(sale, items, employee),
            self._weekly_sales(employee_id),
            is_verified=is_verified,
            images_attached=images_attached,
            auto_verified_label=auto_verified_label
        )

        try:
            message_id = await self.notifier.create_message(
                embed, verification_images.as_files() if images_attached else None
            )
        except NotificationError as e:
            logger.warning(f"⚠️ Bill {sale.id} saved but not posted to Discord: {e}")
            warnings.append(f"Bill saved but failed to upload to Discord: {e}")
        else:
            try:
                self.repository.update_sale(sale, discord_message_id=message_id)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(
                    f"❌ Could not store Discord message {message_id} on sale {sale.id}: {e}",
                    exc_info=True
                )
                warnings.append("Bill posted to Discord but its message id could not be saved")

        return self._result(
            sale,
            warnings,
            "Bill saved successfully",
            items=items
        )

    async def quick_bill(self, employee_id: int) -> OperationResult:
        """One-click $500 repair bill, always verified"""
        draft = SaleCreateRequest(
            customer_name=catalog.REPAIR_CUSTOMER_NAME,
            vehicle_plate=catalog.REPAIR_VEHICLE_PLATE,
            items=[SaleItemRequest(
                item_name=catalog.REPAIR_ITEM_NAME,
                item_category=catalog.REPAIR_ITEM_CATEGORY,
                item_type=catalog.REPAIR_ITEM_TYPE,
                quantity=1,
                price=catalog.REPAIR_PRICE
            )],
            discount_percentage=0
        )
        return await self.create_sale(
            draft,
            employee_id=employee_id,
            author_auto_verifies=True,
            auto_verified_label=QUICK_BILL_LABEL
        )

    # ==================== VERIFICATION ====================

    async def add_verification_images(
        self,
        session: SessionContext,
        sale_id: int,
        images: Optional[VerificationImages]
    ) -> OperationResult:
        if images is None or not images.complete:
            raise ValidationError("Please upload both images")

        sale = self._get_sale_for(session, sale_id)

        with self._persisting("verify the bill"):
            self.repository.update_sale(sale, is_verified=True, verified_at=utcnow())

        logger.info(f"✅ Sale {sale.id} verified with images")

        warnings: List[str] = []
        await self._sync_message(
            sale, warnings,
            "Bill verified but failed to update Discord",
            images=images
        )
        return self._result(sale, warnings, "Bill verified successfully")

    # ==================== EDITING ====================

    async def delete_item(self, session: SessionContext, sale_id: int, item_id: int) -> OperationResult:
        """
        Drop one line and recompute totals with the sale's stored discount.
        The Discord message is left alone until the bill is saved.
        """
        sale = self._get_sale_for(session, sale_id)

        with self._persisting("delete the item"):
            item = self.repository.get_sale_item(sale.id, item_id)
            if not item:
                raise NotFoundError(f"Item {item_id} not found on bill #{sale.id}")

            self.repository.delete_item(item, commit=False)
            remaining = self.repository.get_sale_items(sale.id)
            pricing = calculate_totals(remaining, sale.discount_percentage)
            self.repository.apply_totals(sale, pricing)

        logger.info(f"🗑️ Item {item_id} removed from sale {sale.id}; {len(remaining)} left")
        return self._result(sale, [], "Item deleted successfully", items=remaining)

    async def edit_totals(self, session: SessionContext, sale_id: int) -> OperationResult:
        """Save changes: recompute from the current items and refresh the Discord message"""
        sale = self._get_sale_for(session, sale_id)

        with self._persisting("save the changes"):
            items = self.repository.get_sale_items(sale.id)
            pricing = calculate_totals(items, sale.discount_percentage)
            self.repository.apply_totals(sale, pricing)

        warnings: List[str] = []
        await self._sync_message(sale, warnings, "Changes saved but failed to update Discord")
        return self._result(sale, warnings, "Changes saved successfully", items=items)

    async def toggle_fake(self, session: SessionContext, sale_id: int) -> OperationResult:
        if not session.can(Capability.MARK_FAKE):
            raise PermissionDeniedError("Only the owner can mark bills as fake")

        sale = self._get_sale_for(session, sale_id)

        with self._persisting("update the fake flag"):
            self.repository.update_sale(sale, is_fake=not sale.is_fake)

        logger.info(f"⚠️ Sale {sale.id} fake flag set to {sale.is_fake}")

        warnings: List[str] = []
        await self._sync_message(sale, warnings, "Fake flag saved but failed to update Discord")
        return self._result(
            sale,
            warnings,
            "Bill marked as fake" if sale.is_fake else "Bill unmarked as fake"
        )

    # ==================== DELETE ====================

    async def delete_sale(self, session: SessionContext, sale_id: int) -> OperationResult:
        """
        Remove the Discord message first, then the items and the sale.
        Local rows are deleted whatever Discord answers.
        """
        sale = self._get_sale_for(session, sale_id)
        warnings: List[str] = []

        if sale.discord_message_id:
            try:
                await self.notifier.delete_message(sale.discord_message_id)
            except NotificationError as e:
                logger.warning(
                    f"⚠️ Could not delete Discord message {sale.discord_message_id} "
                    f"of sale {sale.id}: {e}"
                )
                warnings.append(f"Failed to delete bill from Discord: {e}")

        with self._persisting("delete the bill"):
            self.repository.delete_sale_with_items(sale)

        logger.info(f"🗑️ Sale {sale_id} deleted")
        return OperationResult(
            outcome=self._outcome(warnings),
            message="Bill deleted successfully",
            sale_id=sale_id,
            warnings=warnings
        )

    # ==================== READ MODELS ====================

    def get_sale(self, session: SessionContext, sale_id: int) -> SaleResponse:
        sale = self._get_sale_for(session, sale_id)
        return to_sale_response(sale, items=self.repository.get_sale_items(sale.id))

    def list_sales(self, employee_id: int) -> List[SaleResponse]:
        """All sales of one employee, newest first, with item counts"""
        sales = self.repository.get_sales_by_employee(employee_id)
        counts = self.repository.get_item_counts([s.id for s in sales])
        return [to_sale_response(s, item_count=counts.get(s.id, 0)) for s in sales]

    def get_dashboard(self, session: SessionContext) -> EmployeeDashboardResponse:
        employee = session.employee
        sales = self.list_sales(employee.id)
        announcement = self.get_active_announcement()

        return EmployeeDashboardResponse(
            employee_id=employee.id,
            character_name=employee.character_name,
            customer_count=len(sales),
            total_sales=sum(s.total_amount for s in sales if not s.is_fake),
            unverified_count=sum(1 for s in sales if not s.is_verified and not s.is_fake),
            recent_sales=sales[:RECENT_SALES_LIMIT],
            all_sales=sales,
            announcement=AnnouncementSummary.model_validate(announcement) if announcement else None
        )

    def get_active_announcement(self) -> Optional[Announcement]:
        return AnnouncementRepository(self.db).get_active(utcnow())

    def render_invoice(self, session: SessionContext, sale_id: int) -> str:
        sale = self._get_sale_for(session, sale_id)
        return render_invoice(sale, self.repository.get_sale_items(sale.id), sale.employee)

    # ==================== HELPERS ====================

    @contextmanager
    def _persisting(self, action: str):
        """Database step of an operation: any failure rolls back and aborts"""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to {action}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {action}. Please try again.") from e

    def _validate_draft(self, draft: SaleCreateRequest) -> None:
        if not draft.customer_name:
            raise ValidationError("Please enter customer name")
        if not draft.vehicle_plate:
            raise ValidationError("Please enter vehicle plate number")
        if not draft.items:
            raise ValidationError("Please add at least one item")

    @staticmethod
    def _item_data(item: SaleItemRequest) -> dict:
        return {
            "item_name": item.item_name,
            "item_category": item.item_category,
            "item_type": item.item_type,
            "quantity": item.quantity,
            "price": item.price,
            "subtotal": item.price * item.quantity,
        }

    def _get_sale_for(self, session: SessionContext, sale_id: int) -> Sale:
        try:
            sale = self.repository.get_sale(sale_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to load sale {sale_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to load the bill. Please try again.") from e

        if not sale:
            raise NotFoundError(f"Bill #{sale_id} not found")

        if sale.employee_id != session.employee_id and not session.can(Capability.SEE_ALL_SALES):
            raise PermissionDeniedError("You can only manage your own bills")

        return sale

    def _weekly_sales(self, employee_id: int) -> float:
        """Current-week non-fake total for the embed; 0 when it cannot be read"""
        start, end = current_week_bounds(utcnow())
        try:
            return self.repository.get_real_sales_total(employee_id, start, end)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Weekly sales unavailable for employee {employee_id}: {e}")
            return 0.0

    async def _sync_message(
        self,
        sale: Sale,
        warnings: List[str],
        failure_message: str,
        images: Optional[VerificationImages] = None
    ) -> None:
        """
        Rewrite the sale's Discord message from its current state.

        Without new images the current image URLs are read back first so the
        edit keeps them; if that read fails the edit is skipped.
        """
        if not sale.discord_message_id:
            return

        message_id = sale.discord_message_id
        try:
            details = bill_details_from_sale(
                sale, self.repository.get_sale_items(sale.id), sale.employee
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Could not read sale {sale.id} back for its Discord message: {e}")
            warnings.append(f"{failure_message}: could not read the bill back")
            return
        weekly_sales = self._weekly_sales(sale.employee_id)

        try:
            if images is not None:
                embed = build_updated_embed(
                    details, weekly_sales,
                    is_fake=sale.is_fake,
                    is_verified=sale.is_verified,
                    images_attached=True
                )
                await self.notifier.edit_message(message_id, embed, images.as_files())
            else:
                existing = await self.notifier.get_embed_images(message_id)
                embed = build_updated_embed(
                    details, weekly_sales,
                    is_fake=sale.is_fake,
                    is_verified=sale.is_verified,
                    image_url=existing["image"],
                    thumbnail_url=existing["thumbnail"]
                )
                await self.notifier.edit_message(message_id, embed)
        except NotificationError as e:
            logger.warning(f"⚠️ Discord message {message_id} of sale {sale.id} not updated: {e}")
            warnings.append(f"{failure_message}: {e}")

    @staticmethod
    def _outcome(warnings: List[str]) -> OperationOutcome:
        if warnings:
            return OperationOutcome.committed_with_notification_warning
        return OperationOutcome.committed

    def _result(self, sale: Sale, warnings: List[str], message: str, items=None) -> OperationResult:
        if items is None:
            items = self.repository.get_sale_items(sale.id)
        return OperationResult(
            outcome=self._outcome(warnings),
            message=message,
            sale_id=sale.id,
            sale=to_sale_response(sale, items=items),
            warnings=warnings
        )

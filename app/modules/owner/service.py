# app/modules/owner/service.py
import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth.session import SessionContext
from app.core.exceptions import NotFoundError, PermissionDeniedError, PersistenceError
from app.modules.sales.schemas import AnnouncementSummary
from app.modules.sales.service import SalesService, RECENT_SALES_LIMIT
from app.shared.time_utils import start_of_day, utcnow
from .repository import OwnerRepository
from .schemas import (
    EmployeeFilter, EmployeeStats, EmployeeSummary, ShopTotals,
    OwnerDashboardResponse, EmployeeSalesResponse, EmployeeActionResponse
)

logger = logging.getLogger(__name__)

WEEKLY_WINDOW = timedelta(days=7)

class OwnerService:
    """
    Owner dashboard and employee management
    """

    def __init__(self, db: Session, sales_service: SalesService):
        self.db = db
        self.repository = OwnerRepository(db)
        self.sales = sales_service

    # ==================== DASHBOARD ====================

    def get_dashboard(
        self,
        session: SessionContext,
        employee_filter: EmployeeFilter = EmployeeFilter.all
    ) -> OwnerDashboardResponse:
        """
        Stats for every employee except the owners themselves, shop totals
        and the owner's own bills. Recomputed from scratch on every call.
        """
        now = utcnow()
        today_start = start_of_day(now)
        week_start = now - WEEKLY_WINDOW
        owner_discord_ids = self.repository.get_owner_discord_ids()
        employees = self.repository.get_employees(owner_discord_ids)
        stats = self.repository.get_sales_stats(
            [e.id for e in employees], today_start=today_start, week_start=week_start
        )
        # every owner's own bills count towards the shop, not just the caller's
        owner_stats = self.repository.get_sales_stats(
            [e.id for e in self.repository.get_owner_shadows(owner_discord_ids)],
            today_start=today_start,
            week_start=week_start
        ).values()

        employee_stats = [
            EmployeeStats(
                employee=EmployeeSummary.model_validate(employee),
                **stats.get(employee.id, {
                    "today_sales": 0.0, "weekly_sales": 0.0, "total_sales": 0.0, "sales_count": 0
                })
            )
            for employee in employees
        ]

        owner_sales = self.sales.list_sales(session.employee_id)

        totals = ShopTotals(
            total_revenue=sum(s.total_sales for s in employee_stats)
                + sum(s["total_sales"] for s in owner_stats),
            today_revenue=sum(s.today_sales for s in employee_stats)
                + sum(s["today_sales"] for s in owner_stats),
            weekly_revenue=sum(s.weekly_sales for s in employee_stats)
                + sum(s["weekly_sales"] for s in owner_stats),
            total_employees=len(employee_stats),
            blocked_employees=sum(1 for s in employee_stats if s.employee.is_blocked)
        )

        if employee_filter == EmployeeFilter.blocked:
            employee_stats = [s for s in employee_stats if s.employee.is_blocked]

        announcement = self.sales.get_active_announcement()

        return OwnerDashboardResponse(
            filter=employee_filter,
            employees=employee_stats,
            totals=totals,
            recent_owner_sales=owner_sales[:RECENT_SALES_LIMIT],
            owner_sales=owner_sales,
            announcement=AnnouncementSummary.model_validate(announcement) if announcement else None
        )

    def get_employee_sales(self, employee_id: int) -> EmployeeSalesResponse:
        employee = self._get_employee(employee_id)
        return EmployeeSalesResponse(
            employee=EmployeeSummary.model_validate(employee),
            sales=self.sales.list_sales(employee.id)
        )

    # ==================== EMPLOYEE MANAGEMENT ====================

    def block_employee(self, employee_id: int, reason: str) -> EmployeeActionResponse:
        employee = self._get_managed_employee(employee_id)
        try:
            employee = self.repository.set_block_state(
                employee, is_blocked=True, reason=reason, blocked_at=utcnow()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to block employee {employee_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to block employee") from e

        logger.info(f"🚫 Employee {employee.character_name} blocked: {reason}")
        return EmployeeActionResponse(
            message=f"{employee.character_name} has been blocked",
            employee=EmployeeSummary.model_validate(employee)
        )

    def unblock_employee(self, employee_id: int) -> EmployeeActionResponse:
        employee = self._get_managed_employee(employee_id)
        try:
            employee = self.repository.set_block_state(
                employee, is_blocked=False, reason=None, blocked_at=None
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to unblock employee {employee_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to unblock employee") from e

        logger.info(f"✅ Employee {employee.character_name} unblocked")
        return EmployeeActionResponse(
            message=f"{employee.character_name} has been unblocked",
            employee=EmployeeSummary.model_validate(employee)
        )

    def delete_employee(self, employee_id: int) -> EmployeeActionResponse:
        """
        Removes the employee with all of their bills. Their Discord messages
        stay in the channel.
        """
        employee = self._get_managed_employee(employee_id)
        name = employee.character_name
        try:
            deleted_sales = self.repository.delete_employee_cascade(employee)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete employee {employee_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to delete employee") from e

        logger.info(f"🗑️ Employee {name} deleted with {deleted_sales} sales")
        return EmployeeActionResponse(
            message=f"{name} and all their data have been deleted"
        )

    # ==================== HELPERS ====================

    def _get_employee(self, employee_id: int):
        employee = self.repository.get_employee(employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def _get_managed_employee(self, employee_id: int):
        employee = self._get_employee(employee_id)
        if employee.discord_id in self.repository.get_owner_discord_ids():
            raise PermissionDeniedError("The owner's own account cannot be blocked or deleted")
        return employee

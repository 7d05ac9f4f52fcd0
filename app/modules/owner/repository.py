# app/modules/owner/repository.py
from datetime import datetime
from typing import Dict, List, Optional, Set
from sqlalchemy.orm import Session
from sqlalchemy import func, desc, case

from app.shared.database.models import Employee, Owner, Sale, SaleItem

class OwnerRepository:
    """
    Queries behind the owner dashboard and employee management
    """

    def __init__(self, db: Session):
        self.db = db

    # ==================== EMPLOYEES ====================

    def get_owner_discord_ids(self) -> Set[str]:
        return {discord_id for (discord_id,) in self.db.query(Owner.discord_id).all()}

    def get_employees(self, exclude_discord_ids: Set[str], blocked_only: bool = False) -> List[Employee]:
        """Newest first, without the owners' own employee records"""
        query = self.db.query(Employee)
        if exclude_discord_ids:
            query = query.filter(~Employee.discord_id.in_(exclude_discord_ids))
        if blocked_only:
            query = query.filter(Employee.is_blocked.is_(True))
        return query.order_by(desc(Employee.created_at), desc(Employee.id)).all()

    def get_owner_shadows(self, owner_discord_ids: Set[str]) -> List[Employee]:
        """Employee records the owners bill through"""
        if not owner_discord_ids:
            return []
        return self.db.query(Employee).filter(Employee.discord_id.in_(owner_discord_ids)).all()

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.id == employee_id).first()

    def set_block_state(
        self,
        employee: Employee,
        is_blocked: bool,
        reason: Optional[str],
        blocked_at: Optional[datetime]
    ) -> Employee:
        employee.is_blocked = is_blocked
        employee.block_reason = reason
        employee.blocked_at = blocked_at
        self.db.commit()
        self.db.refresh(employee)
        return employee

    def delete_employee_cascade(self, employee: Employee) -> int:
        """
        Items, then sales, then the employee, in one commit.
        Rows are deleted one by one so the change feed sees every delete.
        """
        sales = self.db.query(Sale).filter(Sale.employee_id == employee.id).all()
        for sale in sales:
            for item in self.db.query(SaleItem).filter(SaleItem.sale_id == sale.id).all():
                self.db.delete(item)
        self.db.flush()

        for sale in sales:
            self.db.delete(sale)
        self.db.flush()

        self.db.delete(employee)
        self.db.commit()
        return len(sales)

    # ==================== STATS ====================

    def get_sales_stats(
        self,
        employee_ids: List[int],
        today_start: datetime,
        week_start: datetime
    ) -> Dict[int, Dict[str, float]]:
        """
        Per employee: today/weekly/total revenue over non-fake sales and the
        raw sales count.
        """
        if not employee_ids:
            return {}

        real = Sale.is_fake.is_(False)
        rows = self.db.query(
            Sale.employee_id,
            func.coalesce(func.sum(case(
                (real & (Sale.created_at >= today_start), Sale.total_amount), else_=0.0
            )), 0.0),
            func.coalesce(func.sum(case(
                (real & (Sale.created_at >= week_start), Sale.total_amount), else_=0.0
            )), 0.0),
            func.coalesce(func.sum(case((real, Sale.total_amount), else_=0.0)), 0.0),
            func.count(Sale.id)
        ).filter(
            Sale.employee_id.in_(employee_ids)
        ).group_by(Sale.employee_id).all()

        return {
            employee_id: {
                "today_sales": float(today or 0),
                "weekly_sales": float(weekly or 0),
                "total_sales": float(total or 0),
                "sales_count": int(count or 0),
            }
            for employee_id, today, weekly, total, count in rows
        }

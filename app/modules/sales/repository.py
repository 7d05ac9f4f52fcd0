# app/modules/sales/repository.py
from datetime import datetime
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func, desc

from app.shared.database.models import Sale, SaleItem, Employee
from app.shared.services.pricing import PricingBreakdown

class SalesRepository:
    """
    Data access for sales and their line items
    """

    def __init__(self, db: Session):
        self.db = db

    # ==================== EMPLOYEES ====================

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.id == employee_id).first()

    # ==================== SALES ====================

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        return self.db.query(Sale).filter(Sale.id == sale_id).first()

    def get_sales_by_employee(self, employee_id: int) -> List[Sale]:
        """Newest first"""
        return self.db.query(Sale).filter(
            Sale.employee_id == employee_id
        ).order_by(desc(Sale.created_at), desc(Sale.id)).all()

    def create_sale_with_items(
        self,
        sale_data: Dict[str, Any],
        items_data: List[Dict[str, Any]]
    ) -> Sale:
        """
        Insert the sale and all of its items in a single commit
        """
        sale = Sale(**sale_data)
        self.db.add(sale)
        self.db.flush()

        for item_data in items_data:
            self.db.add(SaleItem(sale_id=sale.id, **item_data))

        self.db.commit()
        self.db.refresh(sale)
        return sale

    def update_sale(self, sale: Sale, commit: bool = True, **fields) -> Sale:
        for key, value in fields.items():
            setattr(sale, key, value)
        if commit:
            self.db.commit()
            self.db.refresh(sale)
        return sale

    def apply_totals(self, sale: Sale, pricing: PricingBreakdown, commit: bool = True) -> Sale:
        return self.update_sale(
            sale,
            commit=commit,
            subtotal=pricing.subtotal,
            discount_amount=pricing.discount_amount,
            tax_amount=pricing.tax_amount,
            total_amount=pricing.total
        )

    def delete_sale_with_items(self, sale: Sale) -> None:
        """Items go first, then the sale row"""
        for item in self.get_sale_items(sale.id):
            self.db.delete(item)
        self.db.flush()
        self.db.delete(sale)
        self.db.commit()

    # ==================== ITEMS ====================

    def get_sale_items(self, sale_id: int) -> List[SaleItem]:
        return self.db.query(SaleItem).filter(
            SaleItem.sale_id == sale_id
        ).order_by(SaleItem.id).all()

    def get_sale_item(self, sale_id: int, item_id: int) -> Optional[SaleItem]:
        return self.db.query(SaleItem).filter(
            SaleItem.id == item_id,
            SaleItem.sale_id == sale_id
        ).first()

    def delete_item(self, item: SaleItem, commit: bool = True) -> None:
        self.db.delete(item)
        if commit:
            self.db.commit()
        else:
            self.db.flush()

    def get_item_counts(self, sale_ids: List[int]) -> Dict[int, int]:
        if not sale_ids:
            return {}
        rows = self.db.query(SaleItem.sale_id, func.count(SaleItem.id)).filter(
            SaleItem.sale_id.in_(sale_ids)
        ).group_by(SaleItem.sale_id).all()
        return {sale_id: count for sale_id, count in rows}

    # ==================== AGGREGATES ====================

    def get_real_sales_total(
        self,
        employee_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> float:
        """Sum of non-fake totals for an employee, optionally inside [start, end]"""
        query = self.db.query(func.coalesce(func.sum(Sale.total_amount), 0.0)).filter(
            Sale.employee_id == employee_id,
            Sale.is_fake.is_(False)
        )
        if start is not None:
            query = query.filter(Sale.created_at >= start)
        if end is not None:
            query = query.filter(Sale.created_at <= end)

        return float(query.scalar() or 0)

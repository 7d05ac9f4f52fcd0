from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.config.database import Base
from app.shared.time_utils import utcnow

# ===== STAFF =====

class Employee(Base):
    """Mechanic registered at the shop. Owners are shadowed by one of these."""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    character_name = Column(String(255), unique=True, nullable=False, index=True)  # lower-cased
    discord_id = Column(String(64), unique=True, nullable=False, index=True)
    verification_key = Column(String(255), nullable=False)  # upper-cased
    is_blocked = Column(Boolean, default=False, nullable=False)
    block_reason = Column(Text)
    blocked_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    sales = relationship("Sale", back_populates="employee", cascade="all, delete-orphan")

class Owner(Base):
    """Statically provisioned shop owner"""
    __tablename__ = "owners"

    id = Column(Integer, primary_key=True, index=True)
    character_name = Column(String(255), unique=True, nullable=False, index=True)
    discord_id = Column(String(64), nullable=False)
    verification_key = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

# ===== SALES =====

class Sale(Base):
    """Customer bill. Totals are always derived from its items."""
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    vehicle_plate = Column(String(64), nullable=False)
    discount_percentage = Column(Float, default=0, nullable=False)
    subtotal = Column(Float, default=0, nullable=False)
    discount_amount = Column(Float, default=0, nullable=False)
    tax_amount = Column(Float, default=0, nullable=False)
    total_amount = Column(Float, default=0, nullable=False)
    is_fake = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime)
    discord_message_id = Column(String(64))
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    employee = relationship("Employee", back_populates="sales")
    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id"
    )

class SaleItem(Base):
    """Line item of a sale"""
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    item_category = Column(String(255), nullable=False)
    item_type = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    subtotal = Column(Float, nullable=False)

    # Relationships
    sale = relationship("Sale", back_populates="items")

# ===== ANNOUNCEMENTS =====

class Announcement(Base):
    """Owner broadcast shown on every dashboard until it expires"""
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(Integer, ForeignKey("owners.id"))

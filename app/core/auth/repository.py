# app/core/auth/repository.py
from typing import Optional
from sqlalchemy.orm import Session

from app.shared.database.models import Employee, Owner

class AuthRepository:
    """
    Lookups needed to open a session
    """

    def __init__(self, db: Session):
        self.db = db

    def get_owner_by_name(self, character_name: str) -> Optional[Owner]:
        return self.db.query(Owner).filter(Owner.character_name == character_name.lower()).first()

    def get_owner_by_id(self, owner_id: int) -> Optional[Owner]:
        return self.db.query(Owner).filter(Owner.id == owner_id).first()

    def get_employee_by_name(self, character_name: str) -> Optional[Employee]:
        return self.db.query(Employee).filter(
            Employee.character_name == character_name.lower()
        ).first()

    def get_employee_by_discord_id(self, discord_id: str) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.discord_id == discord_id).first()

    def get_employee_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.id == employee_id).first()

    def create_employee(self, character_name: str, discord_id: str, verification_key: str) -> Employee:
        employee = Employee(
            character_name=character_name.lower(),
            discord_id=discord_id,
            verification_key=verification_key.upper()
        )
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee

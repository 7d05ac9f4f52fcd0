# app/core/auth/session.py
"""
Explicit session context handed to every service call.

A session is either an employee or an owner acting through their shadow
employee record. Capabilities are resolved once, when the session is built,
so the rest of the code asks ``session.can(...)`` instead of branching on
who the user is.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from app.shared.database.models import Employee, Owner


class SessionKind(str, Enum):
    EMPLOYEE = "employee"
    OWNER = "owner"


class Capability(str, Enum):
    CREATE_SALES = "create_sales"
    SEE_ALL_SALES = "see_all_sales"
    BLOCK_EMPLOYEES = "block_employees"
    MARK_FAKE = "mark_fake"
    MANAGE_ANNOUNCEMENTS = "manage_announcements"
    AUTO_VERIFY_OWN_SALES = "auto_verify_own_sales"


EMPLOYEE_CAPABILITIES: FrozenSet[Capability] = frozenset({Capability.CREATE_SALES})

OWNER_CAPABILITIES: FrozenSet[Capability] = frozenset(Capability)


@dataclass(frozen=True)
class SessionContext:
    kind: SessionKind
    employee: Employee
    owner: Optional[Owner] = None
    capabilities: FrozenSet[Capability] = field(default_factory=frozenset)

    @classmethod
    def for_employee(cls, employee: Employee) -> "SessionContext":
        return cls(kind=SessionKind.EMPLOYEE, employee=employee, capabilities=EMPLOYEE_CAPABILITIES)

    @classmethod
    def for_owner(cls, owner: Owner, shadow_employee: Employee) -> "SessionContext":
        return cls(
            kind=SessionKind.OWNER,
            employee=shadow_employee,
            owner=owner,
            capabilities=OWNER_CAPABILITIES
        )

    @property
    def employee_id(self) -> int:
        return self.employee.id

    @property
    def is_owner(self) -> bool:
        return self.kind == SessionKind.OWNER

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

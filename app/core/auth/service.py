# app/core/auth/service.py
import logging
from typing import Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.exceptions import (
    AuthenticationError, ConflictError, PermissionDeniedError, PersistenceError
)
from app.shared.database.models import Employee, Owner
from .repository import AuthRepository
from .schemas import LoginRequest, SessionResponse, EmployeeResponse, OwnerResponse
from .security import create_access_token, decode_access_token
from .session import SessionContext, SessionKind

logger = logging.getLogger(__name__)


def _keys_match(stored: str, provided: str) -> bool:
    return bool(stored) and stored.upper() == provided.upper()


class AuthService:
    """
    Login, registration and session resolution
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = AuthRepository(db)

    # ==================== LOGIN / REGISTRATION ====================

    def login(self, data: LoginRequest) -> Tuple[SessionContext, bool]:
        """
        Open a session from the register-or-login form.

        Owners are checked first; everyone else needs the shared shop key.
        Unknown character names are registered on the spot. Returns the
        session and whether a new employee was created.
        """
        try:
            owner = self.repository.get_owner_by_name(data.character_name)
            if owner:
                return self._login_owner(owner, data), False

            if not settings.verification_key or not _keys_match(
                settings.verification_key, data.verification_key
            ):
                raise AuthenticationError(
                    "Invalid Verification Key. Please ask your owner for the correct key."
                )

            employee = self.repository.get_employee_by_name(data.character_name)
            if employee:
                return self._login_employee(employee, data), False

            return self._register_employee(data), True

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Database error during login: {e}", exc_info=True)
            raise PersistenceError(f"Database error: {e}") from e

    def _login_owner(self, owner: Owner, data: LoginRequest) -> SessionContext:
        if owner.discord_id != data.discord_id or not _keys_match(
            owner.verification_key, data.verification_key
        ):
            raise AuthenticationError(
                "Invalid credentials. Please check your Discord USER ID and Verification Key."
            )

        shadow = self.repository.get_employee_by_discord_id(owner.discord_id)
        if not shadow:
            try:
                shadow = self.repository.create_employee(
                    character_name=owner.character_name,
                    discord_id=owner.discord_id,
                    verification_key=owner.verification_key
                )
            except IntegrityError as e:
                self.db.rollback()
                raise ConflictError(
                    "An employee with the owner's character name already exists"
                ) from e
            logger.info(f"👑 Shadow employee {shadow.id} created for owner {owner.id}")

        return SessionContext.for_owner(owner, shadow)

    def _login_employee(self, employee: Employee, data: LoginRequest) -> SessionContext:
        if employee.is_blocked:
            raise PermissionDeniedError(
                "Your account has been blocked. Reason: "
                f"{employee.block_reason or 'No reason provided'}. Please contact the owner.",
                details={"block_reason": employee.block_reason}
            )

        if employee.discord_id != data.discord_id or not _keys_match(
            employee.verification_key, data.verification_key
        ):
            raise AuthenticationError("Invalid credentials. Please check your Discord USER ID.")

        return SessionContext.for_employee(employee)

    def _register_employee(self, data: LoginRequest) -> SessionContext:
        try:
            employee = self.repository.create_employee(
                character_name=data.character_name,
                discord_id=data.discord_id,
                verification_key=data.verification_key
            )
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("This Discord ID is already registered.") from e

        logger.info(f"✅ Employee {employee.character_name} registered (id={employee.id})")
        return SessionContext.for_employee(employee)

    # ==================== SESSIONS ====================

    def issue_token(self, session: SessionContext) -> str:
        return create_access_token(
            employee_id=session.employee.id,
            kind=session.kind.value,
            owner_id=session.owner.id if session.owner else None
        )

    def resolve_session(self, token: str) -> SessionContext:
        """Rebuild the session a token stands for, re-checking the block state"""
        payload = decode_access_token(token)

        employee = self.repository.get_employee_by_id(int(payload["sub"]))
        if not employee:
            raise AuthenticationError("Session no longer valid")

        if payload["kind"] == SessionKind.OWNER.value:
            owner = self.repository.get_owner_by_id(int(payload.get("owner_id") or 0))
            if not owner or owner.discord_id != employee.discord_id:
                raise AuthenticationError("Session no longer valid")
            return SessionContext.for_owner(owner, employee)

        if employee.is_blocked:
            raise PermissionDeniedError(
                f"Your account has been blocked. Reason: {employee.block_reason or 'No reason provided'}",
                details={"block_reason": employee.block_reason}
            )

        return SessionContext.for_employee(employee)

    @staticmethod
    def describe(session: SessionContext) -> SessionResponse:
        return SessionResponse(
            kind=session.kind.value,
            employee=EmployeeResponse.model_validate(session.employee),
            owner=OwnerResponse.model_validate(session.owner) if session.owner else None,
            capabilities=sorted(c.value for c in session.capabilities)
        )

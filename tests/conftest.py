import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("VERIFICATION_KEY", "SHOPKEY")
os.environ.pop("DISCORD_WEBHOOK_URL", None)

import itertools
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import Base, get_db
from app.core.auth.security import create_access_token
from app.core.auth.session import SessionContext
from app.core.exceptions import NotificationError
from app.main import app
from app.shared.database.models import Employee, Owner
from app.shared.services.discord_webhook_client import get_notification_gateway


class FakeGateway:
    """In-memory stand-in for the Discord webhook, recording every call"""

    def __init__(self):
        self.calls: List[tuple] = []
        self.messages: Dict[str, Dict[str, Any]] = {}
        self.fail_on = set()
        self.on_delete = None
        self._ids = itertools.count(1000)

    def _check(self, operation: str):
        if operation in self.fail_on:
            raise NotificationError(f"{operation} failed", 500)

    async def create_message(self, embed, files=None) -> str:
        self.calls.append(("create", embed, files))
        self._check("create")
        message_id = str(next(self._ids))
        embed = dict(embed)
        if files:
            embed["image"] = {"url": f"https://cdn.example/{message_id}/car_image.jpg"}
            embed["thumbnail"] = {"url": f"https://cdn.example/{message_id}/mechanic_sheet.jpg"}
        self.messages[message_id] = embed
        return message_id

    async def edit_message(self, message_id, embed, files=None):
        self.calls.append(("edit", message_id, embed, files))
        self._check("edit")
        self.messages[message_id] = embed
        return {"id": message_id}

    async def delete_message(self, message_id):
        self.calls.append(("delete", message_id))
        if self.on_delete:
            self.on_delete(message_id)
        self._check("delete")
        self.messages.pop(message_id, None)

    async def get_embed_images(self, message_id) -> Dict[str, Optional[str]]:
        self.calls.append(("get", message_id))
        self._check("get")
        embed = self.messages.get(message_id, {})
        return {
            "image": (embed.get("image") or {}).get("url"),
            "thumbnail": (embed.get("thumbnail") or {}).get("url"),
        }

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(session_factory, gateway):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


# ==================== DATA HELPERS ====================

@pytest.fixture
def make_employee(db_session):
    def _make(character_name="mike", discord_id=None, verification_key="SHOPKEY", **fields):
        employee = Employee(
            character_name=character_name.lower(),
            discord_id=discord_id or f"discord-{character_name.lower()}",
            verification_key=verification_key.upper(),
            **fields
        )
        db_session.add(employee)
        db_session.commit()
        db_session.refresh(employee)
        return employee
    return _make


@pytest.fixture
def employee(make_employee):
    return make_employee("mike")


@pytest.fixture
def owner(db_session):
    owner = Owner(character_name="boss", discord_id="discord-boss", verification_key="OWNERKEY")
    db_session.add(owner)
    db_session.commit()
    db_session.refresh(owner)
    return owner


@pytest.fixture
def owner_shadow(db_session, owner):
    shadow = Employee(
        character_name=owner.character_name,
        discord_id=owner.discord_id,
        verification_key=owner.verification_key
    )
    db_session.add(shadow)
    db_session.commit()
    db_session.refresh(shadow)
    return shadow


@pytest.fixture
def employee_session(employee):
    return SessionContext.for_employee(employee)


@pytest.fixture
def owner_session(owner, owner_shadow):
    return SessionContext.for_owner(owner, owner_shadow)


@pytest.fixture
def employee_headers(employee):
    token = create_access_token(employee_id=employee.id, kind="employee")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner, owner_shadow):
    token = create_access_token(employee_id=owner_shadow.id, kind="owner", owner_id=owner.id)
    return {"Authorization": f"Bearer {token}"}

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import PermissionDeniedError, PersistenceError, ValidationError
from app.modules.sales.repository import SalesRepository
from app.modules.sales.schemas import OperationOutcome, SaleCreateRequest, SaleItemRequest
from app.modules.sales.service import SalesService, VerificationImages
from app.shared.database.models import Sale, SaleItem


def run(coro):
    return asyncio.run(coro)


def draft(items=None, discount=0, customer="John Doe", plate="ab12cd"):
    return SaleCreateRequest(
        customer_name=customer,
        vehicle_plate=plate,
        items=items if items is not None else [
            SaleItemRequest(item_name="ENGINE UPGRADE", item_category="Performance",
                            item_type="Lv 1", quantity=1, price=8000),
            SaleItemRequest(item_name="SPOILER", item_category="Exterior Visuals",
                            item_type="Stock", quantity=2, price=1500),
        ],
        discount_percentage=discount
    )


IMAGES = VerificationImages(car_image=b"car-bytes", mechanic_sheet=b"sheet-bytes")


@pytest.fixture
def service(db_session, gateway):
    return SalesService(db_session, gateway)


def create(service, employee, **kwargs):
    return run(service.create_sale(
        kwargs.pop("sale_draft", draft(discount=10)),
        employee_id=employee.id,
        author_auto_verifies=kwargs.pop("auto", False),
        **kwargs
    ))


# ==================== CREATE ====================

def test_create_persists_totals_and_posts_message(service, employee, gateway, db_session):
    result = create(service, employee)

    assert result.outcome == OperationOutcome.committed
    sale = db_session.get(Sale, result.sale_id)
    assert sale.subtotal == pytest.approx(11000)
    assert sale.discount_amount == pytest.approx(1100)
    assert sale.tax_amount == pytest.approx(1386)
    assert sale.total_amount == pytest.approx(11286)
    assert sale.vehicle_plate == "AB12CD"
    assert sale.is_verified is False
    assert sale.discord_message_id == "1000"
    assert len(result.sale.items) == 2

    _, embed, files = gateway.calls[0]
    assert embed["title"] == "🧾 New Bill Created"
    assert files is None


def test_create_with_both_images_auto_verifies(service, employee, gateway, db_session):
    result = create(service, employee, verification_images=IMAGES)

    sale = db_session.get(Sale, result.sale_id)
    assert sale.is_verified is True
    assert sale.verified_at is not None

    _, embed, files = gateway.calls[0]
    assert embed["title"] == "✅ New Bill Created (Verified)"
    assert [f.filename for f in files] == ["car_image.jpg", "mechanic_sheet.jpg"]


def test_create_with_one_image_stays_unverified(service, employee, db_session):
    result = create(service, employee, verification_images=VerificationImages(car_image=b"car"))

    assert db_session.get(Sale, result.sale_id).is_verified is False


def test_author_auto_verify_policy(service, employee, db_session):
    result = create(service, employee, auto=True)

    assert db_session.get(Sale, result.sale_id).is_verified is True


def test_create_survives_notification_failure(service, employee, gateway, db_session):
    gateway.fail_on.add("create")

    result = create(service, employee)

    assert result.outcome == OperationOutcome.committed_with_notification_warning
    assert result.warnings
    sale = db_session.get(Sale, result.sale_id)
    assert sale is not None
    assert sale.discord_message_id is None


@pytest.mark.parametrize("bad_draft, message", [
    (draft(customer=""), "customer"),
    (draft(plate="  "), "plate"),
    (draft(items=[]), "item"),
])
def test_create_validates_before_any_call(service, employee, gateway, db_session, bad_draft, message):
    with pytest.raises(ValidationError) as exc:
        create(service, employee, sale_draft=bad_draft)

    assert message in exc.value.message.lower()
    assert gateway.calls == []
    assert db_session.query(Sale).count() == 0


def test_create_aborts_when_database_fails(service, employee, gateway, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(SalesRepository, "create_sale_with_items", broken)

    with pytest.raises(PersistenceError) as exc:
        create(service, employee)

    assert exc.value.to_dict()["outcome"] == "aborted"
    assert gateway.calls == []


def test_quick_bill(service, employee, gateway, db_session):
    result = run(service.quick_bill(employee.id))

    sale = db_session.get(Sale, result.sale_id)
    assert sale.customer_name == "Vehicle Repair"
    assert sale.vehicle_plate == "REPAIR"
    assert sale.subtotal == pytest.approx(500)
    assert sale.tax_amount == pytest.approx(70)
    assert sale.total_amount == pytest.approx(570)
    assert sale.is_verified is True

    _, embed, _ = gateway.calls[0]
    assert embed["fields"][-1]["value"] == "**AUTO-VERIFIED** (Repair Bill)"


# ==================== EDITING ====================

def test_delete_item_recomputes_with_stored_discount(service, employee, employee_session, gateway, db_session):
    created = create(service, employee)
    spoiler = next(i for i in created.sale.items if i.item_name == "SPOILER")

    result = run(service.delete_item(employee_session, created.sale_id, spoiler.id))

    db_session.expire_all()
    sale = db_session.get(Sale, created.sale_id)
    assert sale.subtotal == pytest.approx(8000)
    assert sale.discount_amount == pytest.approx(800)
    assert sale.total_amount == pytest.approx(7200 * 1.14)
    assert result.sale.item_count == 1
    assert gateway.operations() == ["create"]


def test_deleting_last_item_gives_zero_totals(service, employee, employee_session, db_session):
    created = create(service, employee)

    for item in created.sale.items:
        run(service.delete_item(employee_session, created.sale_id, item.id))

    db_session.expire_all()
    sale = db_session.get(Sale, created.sale_id)
    assert sale.subtotal == 0
    assert sale.total_amount == 0


def test_edit_totals_is_idempotent_and_keeps_images(service, employee, employee_session, gateway, db_session):
    created = create(service, employee, verification_images=IMAGES)

    first = run(service.edit_totals(employee_session, created.sale_id))
    second = run(service.edit_totals(employee_session, created.sale_id))

    assert first.sale.total_amount == second.sale.total_amount == pytest.approx(11286)
    assert gateway.operations() == ["create", "get", "edit", "get", "edit"]
    _, _, embed, files = gateway.calls[-1]
    assert files is None
    assert embed["title"] == "✅ Bill Verified"
    assert embed["image"]["url"].endswith("car_image.jpg")


def test_edit_totals_without_message_skips_discord(service, employee, employee_session, gateway):
    gateway.fail_on.add("create")
    created = create(service, employee)

    result = run(service.edit_totals(employee_session, created.sale_id))

    assert result.outcome == OperationOutcome.committed
    assert gateway.operations() == ["create"]


def test_edit_totals_survives_failed_read_back(service, employee, employee_session, gateway, monkeypatch):
    created = create(service, employee)
    read_items = SalesRepository.get_sale_items
    calls = []

    def flaky(self, sale_id):
        calls.append(sale_id)
        if len(calls) > 1:
            raise OperationalError("SELECT", {}, Exception("connection lost"))
        return read_items(self, sale_id)

    monkeypatch.setattr(SalesRepository, "get_sale_items", flaky)

    result = run(service.edit_totals(employee_session, created.sale_id))

    assert result.outcome == OperationOutcome.committed_with_notification_warning
    assert result.sale.total_amount == pytest.approx(11286)
    assert gateway.operations() == ["create"]


def test_add_verification_images(service, employee, employee_session, gateway, db_session):
    created = create(service, employee)

    result = run(service.add_verification_images(employee_session, created.sale_id, IMAGES))

    assert result.outcome == OperationOutcome.committed
    db_session.expire_all()
    assert db_session.get(Sale, created.sale_id).is_verified is True
    operation, _, embed, files = gateway.calls[-1]
    assert operation == "edit"
    assert embed["image"]["url"] == "attachment://car_image.jpg"
    assert len(files) == 2


def test_add_verification_images_requires_both(service, employee, employee_session, gateway):
    created = create(service, employee)

    with pytest.raises(ValidationError):
        run(service.add_verification_images(
            employee_session, created.sale_id, VerificationImages(car_image=b"car")
        ))

    assert gateway.operations() == ["create"]


def test_verification_edit_failure_is_a_warning(service, employee, employee_session, gateway, db_session):
    created = create(service, employee)
    gateway.fail_on.add("edit")

    result = run(service.add_verification_images(employee_session, created.sale_id, IMAGES))

    assert result.outcome == OperationOutcome.committed_with_notification_warning
    db_session.expire_all()
    assert db_session.get(Sale, created.sale_id).is_verified is True


# ==================== FAKE FLAG ====================

def test_toggle_fake_excludes_sale_from_aggregates(service, employee, owner_session, gateway, db_session):
    created = create(service, employee)
    repository = SalesRepository(db_session)
    assert repository.get_real_sales_total(employee.id) == pytest.approx(11286)

    run(service.toggle_fake(owner_session, created.sale_id))
    assert repository.get_real_sales_total(employee.id) == 0
    _, _, embed, _ = gateway.calls[-1]
    assert embed["title"] == "⚠️ FAKE BILL (MARKED)"
    assert embed["footer"]["text"].endswith("| MARKED AS FAKE")

    run(service.toggle_fake(owner_session, created.sale_id))
    assert repository.get_real_sales_total(employee.id) == pytest.approx(11286)


def test_employees_cannot_toggle_fake(service, employee, employee_session):
    created = create(service, employee)

    with pytest.raises(PermissionDeniedError):
        run(service.toggle_fake(employee_session, created.sale_id))


def test_employees_cannot_touch_other_sales(service, make_employee, employee, employee_session):
    other = make_employee("sam")
    created = create(service, other)

    with pytest.raises(PermissionDeniedError):
        run(service.edit_totals(employee_session, created.sale_id))


# ==================== DELETE ====================

def test_delete_sale_removes_message_before_rows(service, employee, employee_session, gateway, db_session):
    created = create(service, employee)
    rows_at_delete = []

    def count_items(message_id):
        rows_at_delete.append(db_session.query(SaleItem).filter_by(sale_id=created.sale_id).count())

    gateway.on_delete = count_items

    result = run(service.delete_sale(employee_session, created.sale_id))

    assert result.outcome == OperationOutcome.committed
    assert rows_at_delete == [2]
    db_session.expire_all()
    assert db_session.get(Sale, created.sale_id) is None
    assert db_session.query(SaleItem).count() == 0


def test_delete_sale_proceeds_when_discord_fails(service, employee, employee_session, gateway, db_session):
    created = create(service, employee)
    gateway.fail_on.add("delete")

    result = run(service.delete_sale(employee_session, created.sale_id))

    assert result.outcome == OperationOutcome.committed_with_notification_warning
    assert gateway.operations() == ["create", "delete"]
    db_session.expire_all()
    assert db_session.get(Sale, created.sale_id) is None
    assert db_session.query(SaleItem).count() == 0

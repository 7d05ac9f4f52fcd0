import json

import pytest

from app.shared.database.models import Sale, SaleItem

ITEMS = [
    {"item_name": "ENGINE UPGRADE", "item_category": "Performance", "item_type": "Lv 1",
     "quantity": 1, "price": 8000},
    {"item_name": "SPOILER", "item_category": "Exterior Visuals", "item_type": "Stock",
     "quantity": 2, "price": 1500},
]


def create_bill(client, headers, files=None, **overrides):
    data = {
        "customer_name": "John Doe",
        "vehicle_plate": "ab12cd",
        "items": json.dumps(ITEMS),
        "discount_percentage": "10",
    }
    data.update(overrides)
    return client.post("/api/v1/vendor/sales/create", data=data, files=files, headers=headers)


def test_create_requires_session(client):
    response = create_bill(client, headers={})

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_create_bill(client, employee_headers, gateway):
    response = create_bill(client, employee_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "committed"
    assert body["sale"]["total_amount"] == pytest.approx(11286)
    assert body["sale"]["vehicle_plate"] == "AB12CD"
    assert body["sale"]["status"] == "needs_verification"
    assert body["sale"]["item_count"] == 2
    assert gateway.operations() == ["create"]


def test_create_bill_with_images_is_verified(client, employee_headers, gateway):
    files = {
        "car_image": ("car.jpg", b"car-bytes", "image/jpeg"),
        "mechanic_sheet": ("sheet.png", b"sheet-bytes", "image/png"),
    }

    response = create_bill(client, employee_headers, files=files)

    body = response.json()
    assert body["sale"]["is_verified"] is True
    assert body["sale"]["verified_at"] is not None
    _, _, uploaded = gateway.calls[0]
    assert [f.filename for f in uploaded] == ["car_image.jpg", "mechanic_sheet.jpg"]
    assert uploaded[1].content_type == "image/png"


def test_owner_bills_are_auto_verified(client, owner_headers):
    response = create_bill(client, owner_headers)

    assert response.json()["sale"]["is_verified"] is True


def test_create_bill_rejects_missing_customer(client, employee_headers, gateway):
    response = create_bill(client, employee_headers, customer_name="  ")

    assert response.status_code == 400
    assert "customer" in response.json()["detail"].lower()
    assert gateway.calls == []


def test_create_bill_rejects_bad_items(client, employee_headers):
    bad_json = create_bill(client, employee_headers, items="not json")
    bad_quantity = create_bill(
        client, employee_headers,
        items=json.dumps([{**ITEMS[0], "quantity": 0}])
    )

    assert bad_json.status_code == 400
    assert bad_quantity.status_code == 400
    assert bad_quantity.json()["details"]["errors"]


def test_discord_failure_is_reported_as_warning(client, employee_headers, gateway, db_session):
    gateway.fail_on.add("create")

    response = create_bill(client, employee_headers)

    body = response.json()
    assert response.status_code == 200
    assert body["outcome"] == "committed_with_notification_warning"
    assert body["warnings"]
    assert db_session.query(Sale).count() == 1


def test_quick_bill(client, employee_headers):
    response = client.post("/api/v1/vendor/sales/quick-bill", headers=employee_headers)

    sale = response.json()["sale"]
    assert sale["customer_name"] == "Vehicle Repair"
    assert sale["total_amount"] == pytest.approx(570)
    assert sale["status"] == "verified"


def test_dashboard(client, employee_headers, gateway):
    for _ in range(6):
        create_bill(client, employee_headers)
    client.post("/api/v1/vendor/sales/quick-bill", headers=employee_headers)

    response = client.get("/api/v1/vendor/sales/dashboard", headers=employee_headers)

    body = response.json()
    assert body["character_name"] == "mike"
    assert body["customer_count"] == 7
    assert body["total_sales"] == pytest.approx(6 * 11286 + 570)
    assert body["unverified_count"] == 6
    assert len(body["recent_sales"]) == 5
    assert len(body["all_sales"]) == 7
    assert body["announcement"] is None


def test_sale_detail_and_item_delete(client, employee_headers, db_session):
    sale_id = create_bill(client, employee_headers).json()["sale_id"]

    detail = client.get(f"/api/v1/vendor/sales/{sale_id}", headers=employee_headers).json()
    item_id = detail["items"][1]["id"]

    response = client.delete(
        f"/api/v1/vendor/sales/{sale_id}/items/{item_id}", headers=employee_headers
    )

    assert response.status_code == 200
    assert response.json()["sale"]["subtotal"] == pytest.approx(8000)
    assert db_session.query(SaleItem).filter_by(sale_id=sale_id).count() == 1


def test_save_changes_updates_discord(client, employee_headers, gateway):
    sale_id = create_bill(client, employee_headers).json()["sale_id"]

    response = client.post(f"/api/v1/vendor/sales/{sale_id}/save", headers=employee_headers)

    assert response.json()["outcome"] == "committed"
    assert gateway.operations() == ["create", "get", "edit"]


def test_verify_requires_both_images(client, employee_headers):
    sale_id = create_bill(client, employee_headers).json()["sale_id"]

    response = client.post(
        f"/api/v1/vendor/sales/{sale_id}/verify",
        files={"car_image": ("car.jpg", b"car", "image/jpeg")},
        headers=employee_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Please upload both images"


def test_verify_bill(client, employee_headers):
    sale_id = create_bill(client, employee_headers).json()["sale_id"]

    response = client.post(
        f"/api/v1/vendor/sales/{sale_id}/verify",
        files={
            "car_image": ("car.jpg", b"car", "image/jpeg"),
            "mechanic_sheet": ("sheet.jpg", b"sheet", "image/jpeg"),
        },
        headers=employee_headers
    )

    assert response.status_code == 200
    assert response.json()["sale"]["status"] == "verified"


def test_delete_bill(client, employee_headers, gateway, db_session):
    sale_id = create_bill(client, employee_headers).json()["sale_id"]

    response = client.delete(f"/api/v1/vendor/sales/{sale_id}", headers=employee_headers)

    assert response.status_code == 200
    assert response.json()["sale_id"] == sale_id
    assert gateway.operations() == ["create", "delete"]
    assert db_session.query(Sale).count() == 0


def test_other_employees_bills_are_off_limits(client, employee_headers, owner_headers):
    sale_id = create_bill(client, owner_headers).json()["sale_id"]

    assert client.get(f"/api/v1/vendor/sales/{sale_id}", headers=employee_headers).status_code == 403
    assert client.delete(f"/api/v1/vendor/sales/{sale_id}", headers=employee_headers).status_code == 403


def test_unknown_bill(client, employee_headers):
    response = client.get("/api/v1/vendor/sales/999", headers=employee_headers)

    assert response.status_code == 404


def test_invoice(client, employee_headers):
    sale_id = create_bill(client, employee_headers).json()["sale_id"]

    response = client.get(f"/api/v1/vendor/sales/{sale_id}/invoice", headers=employee_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert f"#DRG-{sale_id:06d}" in response.text
    assert "$11,286" in response.text


def test_catalog(client):
    response = client.get("/api/v1/vendor/catalog")

    body = response.json()
    assert body["tax_rate"] == pytest.approx(0.14)
    names = [c["name"] for c in body["categories"]]
    assert "Performance" in names

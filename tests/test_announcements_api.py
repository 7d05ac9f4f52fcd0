from datetime import timedelta

from app.shared.database.models import Announcement
from app.shared.time_utils import utcnow


def test_create_and_show_on_dashboards(client, owner_headers, employee_headers):
    response = client.post(
        "/api/v1/announcements",
        json={"message": "  Staff meeting at 8  "},
        headers=owner_headers
    )

    assert response.status_code == 201
    created = response.json()
    assert created["message"] == "Staff meeting at 8"

    active = client.get("/api/v1/announcements/active", headers=employee_headers).json()
    assert active["announcement"]["id"] == created["id"]

    dashboard = client.get("/api/v1/vendor/sales/dashboard", headers=employee_headers).json()
    assert dashboard["announcement"]["message"] == "Staff meeting at 8"


def test_default_expiry_is_24_hours(client, owner_headers, db_session):
    before = utcnow()

    response = client.post("/api/v1/announcements", json={"message": "Hi"}, headers=owner_headers)

    announcement = db_session.get(Announcement, response.json()["id"])
    assert before + timedelta(hours=23, minutes=59) < announcement.expires_at
    assert announcement.expires_at <= utcnow() + timedelta(hours=24)


def test_validation(client, owner_headers):
    blank = client.post("/api/v1/announcements", json={"message": "   "}, headers=owner_headers)
    too_short = client.post(
        "/api/v1/announcements",
        json={"message": "Hi", "expires_in_hours": 0},
        headers=owner_headers
    )

    assert blank.status_code == 422
    assert too_short.status_code == 422


def test_employees_cannot_manage(client, employee_headers):
    response = client.post("/api/v1/announcements", json={"message": "Hi"}, headers=employee_headers)

    assert response.status_code == 403


def test_expired_announcements_are_hidden(client, owner, employee_headers, db_session):
    db_session.add(Announcement(
        message="Old news",
        expires_at=utcnow() - timedelta(minutes=1),
        created_by=owner.id
    ))
    db_session.commit()

    active = client.get("/api/v1/announcements/active", headers=employee_headers).json()

    assert active["announcement"] is None


def test_update_and_delete(client, owner_headers, employee_headers):
    created = client.post(
        "/api/v1/announcements", json={"message": "First"}, headers=owner_headers
    ).json()

    updated = client.put(
        f"/api/v1/announcements/{created['id']}",
        json={"message": "Second", "expires_in_hours": 2},
        headers=owner_headers
    )
    assert updated.json()["message"] == "Second"

    deleted = client.delete(f"/api/v1/announcements/{created['id']}", headers=owner_headers)
    assert deleted.status_code == 200

    active = client.get("/api/v1/announcements/active", headers=employee_headers).json()
    assert active["announcement"] is None

    missing = client.delete(f"/api/v1/announcements/{created['id']}", headers=owner_headers)
    assert missing.status_code == 404

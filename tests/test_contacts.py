from conftest import approved_user


def test_contact_is_stored_and_forwarded(client, admin_headers, mailer):
    response = client.post(
        "/admin-contacts",
        json={"email": "Visitor@School.edu.ph", "message": "I cannot finish signing up."},
    )

    assert response.status_code == 200
    assert response.json()["email_sent"] is True
    contact, admin_email = mailer.contacts[0]
    assert contact.subject == "Registration Assistance Request"
    assert contact.email == "visitor@school.edu.ph"
    assert admin_email == "support@school.edu.ph"

    listing = client.get("/admin-contacts", headers=admin_headers).json()
    assert listing[0]["status"] == "unread"
    assert listing[0]["email_sent"] is True


def test_contact_delivery_failure_is_recorded(client, admin_headers, mailer):
    mailer.fail_with = "No admin mailbox"

    response = client.post(
        "/admin-contacts", json={"email": "v@school.edu.ph", "subject": "Help", "message": "Hello"}
    )

    assert response.status_code == 200
    assert response.json()["email_sent"] is False
    stored = client.get("/admin-contacts", headers=admin_headers).json()[0]
    assert stored["subject"] == "Help"
    assert stored["email_error"] == "No admin mailbox"


def test_mark_contact_read(client, admin_headers):
    contact_id = client.post(
        "/admin-contacts", json={"email": "v@school.edu.ph", "message": "Hello"}
    ).json()["id"]

    response = client.post(f"/admin-contacts/{contact_id}/read", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "read"
    assert response.json()["read_by"] == "admin@school.edu.ph"
    assert client.post("/admin-contacts/missing/read", headers=admin_headers).status_code == 404


def test_contacts_are_admin_only(client, admin_headers):
    _, headers = approved_user(client, admin_headers, "teacher@school.edu.ph")
    assert client.get("/admin-contacts", headers=headers).status_code == 403
    assert client.get("/admin-contacts").status_code == 401

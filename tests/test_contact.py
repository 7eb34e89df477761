import json

import pytest

from therapy_site.models.database import Assessment, ContactSubmission


@pytest.mark.asyncio
async def test_contact_persists_submission(client, db, outbound):
    response = await client.post(
        "/api/contact", json={"name": "Ayşe", "email": "a@x.com", "message": "Merhaba"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}

    submission = db.query(ContactSubmission).one()
    assert submission.name == "Ayşe"
    assert submission.email == "a@x.com"
    assert submission.message == "Merhaba"
    assert submission.phone is None

    email = json.loads(outbound.to("api.resend.com")[0].read())
    assert email["to"] == ["info@volkanozcihan.com"]
    assert email["reply_to"] == "a@x.com"
    assert "Ayşe" in email["subject"]

    whatsapp = outbound.to("api.twilio.com")[0]
    assert whatsapp.url.path == "/2010-04-01/Accounts/AC123/Messages.json"


@pytest.mark.asyncio
async def test_contact_notification_failure_does_not_fail_request(client, db, outbound):
    outbound.fail_hosts.update({"api.resend.com", "api.twilio.com"})

    response = await client.post(
        "/api/contact",
        json={"name": "Ayşe", "email": "a@x.com", "phone": "05320000000", "message": "Merhaba"},
    )

    assert response.status_code == 200
    assert db.query(ContactSubmission).count() == 1


@pytest.mark.asyncio
async def test_contact_validation(client, db):
    response = await client.post("/api/contact", json={"name": "A", "email": "nope", "message": "hi"})

    assert response.status_code == 400
    fields = {item["field"] for item in response.json()["error"]}
    assert fields == {"name", "email", "message"}
    assert db.query(ContactSubmission).count() == 0


@pytest.mark.asyncio
async def test_assessment_create_then_update(client, db):
    first = await client.post(
        "/api/assessment/create", json={"sessionId": "abc-123", "answers": {"q1": "evet"}}
    )
    second = await client.post(
        "/api/assessment/create", json={"sessionId": "abc-123", "answers": {"q1": "hayır", "q2": 3}}
    )

    assert first.status_code == 200
    assert second.json() == {"success": True}
    assessment = db.query(Assessment).one()
    assert assessment.answers == {"q1": "hayır", "q2": 3}
    assert assessment.status == "IN_PROGRESS"


@pytest.mark.asyncio
async def test_assessment_requires_session_id(client):
    response = await client.post("/api/assessment/create", json={"answers": {}})
    assert response.status_code == 400

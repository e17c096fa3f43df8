"""HTTP surface: routing, identity headers and the error mapping."""

from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert

from helpdesk.core import StorageUnavailableException
from helpdesk.infrastructure.database import get_session, get_session_scope
from helpdesk.knowledge.infrastructure import KnowledgeArticleModel
from helpdesk.main import app
from helpdesk.shared.api import get_clock
from helpdesk.tickets.interfaces import get_blob_store, get_ticket_service

from tests.conftest import AGENT_ID, FRACTIONAL_TIER, HARDWARE, LAPTOP, SOFTWARE, STANDARD_TIER, T0, USER_ID

ADMIN_HEADERS = {"X-User-Id": "1", "X-User-Role": "admin"}
AGENT_HEADERS = {"X-User-Id": "2", "X-User-Role": "agent"}
USER_HEADERS = {"X-User-Id": "3"}

NEW_TICKET = {
    "title": "Printer on fire",
    "description": "Smoke coming out of tray 2",
    "category_id": HARDWARE,
    "subcategory_id": LAPTOP,
    "priority": "High",
    "sla_tier_id": STANDARD_TIER,
}


@pytest.fixture
async def client(scope, clock, blob_store):
    async def session_override():
        async with scope() as session:
            yield session

    app.dependency_overrides[get_session] = session_override
    app.dependency_overrides[get_session_scope] = lambda: scope
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create(client, **overrides):
    response = await client.post("/tickets", json={**NEW_TICKET, **overrides}, headers=USER_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


# ========== Tickets ==========

async def test_create_and_fetch_ticket(client):
    created = await _create(client)

    assert created["status"] == "Open"
    assert created["created_by"] == USER_ID
    assert created["time_worked"] == "00:00:00"
    assert created["is_breaching"] is False
    assert created["response_due"].startswith("2024-01-15T14:00:00")

    response = await client.get(f"/tickets/{created['id']}", headers=USER_HEADERS)
    assert response.status_code == 200
    assert response.json() == created


async def test_status_change_assigns_caller(client):
    ticket = await _create(client)

    response = await client.put(
        f"/tickets/{ticket['id']}/status", json={"status": "InProgress"}, headers=AGENT_HEADERS
    )

    assert response.status_code == 200
    assert response.json()["assigned_to"] == AGENT_ID


async def test_listings(client):
    ticket = await _create(client)

    queue = await client.get(f"/tickets/queue/{AGENT_ID}", headers=AGENT_HEADERS)
    mine = await client.get(f"/tickets/created-by/{USER_ID}", headers=USER_HEADERS)
    overview = await client.get("/tickets", headers=ADMIN_HEADERS)
    agents = await client.get("/agents", headers=USER_HEADERS)

    assert [t["id"] for t in queue.json()] == [ticket["id"]]
    assert [t["id"] for t in mine.json()] == [ticket["id"]]
    assert overview.json()[0]["last_replier"] is None
    assert [a["username"] for a in agents.json()] == ["bob", "dave", "erin"]


# ========== Error mapping ==========

async def test_missing_ticket_is_404(client):
    response = await client.get("/tickets/404", headers=USER_HEADERS)

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "NotFound"
    assert "404" in body["detail"]
    assert body["correlation_id"] == response.headers["X-Correlation-ID"]


async def test_correlation_id_is_echoed(client):
    response = await client.get("/tickets/404", headers={**USER_HEADERS, "X-Correlation-ID": "req-123"})

    assert response.headers["X-Correlation-ID"] == "req-123"
    assert response.json()["correlation_id"] == "req-123"


async def test_back_to_open_is_409(client):
    ticket = await _create(client)

    response = await client.put(f"/tickets/{ticket['id']}/status", json={"status": "Open"}, headers=AGENT_HEADERS)

    assert response.status_code == 409
    assert response.json()["error"] == "InvalidState"


@pytest.mark.parametrize("path, payload, kind", [
    ("status", {"status": "Pending"}, "InvalidState"),
    ("priority", {"priority": "Urgent"}, "InvalidPriority"),
    ("time-worked", {"time_worked": "25:61:00"}, "InvalidFormat"),
])
async def test_bad_updates_are_422(client, path, payload, kind):
    ticket = await _create(client)

    response = await client.put(f"/tickets/{ticket['id']}/{path}", json=payload, headers=AGENT_HEADERS)

    assert response.status_code == 422
    assert response.json()["error"] == kind


async def test_unknown_reference_is_422(client):
    response = await client.post("/tickets", json={**NEW_TICKET, "sla_tier_id": 999}, headers=USER_HEADERS)

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidReference"


async def test_admin_only_routes_are_403(client):
    ticket = await _create(client)

    assignee = await client.put(
        f"/tickets/{ticket['id']}/assignee", json={"assigned_to": AGENT_ID}, headers=AGENT_HEADERS
    )
    overview = await client.get("/tickets", headers=USER_HEADERS)
    tier = await client.post(
        "/sla/tiers",
        json={"name": "Gold", "response_time_hours": 1, "resolution_time_hours": 4},
        headers=AGENT_HEADERS,
    )

    assert [r.status_code for r in (assignee, overview, tier)] == [403, 403, 403]
    assert assignee.json()["error"] == "Forbidden"


async def test_identity_headers_are_required(client):
    anonymous = await client.post("/tickets", json=NEW_TICKET)
    bad_role = await client.post("/tickets", json=NEW_TICKET, headers={"X-User-Id": "1", "X-User-Role": "root"})

    for response in (anonymous, bad_role):
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "InvalidFormat"
        assert body["correlation_id"] == response.headers["X-Correlation-ID"]
    assert anonymous.json()["context"]["errors"][0]["loc"] == ["header", "x-user-id"]
    assert bad_role.json()["context"] == {"x_user_role": "root"}


@pytest.mark.parametrize("path, payload", [
    ("status", {}),
    ("priority", {"priority": 3}),
    ("time-worked", {"time_worked": None}),
])
async def test_malformed_bodies_use_the_error_body(client, path, payload):
    ticket = await _create(client)

    response = await client.put(f"/tickets/{ticket['id']}/{path}", json=payload, headers=AGENT_HEADERS)

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "InvalidFormat"
    assert body["detail"].startswith("Malformed request")
    assert body["context"]["errors"]


async def test_out_of_range_tier_budget_is_422(client):
    response = await client.post(
        "/sla/tiers",
        json={"name": "Forever", "response_time_hours": 1e9, "resolution_time_hours": 1e9},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidFormat"


async def test_storage_outage_is_503_with_retry_after(client):
    class UnavailableTickets:
        async def get_ticket(self, ticket_id):
            raise StorageUnavailableException("Storage unavailable during tickets.get")

    app.dependency_overrides[get_ticket_service] = lambda: UnavailableTickets()

    response = await client.get("/tickets/1", headers=USER_HEADERS)

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "5"
    assert response.json()["error"] == "StorageUnavailable"


# ========== Thread ==========

async def test_comment_with_files(client):
    ticket = await _create(client)

    response = await client.post(
        f"/tickets/{ticket['id']}/comments",
        data={"text": "see attached", "time_worked": "00:30:00"},
        files=[
            ("files", ("log.txt", b"paper jam", "text/plain")),
            ("files", ("photo.jpg", b"\xff\xd8", "image/jpeg")),
        ],
        headers=AGENT_HEADERS,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["failed_attachments"] == []
    assert body["comment"]["commenter_id"] == AGENT_ID
    assert [a["file_name"] for a in body["comment"]["attachments"]] == ["log.txt", "photo.jpg"]

    thread = await client.get(f"/tickets/{ticket['id']}/comments", headers=USER_HEADERS)
    by_comment = await client.get(f"/comments/{body['comment_id']}/attachments", headers=USER_HEADERS)
    refreshed = await client.get(f"/tickets/{ticket['id']}", headers=USER_HEADERS)

    assert [c["text"] for c in thread.json()] == ["see attached"]
    assert len(by_comment.json()) == 2
    assert refreshed.json()["time_worked"] == "00:30:00"


async def test_blank_comment_is_422(client):
    ticket = await _create(client)

    response = await client.post(f"/tickets/{ticket['id']}/comments", data={"text": "  "}, headers=USER_HEADERS)

    assert response.status_code == 422
    assert response.json()["error"] == "EmptyComment"


# ========== SLA and escalation ==========

async def test_breach_and_escalation(client, clock):
    ticket = await _create(client)
    await client.put(f"/tickets/{ticket['id']}/assignee", json={"assigned_to": AGENT_ID}, headers=ADMIN_HEADERS)

    early = await client.post(f"/tickets/{ticket['id']}/escalate", headers=AGENT_HEADERS)
    assert early.json()["result"] == "not_breaching"

    clock.set(T0 + timedelta(hours=5))
    sla = await client.get(f"/tickets/{ticket['id']}/sla", headers=USER_HEADERS)
    assert sla.json()["is_breaching"] is True

    escalated = await client.post(f"/tickets/{ticket['id']}/escalate", headers=AGENT_HEADERS)
    assert escalated.status_code == 200
    assert escalated.json()["escalated"] is True
    assert escalated.json()["new_assignee"] is None

    again = await client.post(f"/tickets/{ticket['id']}/escalate", headers=AGENT_HEADERS)
    assert again.json()["result"] == "already_escalated"

    thread = await client.get(f"/tickets/{ticket['id']}/comments", headers=USER_HEADERS)
    assert len(thread.json()) == 1
    assert thread.json()[0]["commenter_name"] == "system"


async def test_escalation_scan_endpoint(client, clock):
    await _create(client)
    await _create(client, sla_tier_id=FRACTIONAL_TIER)
    clock.set(T0 + timedelta(hours=2))

    forbidden = await client.post("/sla/escalations/run", headers=AGENT_HEADERS)
    assert forbidden.status_code == 403

    response = await client.post("/sla/escalations/run", headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.json() == {
        "scanned": 1, "escalated": 1, "skipped": 0, "failed": 0, "failed_ticket_ids": [],
    }


async def test_tier_catalog(client):
    created = await client.post(
        "/sla/tiers",
        json={"name": "Gold", "response_time_hours": 0.5, "resolution_time_hours": 4},
        headers=ADMIN_HEADERS,
    )
    assert created.status_code == 201

    updated = await client.put(
        f"/sla/tiers/{created.json()['id']}", json={"resolution_time_hours": 6}, headers=ADMIN_HEADERS
    )
    tiers = await client.get("/sla/tiers", headers=USER_HEADERS)

    assert updated.json()["resolution_time_hours"] == 6
    assert [t["name"] for t in tiers.json()] == ["Standard", "Fractional", "Gold"]


# ========== Calendar and knowledge base ==========

async def test_unavailability_calendar(client):
    created = await client.post(
        "/unavailability", json={"date": "2024-01-16", "reason": "Training"}, headers=AGENT_HEADERS
    )
    assert created.status_code == 201, created.text
    assert created.json()["title"] == "Training"
    assert created.json()["start"] == "2024-01-16"
    assert created.json()["username"] == "bob"

    duplicate = await client.post("/unavailability", json={"date": "2024-01-16"}, headers=AGENT_HEADERS)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "AlreadyExists"

    calendar = await client.get("/unavailability", headers=USER_HEADERS)
    available = await client.get("/agents/available", params={"on": "2024-01-16"}, headers=USER_HEADERS)

    assert [(e["username"], e["start"]) for e in calendar.json()] == [("bob", "2024-01-16")]
    assert [a["username"] for a in available.json()] == ["dave", "erin"]


@pytest.mark.parametrize("payload, headers, status_code, kind", [
    ({"reason": "no day"}, AGENT_HEADERS, 422, "InvalidFormat"),
    ({"date": "16/01/2024"}, AGENT_HEADERS, 422, "InvalidFormat"),
    ({"date": "2024-01-16"}, USER_HEADERS, 403, "Forbidden"),
])
async def test_bad_unavailability_requests(client, payload, headers, status_code, kind):
    response = await client.post("/unavailability", json=payload, headers=headers)

    assert response.status_code == status_code
    assert response.json()["error"] == kind


async def test_knowledge_base_listing(client, scope):
    async with scope() as session:
        await session.execute(insert(KnowledgeArticleModel), [
            {"title": "Printer offline", "problem_desc": "Shows offline", "solution_desc": "Re-add the queue",
             "created_at": T0},
            {"title": "Outlook crash", "problem_desc": "Crashes on start", "solution_desc": "Safe mode repair",
             "category_id": SOFTWARE, "created_at": T0 + timedelta(hours=1)},
        ])

    response = await client.get("/knowledge-base", headers=USER_HEADERS)

    assert response.status_code == 200
    assert [a["title"] for a in response.json()] == ["Outlook crash", "Printer offline"]
    assert response.json()[0]["category_id"] == SOFTWARE
    assert response.json()[1]["category_id"] is None


# ========== Reports and health ==========

async def test_reports(client):
    await _create(client)

    summary = await client.get("/reports/summary", headers=ADMIN_HEADERS)
    agents = await client.get("/reports/agents", headers=ADMIN_HEADERS)
    tiers = await client.get("/reports/sla-tiers", headers=ADMIN_HEADERS)

    assert summary.json()["total"] == 1
    assert summary.json()["compliance_pct"] == 100.0
    assert len(agents.json()) == 3
    assert tiers.json()[0]["tickets"] == 1


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["checks"]["escalation_scheduler"] == "stopped"

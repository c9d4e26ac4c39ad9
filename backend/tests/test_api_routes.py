import base64
import json
from pathlib import Path
from uuid import uuid4

from fastapi.testclient import TestClient

from alerthub.main import app

ADMIN_HEADERS = {"Authorization": "Bearer test-token"}
FIXTURES = Path(__file__).resolve().parents[2] / "fixtures"


def _fixture(name: str) -> dict:
    return json.loads((FIXTURES / name).read_text())


def _claims_token(payload: dict) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _headers_for_claims(payload: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {_claims_token(payload)}"}


def _create_project(client: TestClient, short_name: str = "CHK") -> dict:
    resp = client.post("/v1/projects", json={"name": "Checkout", "shortName": short_name}, headers=ADMIN_HEADERS)
    assert resp.status_code == 201
    return resp.json()


def test_health() -> None:
    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}


def test_alert_to_incident_to_status_scenario() -> None:
    with TestClient(app) as client:
        project = _create_project(client)
        assert len(project["webhookKey"]) == 32
        hook = f"/v1/webhooks/{project['webhookKey']}/alertmanager"

        first = client.post(hook, json=_fixture("alertmanager_webhook.json"))
        assert first.status_code == 200
        assert first.json() == {"success": True, "processed": 2}
        second = client.post(hook, json=_fixture("alertmanager_webhook.json"))
        assert second.json() == {"success": True, "processed": 2}

        alerts = client.get(f"/v1/projects/{project['id']}/alerts", headers=ADMIN_HEADERS).json()
        assert len(alerts) == 2
        alert = next(a for a in alerts if a["fingerprint"] == "7c1e5b0f9a2d4e31")
        assert alert["status"] == "new"
        assert alert["severity"] == "critical"
        assert alert["source"] == "alertmanager"
        assert alert["title"] == "HighErrorRate"

        taken = client.post(f"/v1/alerts/{alert['id']}/take", headers=ADMIN_HEADERS)
        assert taken.status_code == 200
        assert taken.json()["status"] == "in_progress"
        assert taken.json()["assigneeId"] == "shared-token"

        created = client.post(
            f"/v1/projects/{project['id']}/incidents",
            json={"title": "Checkout 5xx", "severity": "critical", "impact": "major", "alertId": alert["id"]},
            headers=ADMIN_HEADERS,
        )
        assert created.status_code == 201
        incident = created.json()
        assert incident["status"] == "open"

        linked = client.get(f"/v1/alerts/{alert['id']}", headers=ADMIN_HEADERS).json()
        assert linked["incidentId"] == incident["id"]
        assert linked["status"] == "resolved"
        assert linked["resolvedAt"] is not None

        live = client.get(f"/v1/projects/{project['id']}/status", headers=ADMIN_HEADERS).json()
        assert live["currentStatus"] == "outage"
        assert live["activeIncidents"] == 1

        closed = client.post(
            f"/v1/incidents/{incident['id']}/close",
            json={
                "startTime": "2026-10-18T10:00:00Z",
                "endTime": "2026-10-18T11:30:00Z",
                "consequences": "checkout returned 5xx for 90 minutes",
            },
            headers=ADMIN_HEADERS,
        )
        assert closed.status_code == 200
        body = closed.json()
        assert body["status"] == "closed"
        assert body["downtimeMinutes"] == 90
        assert body["closedAt"] is not None

        report = client.get(f"/v1/projects/{project['id']}/status", headers=ADMIN_HEADERS).json()
        assert report["currentStatus"] == "operational"
        assert report["activeIncidents"] == 0
        assert report["windowDays"] == 30
        assert report["availabilityPercent"] == 99.79
        assert len(report["timeline"]) == 30

        history = client.get(f"/v1/alerts/{alert['id']}/history", headers=ADMIN_HEADERS).json()
        actions = {entry["action"] for entry in history}
        assert {"alert_received_webhook", "alert_taken", "incident_registered"} <= actions
        received = next(entry for entry in history if entry["action"] == "alert_received_webhook")
        assert received["metadata"]["fingerprint"] == "7c1e5b0f9a2d4e31"

        feed = client.get(f"/v1/projects/{project['id']}/activities", params={"limit": 3}, headers=ADMIN_HEADERS)
        assert feed.status_code == 200
        assert len(feed.json()) == 3
        assert feed.json()[0]["action"] == "incident_closed"


def test_alertmanager_entry_without_fingerprint_creates_one_alert() -> None:
    payload = {"alerts": [{"labels": {"alertname": "X", "severity": "high"}, "status": "firing"}]}
    with TestClient(app) as client:
        project = _create_project(client, "E2E")
        hook = f"/v1/webhooks/{project['webhookKey']}/alertmanager"

        assert client.post(hook, json=payload).json() == {"success": True, "processed": 1}
        assert client.post(hook, json=payload).json() == {"success": True, "processed": 1}

        (alert,) = client.get(f"/v1/projects/{project['id']}/alerts", headers=ADMIN_HEADERS).json()
        assert alert["title"] == "X"
        assert alert["severity"] == "high"
        assert alert["status"] == "new"
        assert alert["source"] == "alertmanager"
        assert alert["createdById"] is None

        history = client.get(f"/v1/alerts/{alert['id']}/history", headers=ADMIN_HEADERS).json()
        assert [entry["action"] for entry in history] == ["alert_received_webhook"]
        assert history[0]["userId"] is None


def test_grafana_and_zabbix_webhooks() -> None:
    with TestClient(app) as client:
        project = _create_project(client, "MON")
        key = project["webhookKey"]

        grafana = client.post(f"/v1/webhooks/{key}/grafana", json=_fixture("grafana_webhook.json"))
        assert grafana.json() == {"success": True, "processed": 1}
        zabbix = client.post(f"/v1/webhooks/{key}/zabbix", json=_fixture("zabbix_problem.json"))
        assert zabbix.json() == {"success": True, "processed": 1}

        recovery = {**_fixture("zabbix_problem.json"), "status": "OK", "recovery": "1"}
        client.post(f"/v1/webhooks/{key}/zabbix", json=recovery)

        alerts = client.get(f"/v1/projects/{project['id']}/alerts", headers=ADMIN_HEADERS).json()
        by_source = {a["source"]: a for a in alerts}
        assert by_source["grafana"]["severity"] == "medium"
        assert by_source["grafana"]["title"] == "Queue depth"
        assert by_source["zabbix"]["severity"] == "high"
        assert by_source["zabbix"]["status"] == "resolved"
        assert by_source["zabbix"]["fingerprint"] == "90412"


def test_unknown_webhook_key_is_not_found() -> None:
    with TestClient(app) as client:
        resp = client.post("/v1/webhooks/does-not-exist/alertmanager", json=_fixture("alertmanager_webhook.json"))
        assert resp.status_code == 404


def test_operator_routes_require_auth() -> None:
    with TestClient(app) as client:
        project = _create_project(client, "AUTH")
        assert client.get(f"/v1/projects/{project['id']}/alerts").status_code == 401


def test_viewer_can_read_but_not_mutate() -> None:
    with TestClient(app) as client:
        project = _create_project(client, "VIEW")
        viewer = _headers_for_claims({"sub": "vera", "role": "viewer", "projects": [project["id"]]})
        outsider = _headers_for_claims({"sub": "otto", "role": "responder", "projects": [str(uuid4())]})

        assert client.get(f"/v1/projects/{project['id']}/alerts", headers=viewer).status_code == 200
        denied = client.post(f"/v1/projects/{project['id']}/alerts", json={"title": "manual"}, headers=viewer)
        assert denied.status_code == 403
        assert client.get(f"/v1/projects/{project['id']}/status", headers=outsider).status_code == 403


def test_responder_creates_comments_and_manual_alerts() -> None:
    with TestClient(app) as client:
        project = _create_project(client, "RESP")
        responder = _headers_for_claims({"sub": "rita", "role": "responder", "projects": [project["id"]]})

        created = client.post(
            f"/v1/projects/{project['id']}/alerts",
            json={"title": "Customer reports failed payments", "severity": "high"},
            headers=responder,
        )
        assert created.status_code == 201
        alert = created.json()
        assert alert["source"] == "manual"
        assert alert["createdById"] == "rita"

        comment = client.post(f"/v1/alerts/{alert['id']}/comments", json={"content": "  looking  "}, headers=responder)
        assert comment.status_code == 201
        assert comment.json()["content"] == "looking"
        blank = client.post(f"/v1/alerts/{alert['id']}/comments", json={"content": "   "}, headers=responder)
        assert blank.status_code == 422

        comments = client.get(f"/v1/alerts/{alert['id']}/comments", headers=responder).json()
        assert [c["content"] for c in comments] == ["looking"]

        inspected = client.post(f"/v1/alerts/{alert['id']}/inspect", headers=responder)
        assert inspected.json()["status"] == "new"
        patched = client.patch(f"/v1/alerts/{alert['id']}", json={"status": "acknowledged"}, headers=responder)
        assert patched.json()["status"] == "acknowledged"
        resolved = client.post(f"/v1/alerts/{alert['id']}/resolve", headers=responder)
        assert resolved.json()["status"] == "resolved"


def test_lifecycle_errors_map_to_http_statuses() -> None:
    with TestClient(app) as client:
        project = _create_project(client, "ERR")
        alert = client.post(f"/v1/projects/{project['id']}/alerts", json={"title": "db down"}, headers=ADMIN_HEADERS).json()
        incident = client.post(
            f"/v1/projects/{project['id']}/incidents",
            json={"title": "DB outage", "alertId": alert["id"]},
            headers=ADMIN_HEADERS,
        ).json()

        again = client.post(
            f"/v1/projects/{project['id']}/incidents",
            json={"title": "DB outage again", "alertId": alert["id"]},
            headers=ADMIN_HEADERS,
        )
        assert again.status_code == 409

        missing_alert = client.post(
            f"/v1/projects/{project['id']}/incidents",
            json={"title": "ghost", "alertId": str(uuid4())},
            headers=ADMIN_HEADERS,
        )
        assert missing_alert.status_code == 404

        inverted = client.post(
            f"/v1/incidents/{incident['id']}/close",
            json={"startTime": "2026-10-18T11:00:00Z", "endTime": "2026-10-18T10:00:00Z"},
            headers=ADMIN_HEADERS,
        )
        assert inverted.status_code == 400
        assert inverted.json()["detail"] == "endTime must be after startTime"
        assert client.get(f"/v1/incidents/{incident['id']}", headers=ADMIN_HEADERS).json()["status"] == "open"

        window = {"startTime": "2026-10-18T10:00:00Z", "endTime": "2026-10-18T10:10:00Z"}
        assert client.post(f"/v1/incidents/{incident['id']}/close", json=window, headers=ADMIN_HEADERS).status_code == 200
        assert client.post(f"/v1/incidents/{incident['id']}/close", json=window, headers=ADMIN_HEADERS).status_code == 409
        update = client.patch(f"/v1/incidents/{incident['id']}", json={"status": "open"}, headers=ADMIN_HEADERS)
        assert update.status_code == 409

        cannot_close_by_update = client.post(
            f"/v1/projects/{project['id']}/incidents", json={"title": "other"}, headers=ADMIN_HEADERS
        ).json()
        via_patch = client.patch(
            f"/v1/incidents/{cannot_close_by_update['id']}", json={"status": "closed"}, headers=ADMIN_HEADERS
        )
        assert via_patch.status_code == 422

        assert client.get(f"/v1/alerts/{uuid4()}", headers=ADMIN_HEADERS).status_code == 404


def test_role_ranks_gate_project_creation() -> None:
    with TestClient(app) as client:
        responder = _headers_for_claims({"sub": "rita", "role": "responder", "projects": ["*"]})
        unknown_role = _headers_for_claims({"sub": "eve", "role": "root", "projects": ["*"]})
        body = {"name": "Shadow", "shortName": "SHD"}

        assert client.post("/v1/projects", json=body, headers=responder).status_code == 403
        assert client.post("/v1/projects", json=body, headers=unknown_role).status_code == 403
        assert client.get(f"/v1/projects/{uuid4()}", headers={"Authorization": "Bearer !!"}).status_code == 401

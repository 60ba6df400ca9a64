"""
Tests — Action item REST API.

Covers:
    - Client read path (grouped lanes, summary, location scoping)
    - Admin listing with filters and pagination envelope
    - Create / get / generic update / complete / recategorize / archive
    - Bulk endpoints and their response envelope
    - Error envelope and status codes per exception type, incl. 413 and 503
"""

import pytest
from sqlalchemy.exc import OperationalError

from taskhub.models import db
from taskhub.services import task_lifecycle


def _create(client, headers, **kw):
    payload = {"title": "Respond to patient review"}
    payload.update(kw)
    res = client.post("/api/v1/tasks/", json=payload, headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["task"]


# ═════════════════════════════════════════════════════════════════════════════
# READ
# ═════════════════════════════════════════════════════════════════════════════


class TestClientRead:
    def test_grouped_response(self, client, manager_headers, make_task, admin):
        make_task(category="ALLORO", title="Optimize GBP categories")
        done = make_task(title="Call back lead")
        make_task(title="Update hours")
        task_lifecycle.complete_task(done.id, admin)

        res = client.get("/api/v1/tasks/", headers=manager_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert set(body["tasks"]) == {"ALLORO", "USER"}
        assert len(body["tasks"]["ALLORO"]) == 1
        assert len(body["tasks"]["USER"]) == 2
        assert body["total"] == 3
        assert body["summary"] == {"total": 2, "complete": 1, "remaining": 1, "completion_pct": 50}

    def test_location_scoping(self, client, manager_headers, make_task, location):
        make_task(location_id=location.id, title="Downtown signage")
        make_task(title="Org wide")
        res = client.get(f"/api/v1/tasks/?locationId={location.id}", headers=manager_headers)
        body = res.get_json()
        assert body["total"] == 1
        assert body["tasks"]["USER"][0]["location_name"] == "Downtown"

    def test_admin_without_organization_gets_400(self, client, admin_headers):
        res = client.get("/api/v1/tasks/", headers=admin_headers)
        assert res.status_code == 400
        assert res.get_json()["success"] is False

    def test_get_single(self, client, viewer_headers, make_task):
        task = make_task(metadata={"urgency": "High"})
        res = client.get(f"/api/v1/tasks/{task.id}", headers=viewer_headers)
        assert res.status_code == 200
        data = res.get_json()["task"]
        assert data["id"] == task.id
        assert data["is_high_priority"] is True

    def test_other_organization_gets_404(self, client, outsider_headers, make_task):
        task = make_task()
        res = client.get(f"/api/v1/tasks/{task.id}", headers=outsider_headers)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"


class TestAdminList:
    def test_envelope_and_filters(self, client, admin_headers, make_task, admin):
        make_task(category="ALLORO", agent_type="CRO_OPTIMIZER")
        archived = make_task()
        task_lifecycle.archive_task(archived.id, admin)

        res = client.get("/api/v1/tasks/admin/all?status=archived", headers=admin_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["total"] == 1
        assert body["tasks"][0]["id"] == archived.id
        assert body["limit"] == 50
        assert body["offset"] == 0

    def test_pagination(self, client, admin_headers, make_task):
        for i in range(3):
            make_task(title=f"task {i}")
        body = client.get("/api/v1/tasks/admin/all?limit=2&offset=2", headers=admin_headers).get_json()
        assert body["total"] == 3
        assert len(body["tasks"]) == 1
        assert body["limit"] == 2

    def test_invalid_status_filter(self, client, admin_headers):
        res = client.get("/api/v1/tasks/admin/all?status=finished", headers=admin_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_manager_forbidden(self, client, manager_headers):
        res = client.get("/api/v1/tasks/admin/all", headers=manager_headers)
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_client_options(self, client, admin_headers, organization, other_organization):
        res = client.get("/api/v1/tasks/clients", headers=admin_headers)
        assert res.status_code == 200
        names = [c["name"] for c in res.get_json()["clients"]]
        assert names == ["Apex Orthodontics", "Bright Smiles Dental"]


# ═════════════════════════════════════════════════════════════════════════════
# SINGLE-ITEM MUTATIONS
# ═════════════════════════════════════════════════════════════════════════════


class TestCreate:
    def test_defaults(self, client, admin_headers, organization):
        task = _create(client, admin_headers, organization_id=organization.id)
        assert task["category"] == "USER"
        assert task["status"] == "pending"
        assert task["is_approved"] is False
        assert task["created_by_admin"] is True
        assert task["agent_type"] == "MANUAL"
        assert task["completed_at"] is None
        assert task["urgency"] == "Normal"

    def test_metadata_as_json_string(self, client, admin_headers, organization):
        task = _create(
            client, admin_headers, organization_id=organization.id,
            metadata='{"urgency": "Immediate", "source": "referral"}',
        )
        assert task["metadata"] == {"source": "referral", "urgency": "Immediate"}
        assert task["is_high_priority"] is True

    @pytest.mark.parametrize("payload, field", [
        ({"title": "x"}, "organization_id"),
        ({"title": "   "}, "title"),
        ({"title": "x", "status": "done"}, "status"),
        ({"title": "x", "category": "SYSTEM"}, "category"),
        ({"title": "x", "metadata": "{oops"}, "metadata"),
        ({"title": "x", "agent_type": "SPAM_BOT"}, "agent_type"),
    ])
    def test_validation(self, client, admin_headers, organization, payload, field):
        if field != "organization_id":
            payload = {**payload, "organization_id": organization.id}
        res = client.post("/api/v1/tasks/", json=payload, headers=admin_headers)
        assert res.status_code == 400
        body = res.get_json()
        assert body["success"] is False
        assert body["message"]

    def test_fractional_organization_id(self, client, admin_headers, organization):
        res = client.post("/api/v1/tasks/", json={"title": "x", "organization_id": organization.id + 0.9},
                          headers=admin_headers)
        assert res.status_code == 400
        assert res.get_json()["details"] == {"organization_id": "invalid"}

    def test_metadata_kept_verbatim(self, client, admin_headers, organization):
        task = _create(client, admin_headers, organization_id=organization.id,
                       metadata={"urgency": None, "source": "gbp"})
        assert task["metadata"] == {"urgency": None, "source": "gbp"}
        assert task["urgency"] == "Normal"

    def test_unknown_organization(self, client, admin_headers):
        res = client.post("/api/v1/tasks/", json={"title": "x", "organization_id": 404}, headers=admin_headers)
        assert res.status_code == 404

    def test_location_must_belong_to_organization(self, client, admin_headers, location, other_organization):
        res = client.post("/api/v1/tasks/", json={
            "title": "x", "organization_id": other_organization.id, "location_id": location.id,
        }, headers=admin_headers)
        assert res.status_code == 400

    def test_manager_cannot_create(self, client, manager_headers, organization):
        res = client.post("/api/v1/tasks/", json={"title": "x", "organization_id": organization.id},
                          headers=manager_headers)
        assert res.status_code == 403


class TestUpdate:
    def test_multi_field_update(self, client, admin_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}", json={
            "title": "Renamed", "status": "complete", "is_approved": True, "due_date": "2026-12-01",
        }, headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()["task"]
        assert data["title"] == "Renamed"
        assert data["status"] == "complete"
        assert data["completed_at"] is not None
        assert data["is_approved"] is True
        assert data["due_date"].startswith("2026-12-01")

    def test_invalid_value_applies_nothing(self, client, admin_headers, make_task):
        task = make_task(title="Original")
        res = client.patch(f"/api/v1/tasks/{task.id}", json={"title": "New", "status": "nope"},
                           headers=admin_headers)
        assert res.status_code == 400
        body = client.get(f"/api/v1/tasks/{task.id}", headers=admin_headers).get_json()
        assert body["task"]["title"] == "Original"

    def test_category_is_read_only(self, client, admin_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}", json={"category": "ALLORO"}, headers=admin_headers)
        assert res.status_code == 400

    def test_empty_update(self, client, admin_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}", json={}, headers=admin_headers)
        assert res.status_code == 400

    def test_unarchive_through_status(self, client, admin_headers, make_task, admin):
        task = make_task()
        task_lifecycle.archive_task(task.id, admin)
        res = client.patch(f"/api/v1/tasks/{task.id}", json={"status": "pending"}, headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["task"]["status"] == "pending"

    def test_archived_to_complete_conflicts(self, client, admin_headers, make_task, admin):
        task = make_task()
        task_lifecycle.archive_task(task.id, admin)
        res = client.patch(f"/api/v1/tasks/{task.id}", json={"status": "complete"}, headers=admin_headers)
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_STATE"

    def test_manager_status_only(self, client, manager_headers, make_task):
        task = make_task()
        ok = client.patch(f"/api/v1/tasks/{task.id}", json={"status": "in_progress"}, headers=manager_headers)
        assert ok.status_code == 200
        denied = client.patch(f"/api/v1/tasks/{task.id}", json={"title": "Mine now"}, headers=manager_headers)
        assert denied.status_code == 403

    def test_unknown_task(self, client, admin_headers):
        res = client.patch("/api/v1/tasks/9999", json={"status": "pending"}, headers=admin_headers)
        assert res.status_code == 404

    def test_non_object_body(self, client, admin_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}", json=["status"], headers=admin_headers)
        assert res.status_code == 400


class TestCompleteCategoryArchive:
    def test_complete(self, client, manager_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}/complete", headers=manager_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["task"]["status"] == "complete"
        assert body["message"]

    def test_complete_alloro_as_manager_forbidden(self, client, manager_headers, make_task):
        task = make_task(category="ALLORO")
        res = client.patch(f"/api/v1/tasks/{task.id}/complete", headers=manager_headers)
        assert res.status_code == 403

    def test_viewer_cannot_complete(self, client, viewer_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}/complete", headers=viewer_headers)
        assert res.status_code == 403

    def test_recategorize(self, client, admin_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}/category", json={"category": "ALLORO"},
                           headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["task"]["category"] == "ALLORO"

    def test_recategorize_requires_category(self, client, admin_headers, make_task):
        task = make_task()
        res = client.patch(f"/api/v1/tasks/{task.id}/category", json={}, headers=admin_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    def test_archive(self, client, admin_headers, make_task):
        task = make_task(is_approved=True, category="ALLORO")
        res = client.delete(f"/api/v1/tasks/{task.id}", headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json() == {"success": True, "message": "Action item archived"}
        data = client.get(f"/api/v1/tasks/{task.id}", headers=admin_headers).get_json()["task"]
        assert data["status"] == "archived"
        assert data["category"] == "ALLORO"
        assert data["is_approved"] is True

    def test_archive_as_manager_forbidden(self, client, manager_headers, make_task):
        task = make_task()
        assert client.delete(f"/api/v1/tasks/{task.id}", headers=manager_headers).status_code == 403


# ═════════════════════════════════════════════════════════════════════════════
# BULK
# ═════════════════════════════════════════════════════════════════════════════


class TestBulkEndpoints:
    def test_bulk_archive(self, client, admin_headers, make_task):
        ids = [make_task().id for _ in range(2)]
        res = client.post("/api/v1/tasks/bulk/delete", json={"taskIds": ids}, headers=admin_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert body["count"] == 2
        assert body["failures"] == []
        assert body["message"]

    def test_bulk_approve_partial(self, client, admin_headers, make_task):
        a = make_task()
        res = client.post("/api/v1/tasks/bulk/approve", json={"taskIds": [a.id, 777], "is_approved": True},
                          headers=admin_headers)
        body = res.get_json()
        assert res.status_code == 200
        assert body["count"] == 1
        assert body["failures"] == [{"id": 777, "reason": "NotFoundError"}]

    def test_bulk_status(self, client, admin_headers, make_task):
        ids = [make_task().id for _ in range(2)]
        res = client.post("/api/v1/tasks/bulk/status", json={"taskIds": ids, "status": "in_progress"},
                          headers=admin_headers)
        assert res.get_json()["count"] == 2

    @pytest.mark.parametrize("payload", [
        {},
        {"taskIds": []},
        {"taskIds": "1,2"},
        {"taskIds": [1, "2"]},
        {"taskIds": [True]},
    ])
    def test_malformed_ids(self, client, admin_headers, payload):
        res = client.post("/api/v1/tasks/bulk/delete", json=payload, headers=admin_headers)
        assert res.status_code == 400

    def test_bulk_status_invalid(self, client, admin_headers, make_task):
        a = make_task()
        res = client.post("/api/v1/tasks/bulk/status", json={"taskIds": [a.id], "status": "gone"},
                          headers=admin_headers)
        assert res.status_code == 400

    def test_bulk_approve_requires_admin(self, client, manager_headers, make_task):
        a = make_task()
        res = client.post("/api/v1/tasks/bulk/approve", json={"taskIds": [a.id], "is_approved": True},
                          headers=manager_headers)
        assert res.status_code == 403


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        res = client.get("/api/v1/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["success"] is False

    def test_method_not_allowed(self, client):
        res = client.put("/api/v1/tasks/health")
        assert res.status_code == 405
        assert res.get_json()["code"] == "ERR_METHOD_NOT_ALLOWED"

    def test_oversized_body(self, app, client, admin_headers, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_CONTENT_LENGTH", 64)
        res = client.post("/api/v1/tasks/bulk/delete", json={"taskIds": list(range(100))},
                          headers=admin_headers)
        assert res.status_code == 413
        assert res.is_json
        body = res.get_json()
        assert body["success"] is False
        assert body["code"] == "ERR_PAYLOAD_TOO_LARGE"
        assert body["message"]

    def test_store_outage_is_503(self, client, manager_headers, make_task, monkeypatch):
        task = make_task()
        sess = db.session()

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(sess, "commit", failing_commit)
        res = client.patch(f"/api/v1/tasks/{task.id}/complete", headers=manager_headers)
        monkeypatch.undo()

        assert res.status_code == 503
        body = res.get_json()
        assert body["success"] is False
        assert body["code"] == "ERR_STORE_UNAVAILABLE"
        assert body["message"]
        db.session.expire_all()
        assert client.get(f"/api/v1/tasks/{task.id}", headers=manager_headers).get_json()["task"]["status"] == "pending"

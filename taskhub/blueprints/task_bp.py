"""Action item REST API.

Endpoint groups:
  Client read             GET    /api/v1/tasks?locationId=
  Admin hub               GET    /api/v1/tasks/admin/all?<filters>
                          GET    /api/v1/tasks/clients
  Single item             POST   /api/v1/tasks
                          GET    /api/v1/tasks/<id>
                          PATCH  /api/v1/tasks/<id>
                          PATCH  /api/v1/tasks/<id>/complete
                          PATCH  /api/v1/tasks/<id>/category
                          DELETE /api/v1/tasks/<id>              (archive)
  Bulk                    POST   /api/v1/tasks/bulk/delete
                          POST   /api/v1/tasks/bulk/status
                          POST   /api/v1/tasks/bulk/approve
  Liveness                GET    /api/v1/tasks/health

The caller's Actor comes from ``g.actor`` (JWT middleware) and is handed
to the service layer explicitly. Services own all business rules and
commits; this module only translates HTTP to calls and errors to JSON.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from taskhub.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from taskhub.services import category_partition, task_lifecycle, task_query, task_service
from taskhub.services.bulk_operations import (
    OP_ARCHIVE,
    OP_SET_APPROVAL,
    OP_SET_STATUS,
    apply_bulk,
)
from taskhub.utils.errors import E, api_error, http_error
from taskhub.utils.helpers import parse_int_input

logger = logging.getLogger(__name__)

task_bp = Blueprint("tasks", __name__, url_prefix="/api/v1/tasks")


# ── Request helpers ───────────────────────────────────────────────────────────


def actor_required(fn):
    """Answer 401 when the request carries no valid access token."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if g.get("actor") is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        return fn(*args, **kwargs)

    return wrapper


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _task_ids(data: dict) -> list[int]:
    raw = data.get("taskIds", data.get("task_ids"))
    if not isinstance(raw, list) or not raw:
        raise ValidationError("taskIds must be a non-empty list", details={"taskIds": "required"})
    if any(isinstance(tid, bool) or not isinstance(tid, int) for tid in raw):
        raise ValidationError("taskIds must contain integer IDs only", details={"taskIds": "invalid"})
    return raw


def _bulk_response(result, verb: str):
    return jsonify({
        "success": True,
        "message": f"{verb} {result.count} action item(s)",
        **result.to_dict(),
    }), 200


# ── Error handlers ────────────────────────────────────────────────────────────


@task_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    code = E.VALIDATION_REQUIRED if "required" in error.details.values() else E.VALIDATION_INVALID
    return api_error(code, str(error), details=error.details)


@task_bp.errorhandler(AuthorizationError)
def _handle_forbidden(error: AuthorizationError):
    return api_error(E.FORBIDDEN, str(error))


@task_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@task_bp.errorhandler(InvalidTransitionError)
def _handle_transition(error: InvalidTransitionError):
    return api_error(E.CONFLICT_STATE, str(error))


@task_bp.errorhandler(StoreError)
def _handle_store(error: StoreError):
    logger.error("Store failure on %s %s: %s", request.method, request.path, error)
    return api_error(E.STORE, "The task store is temporarily unavailable, please retry")


@task_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return http_error(error)
    logger.exception("Unhandled error in tasks blueprint")
    return api_error(E.INTERNAL, "Internal server error")


# ── Read ──────────────────────────────────────────────────────────────────────


@task_bp.route("/", methods=["GET"])
@actor_required
def list_my_tasks():
    """Grouped tasks for the caller's organization, archived items hidden."""
    location_id = parse_int_input(
        request.args.get("locationId") or request.args.get("location_id") or None, "locationId",
    )
    result = task_query.list_client_tasks(g.actor, location_id=location_id)
    tasks = {
        category: [item.to_dict() for item in items]
        for category, items in result["tasks"].items()
    }
    return jsonify({
        "success": True,
        "tasks": tasks,
        "total": result["total"],
        "summary": result["summary"],
    }), 200


@task_bp.route("/admin/all", methods=["GET"])
@actor_required
def list_all_tasks():
    """Flat filtered list across organizations (admin hub)."""
    flt = task_query.TaskFilter.from_args(
        request.args,
        default_limit=current_app.config.get("TASKS_DEFAULT_PAGE_SIZE", task_query.DEFAULT_PAGE_SIZE),
        max_limit=current_app.config.get("TASKS_MAX_PAGE_SIZE", task_query.MAX_PAGE_SIZE),
    )
    page = task_query.list_admin_tasks(flt, g.actor)
    return jsonify({
        "success": True,
        "tasks": [item.to_dict() for item in page.items],
        "total": page.total,
        "limit": flt.limit,
        "offset": flt.offset,
    }), 200


@task_bp.route("/clients", methods=["GET"])
@actor_required
def list_clients():
    return jsonify({"success": True, "clients": task_service.list_client_options(g.actor)}), 200


@task_bp.route("/<int:task_id>", methods=["GET"])
@actor_required
def get_task(task_id):
    item = task_service.get_task(task_id, g.actor)
    return jsonify({"success": True, "task": item.to_dict()}), 200


# ── Single-item mutations ─────────────────────────────────────────────────────


@task_bp.route("/", methods=["POST"])
@actor_required
def create_task():
    item = task_service.create_task(_json_body(), g.actor)
    return jsonify({"success": True, "task": item.to_dict(), "message": "Action item created"}), 201


@task_bp.route("/<int:task_id>", methods=["PATCH"])
@actor_required
def update_task(task_id):
    item = task_service.update_task(task_id, _json_body(), g.actor)
    return jsonify({"success": True, "task": item.to_dict(), "message": "Action item updated"}), 200


@task_bp.route("/<int:task_id>/complete", methods=["PATCH"])
@actor_required
def complete_task(task_id):
    item = task_lifecycle.complete_task(task_id, g.actor)
    return jsonify({"success": True, "task": item.to_dict(), "message": "Action item completed"}), 200


@task_bp.route("/<int:task_id>/category", methods=["PATCH"])
@actor_required
def recategorize_task(task_id):
    data = _json_body()
    if data.get("category") in (None, ""):
        raise ValidationError("category is required", details={"category": "required"})
    item = category_partition.recategorize(task_id, data["category"], g.actor)
    return jsonify({
        "success": True,
        "task": item.to_dict(),
        "message": f"Action item moved to {item.category}",
    }), 200


@task_bp.route("/<int:task_id>", methods=["DELETE"])
@actor_required
def archive_task(task_id):
    task_lifecycle.archive_task(task_id, g.actor)
    return jsonify({"success": True, "message": "Action item archived"}), 200


# ── Bulk ──────────────────────────────────────────────────────────────────────


@task_bp.route("/bulk/delete", methods=["POST"])
@actor_required
def bulk_archive():
    data = _json_body()
    result = apply_bulk(OP_ARCHIVE, _task_ids(data), g.actor)
    return _bulk_response(result, "Archived")


@task_bp.route("/bulk/status", methods=["POST"])
@actor_required
def bulk_status():
    data = _json_body()
    result = apply_bulk(OP_SET_STATUS, _task_ids(data), g.actor, status=data.get("status"))
    return _bulk_response(result, "Updated status of")


@task_bp.route("/bulk/approve", methods=["POST"])
@actor_required
def bulk_approve():
    data = _json_body()
    approved = data.get("is_approved", data.get("isApproved"))
    result = apply_bulk(OP_SET_APPROVAL, _task_ids(data), g.actor, approved=approved)
    verb = "Approved" if approved else "Unapproved"
    return _bulk_response(result, verb)


# ── Liveness ──────────────────────────────────────────────────────────────────


@task_bp.route("/health", methods=["GET"])
def health():
    return jsonify({
        "success": True,
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }), 200

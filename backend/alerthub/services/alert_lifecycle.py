"""Alert state machine: operator-driven transitions and their audit trail.

Every mutation refreshes ``updated_at`` and writes exactly one activity row.
Backwards moves (e.g. ``resolved`` -> ``new``) are allowed; they are logged
as plain ``alert_updated`` status changes and clear ``resolved_at``.
"""

import logging
from typing import Any
from uuid import UUID

from alerthub.domain.models import AlertCreateRequest, AlertSource, AlertStatus, TakeStatus
from alerthub.services.errors import LifecycleError, NotFoundError
from alerthub.storage.db_models import AlertORM
from alerthub.storage.repositories import AlertHubRepository
from alerthub.utils.time_windows import now_utc

logger = logging.getLogger("alerthub.alerts")

_STATUS_ACTIONS = {
    AlertStatus.acknowledged: ("alert_acknowledged", "Acknowledged alert"),
    AlertStatus.in_progress: ("alert_taken", "Took alert to work"),
    AlertStatus.resolved: ("alert_resolved", "Resolved alert"),
}


def create_manual_alert(
    repo: AlertHubRepository,
    *,
    project_id: UUID,
    user_id: str | None,
    request: AlertCreateRequest,
) -> AlertORM:
    alert = repo.create_alert(
        project_id=project_id,
        title=request.title,
        description=request.description,
        severity=request.severity,
        category_id=request.category_id,
        source=AlertSource.manual,
        status=AlertStatus.new,
        created_by_id=user_id,
    )
    repo.create_activity(
        project_id=project_id,
        user_id=user_id,
        alert_id=alert.id,
        action="alert_created",
        details=f"Created alert: {alert.title}",
        meta={"source": AlertSource.manual.value, "severity": alert.severity.value},
    )
    return alert


def _with_status(alert: AlertORM, status: AlertStatus, changes: dict[str, Any]) -> dict[str, Any]:
    """Add the ``resolved_at`` bookkeeping that goes with a status move."""

    if status == alert.status:
        return changes
    changes = {**changes, "status": status}
    if status == AlertStatus.resolved:
        changes["resolved_at"] = now_utc()
    elif alert.status == AlertStatus.resolved:
        changes["resolved_at"] = None
    return changes


def _describe(alert: AlertORM, previous_status: AlertStatus, previous_assignee: str | None) -> tuple[str, str, dict]:
    meta: dict[str, Any] = {}
    status_changed = alert.status != previous_status
    assignee_changed = alert.assignee_id != previous_assignee
    if status_changed:
        meta.update({"from_status": previous_status.value, "to_status": alert.status.value})
    if assignee_changed:
        meta.update({"previous_assignee_id": previous_assignee, "assignee_id": alert.assignee_id})

    if status_changed and alert.status in _STATUS_ACTIONS:
        action, verb = _STATUS_ACTIONS[alert.status]
        return action, f"{verb}: {alert.title}", meta
    if status_changed:
        return (
            "alert_updated",
            f"Status changed from {previous_status.value} to {alert.status.value}: {alert.title}",
            meta,
        )
    if assignee_changed:
        if alert.assignee_id is None:
            return "alert_assigned", f"Unassigned alert: {alert.title}", meta
        return "alert_assigned", f"Assigned alert: {alert.title}", meta
    return "alert_updated", f"Updated alert: {alert.title}", meta


def _apply(repo: AlertHubRepository, alert: AlertORM, changes: dict[str, Any], *, user_id: str | None) -> AlertORM:
    previous_status = alert.status
    previous_assignee = alert.assignee_id
    if "status" in changes and changes["status"] is not None:
        changes = _with_status(alert, AlertStatus(changes.pop("status")), changes)
    repo.update_alert(alert, changes)

    action, details, meta = _describe(alert, previous_status, previous_assignee)
    repo.create_activity(
        project_id=alert.project_id,
        user_id=user_id,
        alert_id=alert.id,
        action=action,
        details=details,
        meta=meta or None,
    )
    logger.debug("alert=%s action=%s", alert.id, action)
    return alert


def update_alert(
    repo: AlertHubRepository,
    alert: AlertORM,
    changes: dict[str, Any],
    *,
    user_id: str | None,
) -> AlertORM:
    """Apply a partial update coming from PUT/PATCH."""

    changes = dict(changes)
    if changes.get("incident_id") is not None:
        incident = repo.get_incident(changes["incident_id"])
        if incident is None:
            raise NotFoundError("incident not found")
        if incident.project_id != alert.project_id:
            raise LifecycleError("incident belongs to a different project")
    for required in ("title", "severity", "status"):
        if required in changes and changes[required] is None:
            raise LifecycleError(f"{required} cannot be null")
    return _apply(repo, alert, changes, user_id=user_id)


def take_alert(
    repo: AlertHubRepository,
    alert: AlertORM,
    *,
    user_id: str | None,
    status: TakeStatus = TakeStatus.in_progress,
) -> AlertORM:
    """Take an alert to work, claiming it for the caller when nobody owns it.

    Always logged as the take action for the requested status, even when the
    alert already sits in it.
    """

    target = AlertStatus(status.value)
    previous_status = alert.status
    previous_assignee = alert.assignee_id
    changes: dict[str, Any] = {}
    if alert.assignee_id is None and user_id is not None:
        changes["assignee_id"] = user_id
    repo.update_alert(alert, _with_status(alert, target, changes))

    meta: dict[str, Any] = {"from_status": previous_status.value, "to_status": target.value}
    if alert.assignee_id != previous_assignee:
        meta.update({"previous_assignee_id": previous_assignee, "assignee_id": alert.assignee_id})
    action, verb = _STATUS_ACTIONS[target]
    repo.create_activity(
        project_id=alert.project_id,
        user_id=user_id,
        alert_id=alert.id,
        action=action,
        details=f"{verb}: {alert.title}",
        meta=meta,
    )
    return alert


def inspect_alert(repo: AlertHubRepository, alert: AlertORM, *, user_id: str | None) -> AlertORM:
    """Record that an operator inspected the alert; status is untouched."""

    repo.create_activity(
        project_id=alert.project_id,
        user_id=user_id,
        alert_id=alert.id,
        action="alert_inspected",
        details=f"Inspected alert: {alert.title}",
        meta={"status": alert.status.value},
    )
    return alert


def resolve_alert(
    repo: AlertHubRepository,
    alert: AlertORM,
    *,
    user_id: str | None,
    source: AlertSource | None = None,
) -> bool:
    """Move an alert to ``resolved``. Returns False when it already was."""

    if alert.status == AlertStatus.resolved:
        return False
    previous_status = alert.status
    repo.update_alert(alert, _with_status(alert, AlertStatus.resolved, {}))
    if source is not None and source != AlertSource.manual:
        details = f"Resolved by {source.value} webhook: {alert.title}"
    else:
        details = f"Resolved alert: {alert.title}"
    meta: dict[str, Any] = {"from_status": previous_status.value, "to_status": AlertStatus.resolved.value}
    if source is not None:
        meta["source"] = source.value
    repo.create_activity(
        project_id=alert.project_id,
        user_id=user_id,
        alert_id=alert.id,
        action="alert_resolved",
        details=details,
        meta=meta,
    )
    return True

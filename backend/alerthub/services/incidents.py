"""Incident promotion, status updates and closure."""

import logging
import math
from datetime import datetime
from typing import Any
from uuid import UUID

from alerthub.domain.models import AlertStatus, IncidentCloseRequest, IncidentCreateRequest, IncidentStatus
from alerthub.services.errors import (
    AlertAlreadyPromotedError,
    IncidentAlreadyClosedError,
    LifecycleError,
    NotFoundError,
)
from alerthub.storage.db_models import IncidentORM
from alerthub.storage.repositories import AlertHubRepository
from alerthub.utils.time_windows import as_utc, now_utc

logger = logging.getLogger("alerthub.incidents")

_TERMINAL = {IncidentStatus.resolved, IncidentStatus.closed}


def downtime_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between start and end, halves rounded up."""

    minutes = (as_utc(end) - as_utc(start)).total_seconds() / 60
    return math.floor(minutes + 0.5)


def register_incident(
    repo: AlertHubRepository,
    *,
    project_id: UUID,
    user_id: str | None,
    request: IncidentCreateRequest,
) -> IncidentORM:
    """Create an incident, optionally escalated from an alert.

    The source alert is linked and resolved in the same unit of work as the
    incident insert; callers commit once.
    """

    alert = None
    if request.alert_id is not None:
        alert = repo.get_alert(request.alert_id)
        if alert is None:
            raise NotFoundError("alert not found")
        if alert.project_id != project_id:
            raise LifecycleError("alert belongs to a different project")
        if alert.incident_id is not None:
            raise AlertAlreadyPromotedError("alert is already linked to an incident")

    incident = repo.create_incident(
        project_id=project_id,
        title=request.title,
        description=request.description,
        severity=request.severity,
        priority=request.priority,
        impact=request.impact,
        category_id=request.category_id,
        assignee_id=request.assignee_id,
        created_by_id=user_id,
        status=IncidentStatus.open,
        started_at=as_utc(request.started_at) if request.started_at else now_utc(),
    )
    repo.create_activity(
        project_id=project_id,
        user_id=user_id,
        incident_id=incident.id,
        action="incident_created",
        details=f"Created incident: {incident.title}",
        meta={"alert_id": str(alert.id)} if alert else None,
    )

    if alert is not None:
        previous_status = alert.status
        changes: dict[str, Any] = {"incident_id": incident.id, "status": AlertStatus.resolved}
        if previous_status != AlertStatus.resolved:
            changes["resolved_at"] = now_utc()
        repo.update_alert(alert, changes)
        # the incident id travels in meta so the row stays on the alert history only
        repo.create_activity(
            project_id=project_id,
            user_id=user_id,
            alert_id=alert.id,
            action="incident_registered",
            details=f"Registered incident from alert: {incident.title}",
            meta={"incident_id": str(incident.id), "from_status": previous_status.value},
        )

    logger.info("registered incident=%s project=%s alert=%s", incident.id, project_id, alert.id if alert else None)
    return incident


def update_incident(
    repo: AlertHubRepository,
    incident: IncidentORM,
    changes: dict[str, Any],
    *,
    user_id: str | None,
) -> IncidentORM:
    """Apply a general update; status may move in any order short of ``closed``."""

    if incident.status == IncidentStatus.closed:
        raise IncidentAlreadyClosedError("closed incidents cannot be updated")
    for required in ("title", "severity", "priority", "status"):
        if required in changes and changes[required] is None:
            raise LifecycleError(f"{required} cannot be null")

    changes = dict(changes)
    previous_status = incident.status
    previous_assignee = incident.assignee_id
    new_status = changes.get("status")
    if new_status is not None:
        new_status = IncidentStatus(new_status)
        changes["status"] = new_status
        if new_status in _TERMINAL and previous_status not in _TERMINAL:
            changes["resolved_at"] = now_utc()
        elif new_status not in _TERMINAL and previous_status in _TERMINAL:
            changes["resolved_at"] = None
    repo.update_incident(incident, changes)

    meta: dict[str, Any] = {}
    if incident.status != previous_status:
        meta.update({"from_status": previous_status.value, "to_status": incident.status.value})
        action = "incident_resolved" if incident.status == IncidentStatus.resolved else "incident_status_changed"
        details = f"Status changed from {previous_status.value} to {incident.status.value}: {incident.title}"
    elif incident.assignee_id != previous_assignee:
        meta.update({"previous_assignee_id": previous_assignee, "assignee_id": incident.assignee_id})
        action = "incident_assigned"
        details = (
            f"Assigned incident: {incident.title}" if incident.assignee_id else f"Unassigned incident: {incident.title}"
        )
    else:
        action = "incident_updated"
        details = f"Updated incident: {incident.title}"

    repo.create_activity(
        project_id=incident.project_id,
        user_id=user_id,
        incident_id=incident.id,
        action=action,
        details=details,
        meta=meta or None,
    )
    return incident


def close_incident(
    repo: AlertHubRepository,
    incident: IncidentORM,
    request: IncidentCloseRequest,
    *,
    user_id: str | None,
) -> IncidentORM:
    """Finalize an incident with its downtime window and consequence report."""

    if incident.status == IncidentStatus.closed:
        raise IncidentAlreadyClosedError("incident is already closed")
    start = as_utc(request.start_time)
    end = as_utc(request.end_time)
    if end <= start:
        raise LifecycleError("endTime must be after startTime")

    minutes = downtime_minutes(start, end)
    closed_at = now_utc()
    previous_status = incident.status
    repo.update_incident(
        incident,
        {
            "status": IncidentStatus.closed,
            "closed_at": closed_at,
            "resolved_at": closed_at,
            "incident_start_time": start,
            "incident_end_time": end,
            "consequences": request.consequences,
            "downtime_minutes": minutes,
        },
    )
    repo.create_activity(
        project_id=incident.project_id,
        user_id=user_id,
        incident_id=incident.id,
        action="incident_closed",
        details=f"Closed incident: {incident.title} (downtime {minutes} min)",
        meta={"from_status": previous_status.value, "downtime_minutes": minutes},
    )
    logger.info("closed incident=%s downtime_minutes=%d", incident.id, minutes)
    return incident

"""FastAPI routes."""

import secrets
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from alerthub.config import get_settings
from alerthub.domain.models import (
    ActivityOut,
    AlertCreateRequest,
    AlertOut,
    AlertTakeRequest,
    AlertUpdateRequest,
    AuthPrincipal,
    CommentCreateRequest,
    CommentOut,
    IncidentCloseRequest,
    IncidentCreateRequest,
    IncidentOut,
    IncidentUpdateRequest,
    ProjectCreateRequest,
    ProjectOut,
    StatusReport,
)
from alerthub.services import alert_lifecycle, incidents
from alerthub.services.comments import add_alert_comment, add_incident_comment
from alerthub.services.security import authorize_project, require_admin, require_auth, require_responder
from alerthub.services.status import build_status_report
from alerthub.storage.database import get_db
from alerthub.storage.db_models import AlertORM, IncidentORM, ProjectORM
from alerthub.storage.repositories import AlertHubRepository

router = APIRouter(prefix="/v1")


def _project(repo: AlertHubRepository, project_id: UUID, principal: AuthPrincipal) -> ProjectORM:
    project = repo.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="project not found")
    authorize_project(principal, project.id)
    return project


def _alert(repo: AlertHubRepository, alert_id: UUID, principal: AuthPrincipal) -> AlertORM:
    alert = repo.get_alert(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="alert not found")
    authorize_project(principal, alert.project_id)
    return alert


def _incident(repo: AlertHubRepository, incident_id: UUID, principal: AuthPrincipal) -> IncidentORM:
    incident = repo.get_incident(incident_id)
    if not incident:
        raise HTTPException(status_code=404, detail="incident not found")
    authorize_project(principal, incident.project_id)
    return incident


@router.post("/projects", response_model=ProjectOut, status_code=201)
def create_project(
    payload: ProjectCreateRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_admin(principal)
    repo = AlertHubRepository(db)
    project = repo.create_project(
        name=payload.name,
        short_name=payload.short_name.upper(),
        webhook_key=secrets.token_hex(get_settings().webhook_key_bytes),
        created_by_id=principal.subject,
    )
    db.commit()
    return project


@router.get("/projects/{project_id}", response_model=ProjectOut)
def get_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    return _project(AlertHubRepository(db), project_id, principal)


@router.get("/projects/{project_id}/alerts", response_model=list[AlertOut])
def list_alerts(
    project_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    project = _project(repo, project_id, principal)
    return repo.list_alerts(project.id)


@router.post("/projects/{project_id}/alerts", response_model=AlertOut, status_code=201)
def create_alert(
    project_id: UUID,
    payload: AlertCreateRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    project = _project(repo, project_id, principal)
    alert = alert_lifecycle.create_manual_alert(repo, project_id=project.id, user_id=principal.subject, request=payload)
    db.commit()
    return alert


@router.get("/alerts/{alert_id}", response_model=AlertOut)
def get_alert(
    alert_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    return _alert(AlertHubRepository(db), alert_id, principal)


@router.api_route("/alerts/{alert_id}", methods=["PUT", "PATCH"], response_model=AlertOut)
def update_alert(
    alert_id: UUID,
    payload: AlertUpdateRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    alert = _alert(repo, alert_id, principal)
    alert_lifecycle.update_alert(repo, alert, payload.model_dump(exclude_unset=True), user_id=principal.subject)
    db.commit()
    return alert


@router.post("/alerts/{alert_id}/take", response_model=AlertOut)
def take_alert(
    alert_id: UUID,
    payload: AlertTakeRequest | None = None,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    alert = _alert(repo, alert_id, principal)
    request = payload or AlertTakeRequest()
    alert_lifecycle.take_alert(repo, alert, user_id=principal.subject, status=request.status)
    db.commit()
    return alert


@router.post("/alerts/{alert_id}/inspect", response_model=AlertOut)
def inspect_alert(
    alert_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    alert = _alert(repo, alert_id, principal)
    alert_lifecycle.inspect_alert(repo, alert, user_id=principal.subject)
    db.commit()
    return alert


@router.post("/alerts/{alert_id}/resolve", response_model=AlertOut)
def resolve_alert(
    alert_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    alert = _alert(repo, alert_id, principal)
    alert_lifecycle.resolve_alert(repo, alert, user_id=principal.subject)
    db.commit()
    return alert


@router.get("/alerts/{alert_id}/history", response_model=list[ActivityOut])
def alert_history(
    alert_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    alert = _alert(repo, alert_id, principal)
    return repo.list_alert_activities(alert.id)


@router.get("/alerts/{alert_id}/comments", response_model=list[CommentOut])
def list_alert_comments(
    alert_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    alert = _alert(repo, alert_id, principal)
    return repo.list_alert_comments(alert.id)


@router.post("/alerts/{alert_id}/comments", response_model=CommentOut, status_code=201)
def create_alert_comment(
    alert_id: UUID,
    payload: CommentCreateRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    alert = _alert(repo, alert_id, principal)
    comment = add_alert_comment(repo, alert, user_id=principal.subject, content=payload.content)
    db.commit()
    return comment


@router.get("/projects/{project_id}/incidents", response_model=list[IncidentOut])
def list_incidents(
    project_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    project = _project(repo, project_id, principal)
    return repo.list_incidents(project.id)


@router.post("/projects/{project_id}/incidents", response_model=IncidentOut, status_code=201)
def register_incident(
    project_id: UUID,
    payload: IncidentCreateRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    project = _project(repo, project_id, principal)
    incident = incidents.register_incident(repo, project_id=project.id, user_id=principal.subject, request=payload)
    db.commit()
    return incident


@router.get("/incidents/{incident_id}", response_model=IncidentOut)
def get_incident(
    incident_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    return _incident(AlertHubRepository(db), incident_id, principal)


@router.api_route("/incidents/{incident_id}", methods=["PUT", "PATCH"], response_model=IncidentOut)
def update_incident(
    incident_id: UUID,
    payload: IncidentUpdateRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    incident = _incident(repo, incident_id, principal)
    incidents.update_incident(repo, incident, payload.model_dump(exclude_unset=True), user_id=principal.subject)
    db.commit()
    return incident


@router.post("/incidents/{incident_id}/close", response_model=IncidentOut)
def close_incident(
    incident_id: UUID,
    payload: IncidentCloseRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    incident = _incident(repo, incident_id, principal)
    incidents.close_incident(repo, incident, payload, user_id=principal.subject)
    db.commit()
    return incident


@router.get("/incidents/{incident_id}/history", response_model=list[ActivityOut])
def incident_history(
    incident_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    incident = _incident(repo, incident_id, principal)
    return repo.list_incident_activities(incident.id)


@router.get("/incidents/{incident_id}/comments", response_model=list[CommentOut])
def list_incident_comments(
    incident_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    incident = _incident(repo, incident_id, principal)
    return repo.list_incident_comments(incident.id)


@router.post("/incidents/{incident_id}/comments", response_model=CommentOut, status_code=201)
def create_incident_comment(
    incident_id: UUID,
    payload: CommentCreateRequest,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    require_responder(principal)
    repo = AlertHubRepository(db)
    incident = _incident(repo, incident_id, principal)
    comment = add_incident_comment(repo, incident, user_id=principal.subject, content=payload.content)
    db.commit()
    return comment


@router.get("/projects/{project_id}/activities", response_model=list[ActivityOut])
def list_activities(
    project_id: UUID,
    limit: int | None = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    project = _project(repo, project_id, principal)
    return repo.list_activities(project.id, limit or get_settings().activity_default_limit)


@router.get("/projects/{project_id}/status", response_model=StatusReport)
def project_status(
    project_id: UUID,
    db: Session = Depends(get_db),
    principal: Annotated[AuthPrincipal, Depends(require_auth)] = None,
):
    repo = AlertHubRepository(db)
    project = _project(repo, project_id, principal)
    return build_status_report(repo, project.id)

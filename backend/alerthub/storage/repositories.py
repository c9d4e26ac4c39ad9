"""Repository utilities."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import desc, or_, select
from sqlalchemy.orm import Session

from alerthub.storage.db_models import ActivityORM, AlertORM, CommentORM, IncidentORM, ProjectORM
from alerthub.utils.time_windows import now_utc


class AlertHubRepository:
    """DB operations for projects, alerts, incidents and their audit trail."""

    def __init__(self, db: Session):
        self.db = db

    def create_project(self, *, name: str, short_name: str, webhook_key: str, created_by_id: str | None) -> ProjectORM:
        row = ProjectORM(name=name, short_name=short_name, webhook_key=webhook_key, created_by_id=created_by_id)
        self.db.add(row)
        self.db.flush()
        return row

    def get_project(self, project_id: UUID) -> ProjectORM | None:
        return self.db.get(ProjectORM, project_id)

    def get_project_by_webhook_key(self, webhook_key: str) -> ProjectORM | None:
        stmt = select(ProjectORM).where(ProjectORM.webhook_key == webhook_key)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_alert(self, alert_id: UUID) -> AlertORM | None:
        return self.db.get(AlertORM, alert_id)

    def get_alert_by_fingerprint(self, project_id: UUID, fingerprint: str) -> AlertORM | None:
        stmt = (
            select(AlertORM)
            .where(AlertORM.project_id == project_id)
            .where(AlertORM.fingerprint == fingerprint)
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_alerts(self, project_id: UUID) -> list[AlertORM]:
        stmt = select(AlertORM).where(AlertORM.project_id == project_id).order_by(desc(AlertORM.created_at))
        return list(self.db.execute(stmt).scalars())

    def create_alert(self, **fields: Any) -> AlertORM:
        row = AlertORM(**fields)
        self.db.add(row)
        self.db.flush()
        return row

    def update_alert(self, alert: AlertORM, changes: dict[str, Any]) -> AlertORM:
        for key, value in changes.items():
            setattr(alert, key, value)
        alert.updated_at = now_utc()
        self.db.flush()
        return alert

    def get_incident(self, incident_id: UUID) -> IncidentORM | None:
        return self.db.get(IncidentORM, incident_id)

    def list_incidents(self, project_id: UUID) -> list[IncidentORM]:
        stmt = (
            select(IncidentORM)
            .where(IncidentORM.project_id == project_id)
            .order_by(desc(IncidentORM.created_at))
        )
        return list(self.db.execute(stmt).scalars())

    def create_incident(self, **fields: Any) -> IncidentORM:
        row = IncidentORM(**fields)
        self.db.add(row)
        self.db.flush()
        return row

    def update_incident(self, incident: IncidentORM, changes: dict[str, Any]) -> IncidentORM:
        for key, value in changes.items():
            setattr(incident, key, value)
        incident.updated_at = now_utc()
        self.db.flush()
        return incident

    def get_incidents_in_date_range(self, project_id: UUID, start: datetime, end: datetime) -> list[IncidentORM]:
        """Incidents that were ongoing at any point inside [start, end)."""

        stmt = (
            select(IncidentORM)
            .where(IncidentORM.project_id == project_id)
            .where(IncidentORM.started_at < end)
            .where(or_(IncidentORM.resolved_at.is_(None), IncidentORM.resolved_at >= start))
            .order_by(IncidentORM.started_at)
        )
        return list(self.db.execute(stmt).scalars())

    def create_activity(
        self,
        *,
        project_id: UUID,
        action: str,
        user_id: str | None = None,
        alert_id: UUID | None = None,
        incident_id: UUID | None = None,
        details: str | None = None,
        meta: dict | None = None,
    ) -> ActivityORM:
        row = ActivityORM(
            project_id=project_id,
            user_id=user_id,
            alert_id=alert_id,
            incident_id=incident_id,
            action=action,
            details=details,
            meta=meta,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def list_activities(self, project_id: UUID, limit: int = 50) -> list[ActivityORM]:
        stmt = (
            select(ActivityORM)
            .where(ActivityORM.project_id == project_id)
            .order_by(desc(ActivityORM.created_at))
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    def list_alert_activities(self, alert_id: UUID) -> list[ActivityORM]:
        stmt = select(ActivityORM).where(ActivityORM.alert_id == alert_id).order_by(desc(ActivityORM.created_at))
        return list(self.db.execute(stmt).scalars())

    def list_incident_activities(self, incident_id: UUID) -> list[ActivityORM]:
        stmt = (
            select(ActivityORM)
            .where(ActivityORM.incident_id == incident_id)
            .order_by(desc(ActivityORM.created_at))
        )
        return list(self.db.execute(stmt).scalars())

    def create_comment(
        self,
        *,
        project_id: UUID,
        user_id: str,
        content: str,
        alert_id: UUID | None = None,
        incident_id: UUID | None = None,
    ) -> CommentORM:
        row = CommentORM(
            project_id=project_id,
            user_id=user_id,
            content=content,
            alert_id=alert_id,
            incident_id=incident_id,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def list_alert_comments(self, alert_id: UUID) -> list[CommentORM]:
        stmt = select(CommentORM).where(CommentORM.alert_id == alert_id).order_by(CommentORM.created_at)
        return list(self.db.execute(stmt).scalars())

    def list_incident_comments(self, incident_id: UUID) -> list[CommentORM]:
        stmt = select(CommentORM).where(CommentORM.incident_id == incident_id).order_by(CommentORM.created_at)
        return list(self.db.execute(stmt).scalars())

"""Comment threads on alerts and incidents."""

from alerthub.storage.db_models import AlertORM, CommentORM, IncidentORM
from alerthub.storage.repositories import AlertHubRepository


def _preview(content: str, limit: int = 80) -> str:
    return content if len(content) <= limit else content[: limit - 1] + "…"


def add_alert_comment(repo: AlertHubRepository, alert: AlertORM, *, user_id: str, content: str) -> CommentORM:
    comment = repo.create_comment(project_id=alert.project_id, user_id=user_id, content=content, alert_id=alert.id)
    repo.create_activity(
        project_id=alert.project_id,
        user_id=user_id,
        alert_id=alert.id,
        action="comment_added",
        details=f"Commented on alert {alert.title}: {_preview(content)}",
        meta={"comment_id": str(comment.id)},
    )
    return comment


def add_incident_comment(repo: AlertHubRepository, incident: IncidentORM, *, user_id: str, content: str) -> CommentORM:
    comment = repo.create_comment(
        project_id=incident.project_id,
        user_id=user_id,
        content=content,
        incident_id=incident.id,
    )
    repo.create_activity(
        project_id=incident.project_id,
        user_id=user_id,
        incident_id=incident.id,
        action="comment_added",
        details=f"Commented on incident {incident.title}: {_preview(content)}",
        meta={"comment_id": str(comment.id)},
    )
    return comment

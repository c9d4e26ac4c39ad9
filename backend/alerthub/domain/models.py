"""Domain schemas and enums."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"


class Priority(str, Enum):
    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"


class Impact(str, Enum):
    none = "none"
    minor = "minor"
    major = "major"
    critical = "critical"


class AlertSource(str, Enum):
    manual = "manual"
    alertmanager = "alertmanager"
    grafana = "grafana"
    zabbix = "zabbix"


class AlertStatus(str, Enum):
    """Alert lifecycle status."""

    new = "new"
    acknowledged = "acknowledged"
    in_progress = "in_progress"
    resolved = "resolved"


class IncidentStatus(str, Enum):
    """Incident lifecycle status."""

    open = "open"
    investigating = "investigating"
    identified = "identified"
    monitoring = "monitoring"
    resolved = "resolved"
    closed = "closed"


class IncidentStatusUpdate(str, Enum):
    """Statuses reachable through a general incident update; ``closed`` needs the closure report."""

    open = "open"
    investigating = "investigating"
    identified = "identified"
    monitoring = "monitoring"
    resolved = "resolved"


class TakeStatus(str, Enum):
    acknowledged = "acknowledged"
    in_progress = "in_progress"


class SystemStatus(str, Enum):
    operational = "operational"
    degraded = "degraded"
    outage = "outage"


class UserRole(str, Enum):
    viewer = "viewer"
    responder = "responder"
    admin = "admin"


class NormalizedAlert(BaseModel):
    """Canonical alert extracted from one webhook entry."""

    source: AlertSource
    title: str = Field(max_length=1024)
    description: str | None = None
    severity: Severity = Severity.medium
    fingerprint: str = Field(min_length=1, max_length=255)
    external_id: str | None = None
    raw_payload: dict[str, Any] = Field(default_factory=dict)
    resolved: bool = False


class ApiModel(BaseModel):
    """Base for API bodies: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProjectCreateRequest(ApiModel):
    name: str = Field(min_length=1)
    short_name: str = Field(min_length=1, max_length=16)


class ProjectOut(ApiModel):
    id: UUID
    name: str
    short_name: str
    webhook_key: str
    created_at: datetime


class AlertCreateRequest(ApiModel):
    title: str = Field(min_length=1)
    description: str | None = None
    severity: Severity = Severity.medium
    category_id: str | None = None


class AlertUpdateRequest(ApiModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    severity: Severity | None = None
    status: AlertStatus | None = None
    assignee_id: str | None = None
    incident_id: UUID | None = None
    category_id: str | None = None


class AlertTakeRequest(ApiModel):
    status: TakeStatus = TakeStatus.in_progress


class AlertOut(ApiModel):
    id: UUID
    project_id: UUID
    title: str
    description: str | None = None
    source: AlertSource
    external_id: str | None = None
    fingerprint: str | None = None
    severity: Severity
    status: AlertStatus
    category_id: str | None = None
    assignee_id: str | None = None
    incident_id: UUID | None = None
    created_by_id: str | None = None
    raw_payload: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None


class IncidentCreateRequest(ApiModel):
    title: str = Field(min_length=1)
    description: str | None = None
    severity: Severity = Severity.medium
    priority: Priority = Priority.medium
    impact: Impact | None = None
    category_id: str | None = None
    assignee_id: str | None = None
    started_at: datetime | None = None
    alert_id: UUID | None = None


class IncidentUpdateRequest(ApiModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: IncidentStatusUpdate | None = None
    severity: Severity | None = None
    priority: Priority | None = None
    impact: Impact | None = None
    assignee_id: str | None = None


class IncidentCloseRequest(ApiModel):
    start_time: datetime
    end_time: datetime
    consequences: str = ""


class IncidentOut(ApiModel):
    id: UUID
    project_id: UUID
    title: str
    description: str | None = None
    severity: Severity
    priority: Priority
    status: IncidentStatus
    impact: Impact | None = None
    category_id: str | None = None
    assignee_id: str | None = None
    created_by_id: str | None = None
    started_at: datetime
    resolved_at: datetime | None = None
    closed_at: datetime | None = None
    incident_start_time: datetime | None = None
    incident_end_time: datetime | None = None
    consequences: str | None = None
    downtime_minutes: int | None = None
    created_at: datetime
    updated_at: datetime


class ActivityOut(ApiModel):
    id: UUID
    project_id: UUID
    user_id: str | None = None
    alert_id: UUID | None = None
    incident_id: UUID | None = None
    action: str
    details: str | None = None
    meta: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")
    created_at: datetime


class CommentCreateRequest(ApiModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("comment content must not be blank")
        return stripped


class CommentOut(ApiModel):
    id: UUID
    project_id: UUID
    alert_id: UUID | None = None
    incident_id: UUID | None = None
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime


class WebhookIngestResponse(ApiModel):
    success: bool = True
    processed: int


class StatusTimelineDay(ApiModel):
    date: str
    status: SystemStatus
    incidents: int


class StatusReport(ApiModel):
    current_status: SystemStatus
    active_incidents: int
    availability_percent: float
    window_days: int
    timeline: list[StatusTimelineDay]


class AuthPrincipal(BaseModel):
    subject: str
    role: UserRole
    projects: list[str] = Field(default_factory=list)

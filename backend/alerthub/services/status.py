"""Project status page: current state, daily timeline and availability."""

from collections.abc import Iterable
from datetime import datetime, timedelta
from uuid import UUID

from alerthub.config import get_settings
from alerthub.domain.models import Impact, IncidentStatus, Severity, StatusReport, StatusTimelineDay, SystemStatus
from alerthub.storage.db_models import IncidentORM
from alerthub.storage.repositories import AlertHubRepository
from alerthub.utils.time_windows import as_utc, day_bounds, now_utc, overlaps, trailing

MINUTES_PER_DAY = 24 * 60


def availability_percent(downtimes: Iterable[int], window_minutes: int) -> float:
    """Share of the window not covered by recorded downtime, clamped to [0, 100]."""

    if window_minutes <= 0:
        return 100.0
    value = (window_minutes - sum(downtimes)) / window_minutes * 100
    return max(0.0, min(100.0, value))


def status_for(incidents: Iterable[IncidentORM]) -> SystemStatus:
    incidents = list(incidents)
    if any(i.impact == Impact.critical or i.severity == Severity.critical for i in incidents):
        return SystemStatus.outage
    if any(i.impact == Impact.major or i.severity == Severity.high for i in incidents):
        return SystemStatus.degraded
    return SystemStatus.operational


def build_status_report(
    repo: AlertHubRepository,
    project_id: UUID,
    *,
    now: datetime | None = None,
    window_days: int | None = None,
) -> StatusReport:
    days = window_days or get_settings().status_window_days
    now = as_utc(now) if now else now_utc()
    window_start, window_end = trailing(now, days)
    incidents = repo.get_incidents_in_date_range(project_id, window_start, window_end)

    active = [i for i in incidents if i.status not in {IncidentStatus.resolved, IncidentStatus.closed}]

    timeline: list[StatusTimelineDay] = []
    for offset in range(days - 1, -1, -1):
        day = (now - timedelta(days=offset)).date()
        day_start, day_end = day_bounds(day)
        that_day = [i for i in incidents if overlaps(i.started_at, i.resolved_at, day_start, day_end)]
        timeline.append(StatusTimelineDay(date=day.isoformat(), status=status_for(that_day), incidents=len(that_day)))

    downtimes = [
        i.downtime_minutes
        for i in incidents
        if i.status == IncidentStatus.closed and i.downtime_minutes is not None
    ]
    return StatusReport(
        current_status=status_for(active),
        active_incidents=len(active),
        availability_percent=round(availability_percent(downtimes, days * MINUTES_PER_DAY), 2),
        window_days=days,
        timeline=timeline,
    )

from datetime import timedelta

import pytest

from alerthub.domain.models import IncidentCloseRequest, IncidentCreateRequest, IncidentStatus, SystemStatus
from alerthub.services.incidents import close_incident, register_incident
from alerthub.services.status import availability_percent, build_status_report
from alerthub.utils.time_windows import now_utc


def _incident(repo, project, **fields):
    fields.setdefault("title", "Degraded checkout")
    return register_incident(repo, project_id=project.id, user_id="alice", request=IncidentCreateRequest(**fields))


def test_empty_project_is_fully_available(repo, project) -> None:
    now = now_utc()
    report = build_status_report(repo, project.id, now=now)

    assert report.current_status == SystemStatus.operational
    assert report.active_incidents == 0
    assert report.availability_percent == 100.0
    assert report.window_days == 30
    assert len(report.timeline) == 30
    assert report.timeline[-1].date == now.date().isoformat()
    assert report.timeline[0].date == (now - timedelta(days=29)).date().isoformat()
    assert all(day.status == SystemStatus.operational and day.incidents == 0 for day in report.timeline)


def test_one_day_of_downtime_costs_three_and_a_third_percent(repo, project) -> None:
    incident = _incident(repo, project, started_at=now_utc() - timedelta(days=2))
    start = now_utc() - timedelta(days=2)
    close_incident(
        repo, incident, IncidentCloseRequest(start_time=start, end_time=start + timedelta(minutes=1440)), user_id="bob"
    )

    report = build_status_report(repo, project.id)

    assert report.availability_percent == pytest.approx(96.67)
    assert report.active_incidents == 0
    assert report.current_status == SystemStatus.operational


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        ({"severity": "critical"}, SystemStatus.outage),
        ({"severity": "low", "impact": "critical"}, SystemStatus.outage),
        ({"severity": "high"}, SystemStatus.degraded),
        ({"severity": "low", "impact": "major"}, SystemStatus.degraded),
        ({"severity": "medium", "impact": "minor"}, SystemStatus.operational),
    ],
)
def test_current_status_follows_worst_active_incident(repo, project, fields, expected) -> None:
    _incident(repo, project, **fields)

    report = build_status_report(repo, project.id)

    assert report.current_status == expected
    assert report.active_incidents == 1
    assert report.timeline[-1].status == expected
    assert report.timeline[-1].incidents == 1


def test_resolved_incidents_do_not_count_as_active(repo, project) -> None:
    incident = _incident(repo, project, severity="critical")
    repo.update_incident(incident, {"status": IncidentStatus.resolved, "resolved_at": now_utc()})

    report = build_status_report(repo, project.id)

    assert report.active_incidents == 0
    assert report.current_status == SystemStatus.operational
    # still shows on today's bar
    assert report.timeline[-1].status == SystemStatus.outage


def test_timeline_counts_incidents_on_days_they_overlap(repo, project) -> None:
    now = now_utc()
    incident = _incident(repo, project, severity="high", started_at=now - timedelta(days=5))
    repo.update_incident(incident, {"status": IncidentStatus.resolved, "resolved_at": now - timedelta(days=4)})

    report = build_status_report(repo, project.id, now=now)
    by_date = {day.date: day for day in report.timeline}

    for offset in (5, 4):
        day = by_date[(now - timedelta(days=offset)).date().isoformat()]
        assert day.incidents == 1
        assert day.status == SystemStatus.degraded
    for offset in (6, 3, 0):
        day = by_date[(now - timedelta(days=offset)).date().isoformat()]
        assert day.incidents == 0
        assert day.status == SystemStatus.operational


def test_incidents_outside_window_are_ignored(repo, project) -> None:
    now = now_utc()
    incident = _incident(repo, project, severity="critical", started_at=now - timedelta(days=45))
    repo.update_incident(incident, {"status": IncidentStatus.resolved, "resolved_at": now - timedelta(days=40)})

    report = build_status_report(repo, project.id, now=now)

    assert all(day.incidents == 0 for day in report.timeline)
    assert report.availability_percent == 100.0


def test_availability_is_clamped() -> None:
    assert availability_percent([], 43200) == 100.0
    assert availability_percent([50000], 43200) == 0.0
    assert availability_percent([720, 720], 43200) == pytest.approx(96.6666, rel=1e-4)

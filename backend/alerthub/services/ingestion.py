"""Webhook ingestion orchestration."""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from alerthub.adapters.interfaces import WebhookPayloadError
from alerthub.config import get_settings
from alerthub.domain.models import AlertSource, AlertStatus, NormalizedAlert
from alerthub.services.alert_lifecycle import resolve_alert
from alerthub.services.deduplication import FingerprintDeduplicator
from alerthub.services.normalization import adapter_for
from alerthub.storage.db_models import AlertORM
from alerthub.storage.repositories import AlertHubRepository
from alerthub.utils.redaction import redact_object

logger = logging.getLogger("alerthub.webhooks")


@dataclass
class IngestResult:
    processed: int = 0
    created: int = 0
    resolved: int = 0
    skipped: int = 0


def ingest_webhook(db: Session, *, project_id: UUID, source: AlertSource, payload: dict[str, Any]) -> IngestResult:
    """Normalize a delivery and apply create-or-resolve per entry.

    Entries are committed one by one; a malformed entry is logged and
    skipped without touching its siblings.
    """

    adapter = adapter_for(source)
    result = IngestResult()
    try:
        entries = adapter.entries(payload)
    except WebhookPayloadError as exc:
        logger.warning("rejected %s delivery for project=%s: %s", source.value, project_id, exc)
        return result

    repo = AlertHubRepository(db)
    dedup = FingerprintDeduplicator(repo)
    for index, entry in enumerate(entries):
        try:
            normalized = adapter.parse(entry)
        except WebhookPayloadError as exc:
            logger.warning("skipping malformed %s entry index=%d project=%s: %s", source.value, index, project_id, exc)
            result.skipped += 1
            continue

        try:
            outcome = _apply_entry(db, repo, dedup, project_id, normalized)
        except DataError as exc:
            # rejected by a column constraint, e.g. NUL bytes in a JSONB payload
            db.rollback()
            logger.warning(
                "skipping %s entry index=%d project=%s fingerprint=%s: storage rejected it: %s",
                source.value,
                index,
                project_id,
                normalized.fingerprint,
                exc.orig,
            )
            result.skipped += 1
            continue
        result.processed += 1
        if outcome == "created":
            result.created += 1
        elif outcome == "resolved":
            result.resolved += 1
        logger.info(
            "%s entry index=%d project=%s fingerprint=%s outcome=%s",
            source.value,
            index,
            project_id,
            normalized.fingerprint,
            outcome,
        )
    return result


def _apply_entry(
    db: Session,
    repo: AlertHubRepository,
    dedup: FingerprintDeduplicator,
    project_id: UUID,
    normalized: NormalizedAlert,
) -> str:
    existing = dedup.find(project_id, normalized.fingerprint)
    if existing is None and not normalized.resolved:
        try:
            _create_alert(repo, project_id, normalized)
            db.commit()
            return "created"
        except IntegrityError:
            db.rollback()
            logger.info(
                "fingerprint=%s created concurrently in project=%s, falling back to lookup",
                normalized.fingerprint,
                project_id,
            )
            existing = dedup.find(project_id, normalized.fingerprint)
            if existing is None:
                raise

    if existing is None:
        return "noop"
    # Firing re-deliveries never overwrite an existing record; only resolution applies.
    if normalized.resolved and resolve_alert(repo, existing, user_id=None, source=normalized.source):
        db.commit()
        return "resolved"
    if not normalized.resolved and existing.status == AlertStatus.resolved:
        logger.info(
            "firing %s entry fingerprint=%s suppressed: alert=%s in project=%s is already resolved",
            normalized.source.value,
            normalized.fingerprint,
            existing.id,
            project_id,
        )
    return "noop"


def _create_alert(repo: AlertHubRepository, project_id: UUID, normalized: NormalizedAlert) -> AlertORM:
    raw_payload = normalized.raw_payload
    if get_settings().redact_raw_payloads:
        raw_payload = redact_object(raw_payload)

    alert = repo.create_alert(
        project_id=project_id,
        title=normalized.title,
        description=normalized.description,
        source=normalized.source,
        severity=normalized.severity,
        status=AlertStatus.new,
        fingerprint=normalized.fingerprint,
        external_id=normalized.external_id,
        raw_payload=raw_payload,
    )
    repo.create_activity(
        project_id=project_id,
        alert_id=alert.id,
        action="alert_received_webhook",
        details=f"Received {normalized.source.value} alert: {alert.title}",
        meta={
            "source": normalized.source.value,
            "fingerprint": normalized.fingerprint,
            "severity": normalized.severity.value,
        },
    )
    return alert

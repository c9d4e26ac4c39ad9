"""Prometheus Alertmanager webhook adapter."""

from typing import Any

from alerthub.adapters.interfaces import (
    AlertSourceAdapter,
    WebhookPayloadError,
    first_text,
    known_severity,
    optional_mapping,
    require_mapping,
)
from alerthub.domain.models import AlertSource, NormalizedAlert
from alerthub.utils.hashing import content_fingerprint


class AlertmanagerAdapter(AlertSourceAdapter):
    source = AlertSource.alertmanager
    placeholder_title = "Alertmanager alert"

    def entries(self, payload: dict[str, Any]) -> list[Any]:
        alerts = payload.get("alerts")
        if alerts is None:
            return []
        if not isinstance(alerts, list):
            raise WebhookPayloadError("alerts must be a list")
        return alerts

    def normalize_entry(self, entry: Any) -> NormalizedAlert:
        entry = require_mapping(entry, "alert entry")
        labels = optional_mapping(entry, "labels")
        annotations = optional_mapping(entry, "annotations")

        fingerprint = first_text(entry.get("fingerprint")) or content_fingerprint(labels)
        summary = first_text(annotations.get("summary"))
        return NormalizedAlert(
            source=self.source,
            title=first_text(labels.get("alertname"), summary) or self.placeholder_title,
            description=first_text(annotations.get("description"), summary),
            severity=known_severity(labels.get("severity")),
            fingerprint=fingerprint,
            external_id=first_text(entry.get("generatorURL")),
            raw_payload=entry,
            resolved=entry.get("status") == "resolved",
        )

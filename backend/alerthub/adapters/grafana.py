"""Grafana alerting webhook adapter."""

from typing import Any

from alerthub.adapters.interfaces import (
    AlertSourceAdapter,
    WebhookPayloadError,
    first_text,
    optional_mapping,
    require_mapping,
)
from alerthub.domain.models import AlertSource, NormalizedAlert, Severity
from alerthub.utils.hashing import content_fingerprint


class GrafanaAdapter(AlertSourceAdapter):
    """Handles both legacy single-alert bodies and unified-alerting batches."""

    source = AlertSource.grafana
    placeholder_title = "Grafana alert"

    def entries(self, payload: dict[str, Any]) -> list[Any]:
        alerts = payload.get("alerts")
        if alerts is None:
            return [payload]
        if not isinstance(alerts, list):
            raise WebhookPayloadError("alerts must be a list")
        return alerts

    def normalize_entry(self, entry: Any) -> NormalizedAlert:
        entry = require_mapping(entry, "alert entry")
        annotations = optional_mapping(entry, "annotations")

        rule_id = entry.get("ruleUID") or entry.get("ruleId")
        return NormalizedAlert(
            source=self.source,
            title=first_text(entry.get("title"), entry.get("ruleName")) or self.placeholder_title,
            description=first_text(entry.get("message"), annotations.get("description"), annotations.get("summary")),
            # Grafana bodies carry no severity we map from.
            severity=Severity.medium,
            fingerprint=first_text(entry.get("fingerprint")) or content_fingerprint(entry),
            external_id=str(rule_id) if rule_id is not None else None,
            raw_payload=entry,
            resolved=entry.get("state") == "ok" or entry.get("status") == "resolved",
        )

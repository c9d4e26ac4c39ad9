"""Zabbix media-type webhook adapter."""

from typing import Any

from alerthub.adapters.interfaces import AlertSourceAdapter, first_text, require_mapping
from alerthub.domain.models import AlertSource, NormalizedAlert, Severity
from alerthub.utils.hashing import content_fingerprint

# Zabbix trigger severities: not classified, information, warning, average, high, disaster
_SEVERITY_BY_LEVEL = {
    0: Severity.low,
    1: Severity.low,
    2: Severity.medium,
    3: Severity.medium,
    4: Severity.high,
    5: Severity.critical,
}


def zabbix_severity(value: Any) -> Severity:
    if isinstance(value, bool):
        return Severity.medium
    try:
        level = int(str(value).strip())
    except (TypeError, ValueError):
        return Severity.medium
    return _SEVERITY_BY_LEVEL.get(level, Severity.medium)


class ZabbixAdapter(AlertSourceAdapter):
    source = AlertSource.zabbix
    placeholder_title = "Zabbix alert"

    def normalize_entry(self, entry: Any) -> NormalizedAlert:
        entry = require_mapping(entry, "payload")

        event_id = entry.get("eventid")
        event_id = str(event_id).strip() if event_id is not None else ""
        return NormalizedAlert(
            source=self.source,
            title=first_text(entry.get("name"), entry.get("subject")) or self.placeholder_title,
            description=first_text(entry.get("message")),
            severity=zabbix_severity(entry.get("severity")),
            fingerprint=event_id or content_fingerprint(entry),
            external_id=event_id or None,
            raw_payload=entry,
            resolved=entry.get("status") == "OK" or str(entry.get("recovery")) == "1",
        )

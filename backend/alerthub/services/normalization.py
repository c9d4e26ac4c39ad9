"""Alert normalization service."""

from typing import Any

from alerthub.adapters.alertmanager import AlertmanagerAdapter
from alerthub.adapters.grafana import GrafanaAdapter
from alerthub.adapters.interfaces import AlertSourceAdapter
from alerthub.adapters.zabbix import ZabbixAdapter
from alerthub.domain.models import AlertSource, NormalizedAlert

_ADAPTERS: dict[AlertSource, AlertSourceAdapter] = {
    AlertSource.alertmanager: AlertmanagerAdapter(),
    AlertSource.grafana: GrafanaAdapter(),
    AlertSource.zabbix: ZabbixAdapter(),
}


def adapter_for(source: AlertSource) -> AlertSourceAdapter:
    """Return the webhook adapter for a monitoring source."""

    try:
        return _ADAPTERS[source]
    except KeyError:
        raise ValueError(f"no webhook adapter for source={source.value}") from None


def normalize_alertmanager_payload(payload: dict[str, Any]) -> list[NormalizedAlert]:
    """Normalize Alertmanager payload into canonical alerts."""

    return _ADAPTERS[AlertSource.alertmanager].normalize(payload)


def normalize_grafana_payload(payload: dict[str, Any]) -> list[NormalizedAlert]:
    """Normalize Grafana payload into canonical alerts."""

    return _ADAPTERS[AlertSource.grafana].normalize(payload)


def normalize_zabbix_payload(payload: dict[str, Any]) -> list[NormalizedAlert]:
    """Normalize Zabbix payload into canonical alerts."""

    return _ADAPTERS[AlertSource.zabbix].normalize(payload)

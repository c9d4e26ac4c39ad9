"""Adapter interface contracts."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from alerthub.domain.models import AlertSource, NormalizedAlert, Severity


class WebhookPayloadError(ValueError):
    """Raised when a webhook entry does not have the expected shape."""


class AlertSourceAdapter(ABC):
    """Normalize external alert payloads, one entry at a time."""

    source: AlertSource
    placeholder_title: str

    def entries(self, payload: dict[str, Any]) -> list[Any]:
        """Split a delivery into the entries it carries."""

        return [payload]

    @abstractmethod
    def normalize_entry(self, entry: Any) -> NormalizedAlert:
        raise NotImplementedError

    def parse(self, entry: Any) -> NormalizedAlert:
        """Normalize one entry, reporting any shape or size violation as ``WebhookPayloadError``."""

        try:
            return self.normalize_entry(entry)
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            raise WebhookPayloadError(f"entry out of bounds: {fields}") from exc

    def normalize(self, payload: dict[str, Any]) -> list[NormalizedAlert]:
        """Normalize every entry, failing on the first malformed one."""

        return [self.parse(entry) for entry in self.entries(payload)]


def require_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise WebhookPayloadError(f"{what} must be an object, got {type(value).__name__}")
    return value


def optional_mapping(container: dict[str, Any], key: str) -> dict[str, Any]:
    value = container.get(key)
    if value is None:
        return {}
    return require_mapping(value, key)


def first_text(*candidates: Any) -> str | None:
    """Return the first non-blank string among candidates."""

    for value in candidates:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def known_severity(value: Any) -> Severity:
    if isinstance(value, str) and value in Severity._value2member_map_:
        return Severity(value)
    return Severity.medium

"""Fingerprint-based alert deduplication."""

from uuid import UUID

from alerthub.storage.db_models import AlertORM
from alerthub.storage.repositories import AlertHubRepository


class FingerprintDeduplicator:
    """Answers whether an inbound alert already has a record in its project.

    Lookup only; a miss tells the caller to create. Two deliveries racing on
    a brand-new fingerprint can both miss, so creation relies on the
    ``(project_id, fingerprint)`` unique constraint to surface the loser.
    """

    def __init__(self, repo: AlertHubRepository) -> None:
        self.repo = repo

    def find(self, project_id: UUID, fingerprint: str) -> AlertORM | None:
        if not fingerprint:
            return None
        return self.repo.get_alert_by_fingerprint(project_id, fingerprint)

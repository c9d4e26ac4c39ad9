"""Inbound monitoring webhooks, authenticated by the project webhook key in the URL."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from alerthub.domain.models import AlertSource, WebhookIngestResponse
from alerthub.services.ingestion import ingest_webhook
from alerthub.storage.database import get_db
from alerthub.storage.repositories import AlertHubRepository

router = APIRouter(prefix="/v1/webhooks", tags=["webhooks"])


def _ingest(db: Session, key: str, source: AlertSource, payload: dict[str, Any]) -> WebhookIngestResponse:
    project = AlertHubRepository(db).get_project_by_webhook_key(key)
    if project is None:
        raise HTTPException(status_code=404, detail="unknown webhook key")
    result = ingest_webhook(db, project_id=project.id, source=source, payload=payload)
    return WebhookIngestResponse(success=True, processed=result.processed)


@router.post("/{key}/alertmanager", response_model=WebhookIngestResponse)
def post_alertmanager_webhook(key: str, payload: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    return _ingest(db, key, AlertSource.alertmanager, payload)


@router.post("/{key}/grafana", response_model=WebhookIngestResponse)
def post_grafana_webhook(key: str, payload: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    return _ingest(db, key, AlertSource.grafana, payload)


@router.post("/{key}/zabbix", response_model=WebhookIngestResponse)
def post_zabbix_webhook(key: str, payload: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    return _ingest(db, key, AlertSource.zabbix, payload)

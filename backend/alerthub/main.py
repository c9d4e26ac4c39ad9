"""FastAPI app entrypoint."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from alerthub.api.routes import router
from alerthub.api.webhooks import router as webhooks_router
from alerthub.config import get_settings
from alerthub.services.errors import (
    AlertAlreadyPromotedError,
    IncidentAlreadyClosedError,
    LifecycleError,
    NotFoundError,
)
from alerthub.storage.database import init_db
from alerthub.utils.logging import configure_logging

logger = logging.getLogger("alerthub.api")

app = FastAPI(title=get_settings().app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)
app.include_router(webhooks_router)


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    conflict = isinstance(exc, (IncidentAlreadyClosedError, AlertAlreadyPromotedError))
    status_code = 409 if conflict else 400
    logger.info("rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    init_db()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}

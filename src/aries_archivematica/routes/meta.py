"""Meta endpoints: service banner and health."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from aries_archivematica import __version__

router = APIRouter(tags=["meta"])

SERVICE_NAME = "aries-archivematica"


@router.get("/", response_class=PlainTextResponse)
def root():
    return f"{SERVICE_NAME} version {__version__}"


@router.get("/healthcheck")
def health():
    return {"status": "ok", "service": SERVICE_NAME}

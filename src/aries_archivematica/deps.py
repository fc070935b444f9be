"""FastAPI dependencies for routes."""

from __future__ import annotations

from fastapi import Request

from aries_archivematica.lookup import LookupService


def get_lookup_service(request: Request) -> LookupService:
    """Get the lookup service from app state."""
    return request.app.state.service

"""Aries endpoint: resolve one identifier to its package details."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from aries_archivematica.deps import get_lookup_service
from aries_archivematica.lookup import LookupService

router = APIRouter(prefix="/api/aries", tags=["aries"])


@router.get("/{identifier}")
def resolve_identifier(
    identifier: str,
    service: LookupService = Depends(get_lookup_service),
):
    """Return identifiers, administrative URL and master file for a UUID or name.

    Resolver failures are turned into responses by the app's exception
    handlers.
    """
    result = service.lookup(identifier)
    return result.model_dump(mode="json", by_alias=True)

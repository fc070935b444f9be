"""Backing sources for package metadata and file locations."""

from aries_archivematica.sources.api import (
    ApiLocationResolver,
    ApiMetadataResolver,
    create_http_client,
)
from aries_archivematica.sources.base import LocationResolver, MetadataResolver
from aries_archivematica.sources.database import (
    DatabaseLocationResolver,
    DatabaseMetadataResolver,
    create_source_engine,
)

__all__ = [
    "ApiLocationResolver",
    "ApiMetadataResolver",
    "DatabaseLocationResolver",
    "DatabaseMetadataResolver",
    "LocationResolver",
    "MetadataResolver",
    "create_http_client",
    "create_source_engine",
]

"""Identifier lookup: classify, resolve metadata, resolve location, assemble.

A lookup makes two sequential backing calls and shares no state with
other lookups, so one service instance serves concurrent requests.
"""

from __future__ import annotations

import logging

from aries_archivematica.identifiers import UUID_PLACEHOLDER, classify
from aries_archivematica.models import LocationRecord, PackageRecord, ResolutionResult
from aries_archivematica.sources.base import LocationResolver, MetadataResolver

logger = logging.getLogger(__name__)


def assemble(
    package: PackageRecord, location: LocationRecord, admin_url_template: str
) -> ResolutionResult:
    """Combine the resolved records into the response. Name first, then UUID."""
    identifiers = [package.name, package.uuid] if package.name is not None else [package.uuid]
    return ResolutionResult(
        identifiers=identifiers,
        administrative_url=admin_url_template.replace(UUID_PLACEHOLDER, package.uuid, 1),
        master_file=location.full_path,
    )


class LookupService:
    """Resolves one identifier to a ResolutionResult.

    Resolver errors (NotFoundError, AmbiguousError, SourceError) propagate
    unchanged. There are no retries here.
    """

    def __init__(
        self,
        metadata: MetadataResolver,
        location: LocationResolver,
        admin_url_template: str,
    ) -> None:
        self.metadata = metadata
        self.location = location
        self.admin_url_template = admin_url_template

    def lookup(self, identifier: str) -> ResolutionResult:
        classified = classify(identifier)
        logger.info("Resolving %s [%s]", classified.kind.value, classified.value)

        package = self.metadata.resolve(classified)
        logger.info("Resolved %r to package %s", identifier, package.uuid)

        location = self.location.resolve(package.uuid)
        logger.info("Package %s master file: %s", package.uuid, location.full_path)

        return assemble(package, location, self.admin_url_template)

"""API-backed resolvers.

Both the dashboard and the Storage Service expose Tastypie-style list
endpoints returning ``{"meta": {"total_count": n}, "objects": [...]}``.
The URL templates carry a ``{UUID}`` placeholder that is filled in per
lookup.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from aries_archivematica.errors import (
    LOCATION,
    METADATA,
    AmbiguousError,
    NotFoundError,
    SourceError,
)
from aries_archivematica.identifiers import (
    UUID_PLACEHOLDER,
    ClassifiedIdentifier,
    IdentifierKind,
)
from aries_archivematica.models import (
    LocationRecord,
    PackageRecord,
    StorageServiceObject,
    StorageServiceResponse,
)
from aries_archivematica.sources.base import LocationResolver, MetadataResolver

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def create_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.Client:
    """Create the process-wide client shared by the API resolvers."""
    return httpx.Client(timeout=timeout)


class ApiSource:
    """One remote list endpoint plus the credentials to call it."""

    def __init__(
        self,
        client: httpx.Client,
        url_template: str,
        user: str,
        key: str,
        stage: str,
    ) -> None:
        self._client = client
        self._url_template = url_template
        self._headers = {"Authorization": f"ApiKey {user}:{key}"}
        self.stage = stage

    def fetch_one(self, package_uuid: str) -> StorageServiceObject:
        """GET the endpoint for this UUID and return the single object."""
        url = self._url_template.replace(UUID_PLACEHOLDER, package_uuid, 1)
        try:
            response = self._client.get(url, headers=self._headers)
        except httpx.TimeoutException as exc:
            logger.error("[%s] GET %s timed out: %s", self.stage, url, exc)
            raise SourceError(self.stage, package_uuid, "request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("[%s] GET %s failed: %s", self.stage, url, exc)
            raise SourceError(self.stage, package_uuid, "request failed") from exc

        if response.status_code == 404:
            logger.info("[%s] GET %s returned 404", self.stage, url)
            raise NotFoundError(self.stage, package_uuid)
        if response.is_error:
            logger.error(
                "[%s] GET %s returned HTTP %d", self.stage, url, response.status_code
            )
            raise SourceError(
                self.stage, package_uuid, f"remote returned HTTP {response.status_code}"
            )

        try:
            payload = StorageServiceResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error("[%s] could not decode response from %s: %s", self.stage, url, exc)
            raise SourceError(self.stage, package_uuid, "malformed response") from exc

        total = payload.meta.total_count
        logger.info(
            "[%s] %s: total_count %d / objects %d",
            self.stage,
            package_uuid,
            total,
            len(payload.objects),
        )
        if total < 0:
            raise SourceError(self.stage, package_uuid, "malformed response")
        if total == 0:
            raise NotFoundError(self.stage, package_uuid)
        if total > 1:
            # total_count is authoritative; objects may be a truncated page.
            raise AmbiguousError(self.stage, package_uuid, total)
        if len(payload.objects) != 1:
            raise SourceError(
                self.stage, package_uuid, "response count does not match its objects"
            )
        return payload.objects[0]


class ApiMetadataResolver(MetadataResolver):
    """Resolve the canonical UUID through the application API.

    The remote endpoint is keyed by UUID only, so names never resolve
    here and the record carries no name.
    """

    def __init__(
        self, client: httpx.Client, url_template: str, user: str, key: str
    ) -> None:
        self._source = ApiSource(client, url_template, user, key, METADATA)

    def resolve(self, classified: ClassifiedIdentifier) -> PackageRecord:
        if classified.kind is not IdentifierKind.UUID:
            logger.info(
                "[%s] is not a UUID; name lookups are not supported by the API",
                classified.value,
            )
            raise NotFoundError(METADATA, classified.value)
        obj = self._source.fetch_one(classified.value)
        if not obj.uuid:
            raise SourceError(METADATA, classified.value, "response object has no uuid")
        return PackageRecord(uuid=obj.uuid)


class ApiLocationResolver(LocationResolver):
    """Resolve the master file path through the Storage Service API."""

    def __init__(
        self, client: httpx.Client, url_template: str, user: str, key: str
    ) -> None:
        self._source = ApiSource(client, url_template, user, key, LOCATION)

    def resolve(self, package_uuid: str) -> LocationRecord:
        obj = self._source.fetch_one(package_uuid)
        if not obj.current_full_path:
            raise SourceError(LOCATION, package_uuid, "response object has no path")
        return LocationRecord(full_path=obj.current_full_path)

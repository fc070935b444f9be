"""Database-backed resolvers.

Reads the Archivematica dashboard database (``SIPs``) for package
metadata and the Storage Service database (``locations_*``) for file
locations. Both are read-only from our side. Queries are built with
SQLAlchemy Core; identifiers only ever reach the database as bound
parameters.
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from aries_archivematica.errors import LOCATION, METADATA, SourceError
from aries_archivematica.identifiers import (
    ClassifiedIdentifier,
    IdentifierKind,
    derive_name,
    name_pattern,
)
from aries_archivematica.models import LocationRecord, PackageRecord
from aries_archivematica.sources.base import (
    LocationResolver,
    MetadataResolver,
    exactly_one,
)

logger = logging.getLogger(__name__)

# ── Dashboard (application) schema ───────────────────────────

application_metadata = MetaData()

sips = Table(
    "SIPs",
    application_metadata,
    Column("sipUUID", String(36), primary_key=True),
    Column("aipFilename", Text, nullable=True),
    Column("hidden", Boolean, nullable=False, default=False),
)

# ── Storage Service schema ───────────────────────────────────

storage_metadata = MetaData()

spaces = Table(
    "locations_space",
    storage_metadata,
    Column("uuid", String(36), primary_key=True),
    Column("path", Text, nullable=False),
)

locations = Table(
    "locations_location",
    storage_metadata,
    Column("uuid", String(36), primary_key=True),
    Column("space_id", String(36), ForeignKey("locations_space.uuid")),
    Column("relative_path", Text, nullable=False),
    Column("purpose", String(2), nullable=False),
    Column("enabled", Boolean, nullable=False, default=True),
)

packages = Table(
    "locations_package",
    storage_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String(36), nullable=False, index=True),
    Column("current_location_id", String(36), ForeignKey("locations_location.uuid")),
    Column("current_path", Text, nullable=False),
    Column("package_type", String(8), nullable=False),
    Column("status", String(64), nullable=False),
)

AIP_STORAGE_PURPOSE = "AS"
AIP_PACKAGE_TYPE = "AIP"
UPLOADED_STATUS = "UPLOADED"


def create_source_engine(url: str) -> Engine:
    """Create an engine for one backing database.

    For a read-only SQLite Storage Service database use a URI such as
    ``sqlite:///file:/path/to/storage.db?mode=ro&uri=true``.
    """
    return create_engine(url, pool_pre_ping=True)


class DatabaseMetadataResolver(MetadataResolver):
    """Resolve package UUID and name from the dashboard ``SIPs`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def resolve(self, classified: ClassifiedIdentifier) -> PackageRecord:
        query = select(sips.c.sipUUID, sips.c.aipFilename).where(
            sips.c.hidden.is_(False)
        )
        if classified.kind is IdentifierKind.UUID:
            logger.info("[%s] is a UUID; looking up by UUID", classified.value)
            query = query.where(func.lower(sips.c.sipUUID) == classified.value)
        else:
            logger.info("[%s] is not a UUID; looking up by name", classified.value)
            # Case-insensitive LIKE narrows the candidates; the exact filename
            # shape is checked below so the name never becomes a SQL pattern.
            query = query.where(
                sips.c.aipFilename.istartswith(classified.value, autoescape=True)
            )

        try:
            with self._engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as exc:
            logger.error(
                "[%s] SIPs query failed for %r: %s", METADATA, classified.value, exc
            )
            raise SourceError(METADATA, classified.value, "database query failed") from exc

        if classified.kind is IdentifierKind.NAME:
            pattern = name_pattern(classified.value)
            rows = [row for row in rows if row.aipFilename and pattern.match(row.aipFilename)]

        records = [self._to_record(row.sipUUID, row.aipFilename) for row in rows]
        return exactly_one(records, METADATA, classified.value)

    @staticmethod
    def _to_record(sip_uuid: str, aip_filename: str | None) -> PackageRecord:
        logger.debug("sipUUID: [%s]  aipFilename: [%s]", sip_uuid, aip_filename)
        if aip_filename is None:
            return PackageRecord(uuid=sip_uuid)
        name = derive_name(aip_filename, sip_uuid)
        logger.debug("extracted name: [%s]", name)
        return PackageRecord(uuid=sip_uuid, name=name)


class DatabaseLocationResolver(LocationResolver):
    """Build the master file path from the Storage Service tables."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def resolve(self, package_uuid: str) -> LocationRecord:
        full_path = (
            spaces.c.path + locations.c.relative_path + "/" + packages.c.current_path
        ).label("full_path")
        query = (
            select(full_path)
            .select_from(
                packages.join(
                    locations, packages.c.current_location_id == locations.c.uuid
                ).join(spaces, locations.c.space_id == spaces.c.uuid)
            )
            .where(
                locations.c.enabled.is_(True),
                locations.c.purpose == AIP_STORAGE_PURPOSE,
                packages.c.package_type == AIP_PACKAGE_TYPE,
                packages.c.status == UPLOADED_STATUS,
                packages.c.uuid == package_uuid,
            )
        )

        try:
            with self._engine.connect() as conn:
                paths = conn.execute(query).scalars().all()
        except SQLAlchemyError as exc:
            logger.error(
                "[%s] storage query failed for %s: %s", LOCATION, package_uuid, exc
            )
            raise SourceError(LOCATION, package_uuid, "database query failed") from exc

        path = exactly_one(paths, LOCATION, package_uuid)
        logger.debug("file: [%s]", path)
        return LocationRecord(full_path=path)

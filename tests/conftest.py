"""Shared fixtures: in-memory copies of the dashboard and Storage Service tables."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.pool import StaticPool

from aries_archivematica.sources.database import (
    application_metadata,
    locations,
    packages,
    sips,
    spaces,
    storage_metadata,
)


def _memory_engine(metadata):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    return engine


@pytest.fixture
def application_engine():
    engine = _memory_engine(application_metadata)
    yield engine
    engine.dispose()


@pytest.fixture
def storage_engine():
    engine = _memory_engine(storage_metadata)
    yield engine
    engine.dispose()


@pytest.fixture
def add_sip(application_engine):
    """Insert a row into SIPs."""

    def _add(sip_uuid: str, filename: str | None, *, hidden: bool = False) -> None:
        with application_engine.begin() as conn:
            conn.execute(
                insert(sips).values(sipUUID=sip_uuid, aipFilename=filename, hidden=hidden)
            )

    return _add


@pytest.fixture
def add_package(storage_engine):
    """Insert a package with its own location and space."""

    def _add(
        package_uuid: str,
        current_path: str = "path/to/file",
        *,
        space_path: str = "/space",
        relative_path: str = "/rel",
        purpose: str = "AS",
        enabled: bool = True,
        package_type: str = "AIP",
        status: str = "UPLOADED",
    ) -> None:
        space_id = str(uuid4())
        location_id = str(uuid4())
        with storage_engine.begin() as conn:
            conn.execute(insert(spaces).values(uuid=space_id, path=space_path))
            conn.execute(
                insert(locations).values(
                    uuid=location_id,
                    space_id=space_id,
                    relative_path=relative_path,
                    purpose=purpose,
                    enabled=enabled,
                )
            )
            conn.execute(
                insert(packages).values(
                    uuid=package_uuid,
                    current_location_id=location_id,
                    current_path=current_path,
                    package_type=package_type,
                    status=status,
                )
            )

    return _add

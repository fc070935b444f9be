"""Resolver interfaces.

The lookup service depends only on these. Each has a database-backed
and an API-backed implementation, chosen at startup.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TypeVar

from aries_archivematica.errors import AmbiguousError, NotFoundError
from aries_archivematica.identifiers import ClassifiedIdentifier
from aries_archivematica.models import LocationRecord, PackageRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetadataResolver(ABC):
    """Finds the canonical UUID and name of a package."""

    @abstractmethod
    def resolve(self, classified: ClassifiedIdentifier) -> PackageRecord:
        """Return the one package matching the identifier.

        Raises NotFoundError, AmbiguousError or SourceError.
        """


class LocationResolver(ABC):
    """Finds the master file path of a package by its canonical UUID."""

    @abstractmethod
    def resolve(self, package_uuid: str) -> LocationRecord:
        """Return the one uploaded location of the package.

        Raises NotFoundError, AmbiguousError or SourceError.
        """


def exactly_one(matches: Sequence[T], stage: str, identifier: str) -> T:
    """Return the single match, or raise for zero or several."""
    count = len(matches)
    if count == 0:
        logger.info("[%s] %s: no results", stage, identifier)
        raise NotFoundError(stage, identifier)
    if count > 1:
        logger.warning("[%s] %s: %d results, expected one", stage, identifier, count)
        raise AmbiguousError(stage, identifier, count)
    return matches[0]

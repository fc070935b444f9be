"""Failure taxonomy for identifier resolution.

Every resolver failure carries the stage it happened in, so a package
that exists but has no uploaded master file reads differently from an
identifier nobody has heard of.
"""

from __future__ import annotations

METADATA = "metadata"
LOCATION = "location"


class ResolutionError(Exception):
    """Base class for lookup failures."""

    def __init__(self, stage: str, identifier: str, reason: str) -> None:
        self.stage = stage
        self.identifier = identifier
        self.reason = reason
        super().__init__(reason)


class NotFoundError(ResolutionError):
    """No matching record in the backing source."""

    def __init__(self, stage: str, identifier: str) -> None:
        if stage == LOCATION:
            reason = f"No master file found for package: {identifier}"
        else:
            reason = f"No package found with identifier: {identifier}"
        super().__init__(stage, identifier, reason)


class AmbiguousError(ResolutionError):
    """More than one matching record. A data-consistency problem."""

    def __init__(self, stage: str, identifier: str, count: int) -> None:
        self.count = count
        if stage == LOCATION:
            reason = f"{count} master file locations found for package: {identifier}"
        else:
            reason = f"{count} packages found with identifier: {identifier}"
        super().__init__(stage, identifier, reason)


class SourceError(ResolutionError):
    """The backing database or API failed, timed out or returned garbage."""

    def __init__(self, stage: str, identifier: str, reason: str) -> None:
        super().__init__(stage, identifier, f"{stage} lookup failed: {reason}")


class ConfigError(Exception):
    """Required configuration is missing or invalid."""

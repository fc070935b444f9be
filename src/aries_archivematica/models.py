"""Records passed between the resolvers and the response they produce."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class PackageRecord:
    """One archival package as known to the metadata source.

    ``name`` is None when the source only yields a UUID.
    """

    uuid: str
    name: str | None = None


@dataclass(frozen=True)
class LocationRecord:
    """Where the package's master file lives on disk."""

    full_path: str


class ResolutionResult(BaseModel):
    """Response body for a resolved identifier.

    Serialized with camelCase keys: identifiers, administrativeUrl, masterFile.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    identifiers: list[str] = Field(min_length=1)
    administrative_url: str
    master_file: str


# ── Storage service / application API payloads ───────────────
# Only the fields we use; the real responses carry many more.


class StorageServiceMeta(BaseModel):
    total_count: int


class StorageServiceObject(BaseModel):
    uuid: str = ""
    current_full_path: str = ""


class StorageServiceResponse(BaseModel):
    meta: StorageServiceMeta
    objects: list[StorageServiceObject] = Field(default_factory=list)

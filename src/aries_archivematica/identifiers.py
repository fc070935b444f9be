"""Identifier classification and name extraction.

An identifier is either a canonical UUID or a package name. Anything
that does not parse as a UUID is looked up as a name; there is no
"malformed identifier" failure.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

_HEX = "[0-9a-fA-F]"
_UUID_PATTERN = f"{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}"
_UUID_RE = re.compile(_UUID_PATTERN)

# Substituted in admin and API URL templates.
UUID_PLACEHOLDER = "{UUID}"


class IdentifierKind(enum.Enum):
    UUID = "uuid"
    NAME = "name"


@dataclass(frozen=True)
class ClassifiedIdentifier:
    kind: IdentifierKind
    value: str


def classify(identifier: str) -> ClassifiedIdentifier:
    """Classify an identifier as a lowercase UUID or a verbatim name."""
    if _UUID_RE.fullmatch(identifier):
        return ClassifiedIdentifier(IdentifierKind.UUID, identifier.lower())
    return ClassifiedIdentifier(IdentifierKind.NAME, identifier)


def name_pattern(name: str) -> re.Pattern[str]:
    """Match filenames of the form ``name.ext`` or ``name-<uuid>.ext``, ignoring case."""
    return re.compile(
        rf"^{re.escape(name)}(-{_UUID_PATTERN}\.|\.).*$", re.DOTALL | re.IGNORECASE
    )


def derive_name(filename: str, package_uuid: str) -> str:
    """Strip the embedded ``-<uuid>`` and the extension from a stored filename.

    The UUID is matched without regard to case. A leading dot is not
    treated as an extension separator.
    """
    name = re.sub(f"-{re.escape(package_uuid)}", "", filename, count=1, flags=re.IGNORECASE)
    dot = name.rfind(".")
    if dot > 0:
        name = name[:dot]
    return name

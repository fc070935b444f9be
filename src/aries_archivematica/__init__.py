"""Aries Archivematica: identifier resolution for archival packages."""

__version__ = "1.0.0"

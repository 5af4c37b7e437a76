"""Errores de importación de datos."""

from __future__ import annotations


class IngestionError(Exception):
    """Base exception for data import failures.

    None of these are fatal: the active series is left unchanged.
    """


class DecodeError(IngestionError):
    """Raised when a payload is not valid UTF-8 or not the expected structure."""


class UnsupportedFormatError(IngestionError):
    """Raised when a declared content kind is neither JSON nor CSV."""


class InvalidURLError(IngestionError):
    """Raised when a remote source URL is malformed."""


class NetworkError(IngestionError):
    """Raised on transport failure or a non-success HTTP status."""


class EmptyResponseError(IngestionError):
    """Raised when the transport succeeded but the body is empty."""


class SourceReadError(IngestionError):
    """Raised when a local source cannot be read."""

"""Domain layer: errors, constants and models."""

from .errors import (
    ArchiveError,
    ArchiveLayoutError,
    BlueprintError,
    CatalogError,
    CatalogFormatError,
    CatalogRetrievalError,
    ConfigError,
    DownloadError,
    ErrorCodes,
    InvalidNameError,
    UnknownProviderError,
)
from .models import GitProvider, RepositoryReference, SetupKind

__all__ = [
    # errors
    "BlueprintError",
    "ErrorCodes",
    "DownloadError",
    "ArchiveError",
    "ArchiveLayoutError",
    "CatalogError",
    "CatalogFormatError",
    "CatalogRetrievalError",
    "ConfigError",
    "InvalidNameError",
    "UnknownProviderError",
    # models
    "GitProvider",
    "RepositoryReference",
    "SetupKind",
]

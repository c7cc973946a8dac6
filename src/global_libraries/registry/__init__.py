"""Library registry: errors, result types and the registry service.

``LibraryRegistry`` lives in :mod:`global_libraries.registry.registry`; it is
not re-exported here because the library models import this package's errors.
"""

from global_libraries.registry.errors import (
    FetchError,
    InvalidLibrariesError,
    LibraryNotFoundError,
    MissingVersionError,
    RegistryError,
    StoreLockError,
    UnrecognizedPersistedFormatError,
    VersionOverrideDeniedError,
)
from global_libraries.registry.types import ResolvedLibrary, WriteOutcome

__all__ = [
    "FetchError",
    "InvalidLibrariesError",
    "LibraryNotFoundError",
    "MissingVersionError",
    "RegistryError",
    "ResolvedLibrary",
    "StoreLockError",
    "UnrecognizedPersistedFormatError",
    "VersionOverrideDeniedError",
    "WriteOutcome",
]

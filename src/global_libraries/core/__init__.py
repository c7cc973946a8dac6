"""Core infrastructure components for the library registry."""

from global_libraries.core.store import (
    CURRENT_FORMAT,
    RegistrySnapshot,
    RegistryStore,
    compute_libraries_digest,
)

__all__ = ["CURRENT_FORMAT", "RegistrySnapshot", "RegistryStore", "compute_libraries_digest"]

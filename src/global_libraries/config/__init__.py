"""Settings, YAML library files and the convenience registry API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from global_libraries.config.loader import ConfigError, load_libraries
from global_libraries.config.settings import RegistrySettings, load_settings
from global_libraries.core.store import RegistryStore
from global_libraries.registry.registry import LibraryRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from global_libraries.access.gate import Privilege
    from global_libraries.registry.types import WriteOutcome

__all__ = [
    "ConfigError",
    "LibraryRegistry",
    "RegistrySettings",
    "apply_file",
    "load_libraries",
    "load_settings",
    "open_registry",
]


def open_registry(settings: RegistrySettings, *, rewrite_legacy: bool = True) -> LibraryRegistry:
    """Load the registry persisted at ``settings.store_path`` (migrating legacy data)."""
    return LibraryRegistry.load(RegistryStore(settings.store_path), rewrite_legacy=rewrite_legacy)


def apply_file(
    registry: LibraryRegistry,
    path: Path | str,
    privileges: Iterable[Privilege | str],
) -> WriteOutcome:
    """Replace the registry's libraries with those declared in a YAML file."""
    return registry.replace_all(load_libraries(path), privileges)

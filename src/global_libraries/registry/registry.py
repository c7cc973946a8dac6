"""The library registry service."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from global_libraries.access.gate import Decision, GateAction, decide, normalize_privileges
from global_libraries.core.store import RegistrySnapshot, compute_libraries_digest
from global_libraries.libraries.retrievers import SCMSourceRetriever
from global_libraries.migration import MigrationState, migrate
from global_libraries.registry.errors import (
    InvalidLibrariesError,
    LibraryNotFoundError,
    MissingVersionError,
    VersionOverrideDeniedError,
)
from global_libraries.registry.types import WriteOutcome

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from global_libraries.access.gate import Privilege
    from global_libraries.core.store import RegistryStore
    from global_libraries.libraries.base import LibraryDefinition
    from global_libraries.registry.types import ResolvedLibrary

logger = logging.getLogger(__name__)


def validate_libraries(libraries: Sequence[LibraryDefinition]) -> list[str]:
    """Check a whole batch of definitions; return error messages (empty = valid)."""
    errors: list[str] = []
    seen: set[str] = set()
    for lib in libraries:
        if not lib.name:
            errors.append("Library name may not be empty")
        elif lib.name in seen:
            errors.append(f"Duplicate library name '{lib.name}'")
        seen.add(lib.name)
        if not lib.allow_version_override and lib.default_version is None:
            errors.append(
                f"Library '{lib.name}': default_version is required "
                "when version override is disallowed"
            )
    return errors


def parse_library_request(request: str) -> tuple[str, str | None]:
    """Split a ``name@version`` request; the version part is optional."""
    name, _, version = request.partition("@")
    return name, version or None


class LibraryRegistry:
    """Ordered set of library definitions, unique by name.

    Writers replace the whole tuple of entries under a lock; readers take a
    reference to the current tuple, so they see either the old or the new
    configuration in full. Definitions themselves are immutable.
    """

    def __init__(
        self,
        store: RegistryStore | None = None,
        libraries: Iterable[LibraryDefinition] = (),
    ) -> None:
        entries = tuple(libraries)
        errors = validate_libraries(entries)
        if errors:
            raise InvalidLibrariesError(errors)
        self._store = store
        self._lock = threading.Lock()
        self._entries: tuple[LibraryDefinition, ...] = entries

    @classmethod
    def load(cls, store: RegistryStore, *, rewrite_legacy: bool = True) -> LibraryRegistry:
        """Load (and if needed migrate) the persisted registry.

        A missing snapshot yields an empty registry. Bytes in no recognized
        shape raise ``UnrecognizedPersistedFormatError``.
        """
        data = store.load()
        if data is None:
            logger.info("No persisted libraries; starting with an empty registry")
            return cls(store)

        result = migrate(data)
        registry = cls(store, result.libraries)
        if result.state is MigrationState.MIGRATED:
            logger.info(
                "Migrated %d libraries from %s format",
                len(result.libraries),
                result.source_format,
            )
            if rewrite_legacy:
                store.save(RegistrySnapshot(libraries=list(result.libraries)).to_bytes())
        else:
            logger.debug("Loaded %d libraries", len(result.libraries))
        return registry

    def get_all(self) -> tuple[LibraryDefinition, ...]:
        return self._entries

    @property
    def digest(self) -> str:
        return compute_libraries_digest(self._entries)

    def replace_all(
        self,
        libraries: Iterable[LibraryDefinition],
        privileges: Iterable[Privilege | str],
    ) -> WriteOutcome:
        """Replace every definition at once, if the caller may write.

        A denied caller changes nothing and gets ``WriteOutcome.DENIED``.
        Invalid batches raise ``InvalidLibrariesError`` and are not applied
        in part. The new snapshot is persisted before it becomes visible.
        """
        held = normalize_privileges(privileges)
        if decide(held, GateAction.WRITE) is Decision.DENY:
            logger.warning(
                "Ignored library configuration write from caller with privileges [%s]",
                ", ".join(sorted(p.value for p in held)),
            )
            return WriteOutcome.DENIED

        entries = tuple(libraries)
        errors = validate_libraries(entries)
        if errors:
            raise InvalidLibrariesError(errors)

        with self._lock:
            if self._store is not None:
                self._store.save(RegistrySnapshot(libraries=list(entries)).to_bytes())
            self._entries = entries
        logger.info("Library configuration replaced (%d libraries)", len(entries))
        return WriteOutcome.ACCEPTED

    def lookup(self, name: str) -> LibraryDefinition:
        for lib in self._entries:
            if lib.name == name:
                return lib
        raise LibraryNotFoundError(name)

    def resolve(self, name: str, version: str | None = None) -> ResolvedLibrary:
        """Fetch library *name* at *version* (or its default version).

        Raises:
            LibraryNotFoundError: No library with this name.
            MissingVersionError: No version requested and no default configured.
            VersionOverrideDeniedError: A fixed-version library was requested
                at a different version.
            FetchError: The retriever failed; not retried here.
        """
        lib = self.lookup(name)
        if version is None:
            if lib.default_version is None:
                raise MissingVersionError(name)
            version = lib.default_version
        elif not lib.allow_version_override and version != lib.default_version:
            raise VersionOverrideDeniedError(name, version, lib.default_version)

        logger.debug("Resolving %s@%s", name, version)
        return lib.retriever.fetch(name, version)

    def list_implicit(self) -> tuple[LibraryDefinition, ...]:
        return tuple(lib for lib in self._entries if lib.implicit)

    def libraries_for_push(self, remote: str) -> tuple[LibraryDefinition, ...]:
        """SCM libraries on *remote* that react to push notifications."""
        matches = []
        for lib in self._entries:
            retriever = lib.retriever
            if not isinstance(retriever, SCMSourceRetriever):
                continue
            source = retriever.source
            if source.matches_remote(remote) and source.accepts_push():
                matches.append(lib)
        return tuple(matches)

"""Registry error types."""

from __future__ import annotations


class RegistryError(Exception):
    """Base exception for registry errors."""


class LibraryNotFoundError(RegistryError):
    """Raised when no library with the requested name is configured."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No library named '{name}' is configured")
        self.name = name


class MissingVersionError(RegistryError):
    """Raised when neither the request nor the library supplies a version."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No version specified for library '{name}' and it has no default")
        self.name = name


class VersionOverrideDeniedError(RegistryError):
    """Raised when a fixed-version library is requested at another version."""

    def __init__(self, name: str, requested: str, default: str | None) -> None:
        super().__init__(
            f"Version override not permitted for library '{name}': "
            f"requested {requested}, fixed at {default}"
        )
        self.name = name
        self.requested = requested
        self.default = default


class InvalidLibrariesError(RegistryError):
    """One or more submitted libraries failed validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        msg = "Invalid library configuration:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(msg)


class UnrecognizedPersistedFormatError(RegistryError):
    """Raised when persisted registry bytes match neither the current nor any legacy shape."""

    def __init__(self, tried: list[str]) -> None:
        super().__init__(
            "Persisted library configuration is in an unrecognized format "
            f"(tried: {', '.join(tried)})"
        )
        self.tried = tried


class FetchError(RegistryError):
    """Raised when a retriever cannot produce a library's content."""

    def __init__(self, name: str, version: str, message: str) -> None:
        super().__init__(f"Failed to fetch library '{name}' at {version}: {message}")
        self.name = name
        self.version = version


class StoreLockError(RegistryError):
    """Raised when the store lock cannot be acquired or released."""

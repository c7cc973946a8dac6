"""Map exceptions to clean stderr messages and exit codes."""

from __future__ import annotations

import typer


def _err(msg: str, *, fg: str | None) -> None:
    typer.echo(typer.style(msg, fg=fg), err=True)


def handle_error(exc: Exception, *, color: bool = True) -> int:
    """Print a one-line (or one-list) error to stderr and return exit code 1."""
    from global_libraries.config.loader import ConfigError
    from global_libraries.registry.errors import (
        FetchError,
        InvalidLibrariesError,
        LibraryNotFoundError,
        MissingVersionError,
        UnrecognizedPersistedFormatError,
        VersionOverrideDeniedError,
    )

    fg = typer.colors.RED if color else None

    if isinstance(exc, ConfigError):
        _err(f"Configuration error: {exc}", fg=fg)
    elif isinstance(exc, InvalidLibrariesError):
        _err("Invalid library configuration:", fg=fg)
        for e in exc.errors:
            _err(f"  - {e}", fg=fg)
    elif isinstance(exc, UnrecognizedPersistedFormatError):
        _err(f"Cannot load registry: {exc}", fg=fg)
    elif isinstance(exc, LibraryNotFoundError | MissingVersionError):
        _err(f"Resolution failed: {exc}", fg=fg)
    elif isinstance(exc, VersionOverrideDeniedError):
        _err(f"Resolution rejected: {exc}", fg=fg)
    elif isinstance(exc, FetchError):
        _err(f"Fetch failed: {exc}", fg=fg)
    else:
        _err(f"Error: {exc}", fg=fg)

    return 1

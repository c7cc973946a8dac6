"""Command line interface for the library registry.

Every command works on one registry snapshot (``--store`` or
``LIBS_STORE_PATH``) on behalf of one caller whose privileges come from
repeated ``--privilege`` options or ``LIBS_PRIVILEGES``.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from global_libraries import __version__

if TYPE_CHECKING:
    from global_libraries.config.settings import RegistrySettings

app = typer.Typer(
    name="global-libraries",
    no_args_is_help=True,
    add_completion=False,
)

StorePath = Annotated[
    Path | None,
    typer.Option("--store", "-s", help="Registry snapshot file (default: LIBS_STORE_PATH)."),
]

Privileges = Annotated[
    list[str] | None,
    typer.Option(
        "--privilege",
        "-p",
        help="Caller privilege (read, administer, run_scripts); repeatable. "
        "Defaults to LIBS_PRIVILEGES.",
    ),
]

ConfigPath = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to the YAML library file."),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output (also honours NO_COLOR)."),
]


def use_color(no_color: bool) -> bool:
    return not (no_color or os.environ.get("NO_COLOR"))


def caller_settings(store: Path | None) -> RegistrySettings:
    from global_libraries.config import load_settings

    return load_settings(store_path=store)


def caller_privileges(settings: RegistrySettings, privilege: list[str] | None) -> list[str]:
    """Explicit ``--privilege`` options replace ``LIBS_PRIVILEGES`` entirely."""
    return privilege if privilege else settings.privilege_names


_VERBOSITY = (None, logging.INFO, logging.DEBUG)


def _log_level(verbose: int) -> int | None:
    name = os.environ.get("LIBS_LOG", "").strip().upper()
    if not name:
        return _VERBOSITY[min(verbose, len(_VERBOSITY) - 1)]
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    typer.echo(f"Ignoring LIBS_LOG={name!r}: not a logging level; using INFO", err=True)
    return logging.INFO


def _setup_logging(verbose: int) -> None:
    """Route ``global_libraries`` records to stderr; silent unless asked for."""
    level = _log_level(verbose)
    if level is None:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger = logging.getLogger("global_libraries")
    logger.handlers[:] = [handler]
    logger.setLevel(level)


def _print_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"global-libraries {__version__}")
    raise typer.Exit


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_print_version,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="-v for info, -vv for debug logs."),
    ] = 0,
) -> None:
    """Manage the shared library registry."""
    _ = version
    _setup_logging(verbose)


from global_libraries.cli import commands as _commands  # noqa: E402, F401

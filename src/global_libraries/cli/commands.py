"""CLI command implementations."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from global_libraries.cli import (
    ConfigPath,
    NoColor,
    Privileges,
    StorePath,
    app,
    caller_privileges,
    caller_settings,
    use_color,
)
from global_libraries.cli.errors import handle_error


@app.command(name="list")
def list_cmd(
    store: StorePath = None,
    privilege: Privileges = None,
    no_color: NoColor = False,
) -> None:
    """List configured libraries as visible to the caller."""
    from rich.console import Console

    from global_libraries.access import render_config
    from global_libraries.cli.formatting import libraries_table
    from global_libraries.config import open_registry

    color = use_color(no_color)
    try:
        settings = caller_settings(store)
        view = render_config(open_registry(settings), caller_privileges(settings, privilege))
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if view.level == "hidden":
        typer.echo("Library configuration is not visible with the given privileges.")
        return
    if not view.libraries:
        typer.echo("No libraries configured.")
        return
    Console(no_color=not color).print(libraries_table(view))


@app.command()
def show(
    store: StorePath = None,
    privilege: Privileges = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Write the view to a file instead of stdout."),
    ] = None,
) -> None:
    """Print the configuration view (JSON) for the caller's privileges."""
    from global_libraries.access import render_config
    from global_libraries.config import open_registry

    try:
        settings = caller_settings(store)
        view = render_config(open_registry(settings), caller_privileges(settings, privilege))
    except Exception as exc:
        raise typer.Exit(handle_error(exc)) from exc

    content = json.dumps(view.model_dump(mode="json"), indent=2, sort_keys=True)
    if out is None:
        typer.echo(content)
    else:
        out.write_text(content + "\n", encoding="utf-8")
        typer.echo(f"View saved to {out}")


@app.command()
def submit(
    view_file: Annotated[Path, typer.Argument(help="JSON view, as written by 'show'.")],
    store: StorePath = None,
    privilege: Privileges = None,
    no_color: NoColor = False,
) -> None:
    """Submit a (possibly edited) configuration view."""
    from global_libraries.access import ConfigView, submit_config
    from global_libraries.cli.formatting import format_outcome
    from global_libraries.config import open_registry

    color = use_color(no_color)
    try:
        settings = caller_settings(store)
        registry = open_registry(settings)
        view = ConfigView.model_validate_json(view_file.read_text(encoding="utf-8"))
        outcome = submit_config(registry, view, caller_privileges(settings, privilege))
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_outcome(outcome, len(registry.get_all()), color=color))


@app.command(name="apply")
def apply_cmd(
    config: ConfigPath = Path("libraries.yaml"),
    store: StorePath = None,
    privilege: Privileges = None,
    no_color: NoColor = False,
) -> None:
    """Replace the configured libraries with those declared in a YAML file."""
    from global_libraries.cli.formatting import format_outcome
    from global_libraries.config import apply_file, open_registry

    color = use_color(no_color)
    try:
        settings = caller_settings(store)
        registry = open_registry(settings)
        outcome = apply_file(registry, config, caller_privileges(settings, privilege))
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_outcome(outcome, len(registry.get_all()), color=color))


@app.command()
def validate(
    config: ConfigPath = Path("libraries.yaml"),
    no_color: NoColor = False,
) -> None:
    """Validate a YAML library file without applying it."""
    from global_libraries.cli.formatting import styler
    from global_libraries.config import load_libraries

    color = use_color(no_color)
    try:
        libraries = load_libraries(config)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)(f"Configuration is valid ({len(libraries)} libraries).", fg="green"))


@app.command()
def resolve(
    request: Annotated[str, typer.Argument(help="Library request: NAME or NAME@VERSION.")],
    store: StorePath = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Directory to write the library files into."),
    ] = None,
    no_color: NoColor = False,
) -> None:
    """Resolve a library and list (or write out) its files."""
    from global_libraries.cli.formatting import format_resolved
    from global_libraries.config import open_registry
    from global_libraries.registry.registry import parse_library_request

    color = use_color(no_color)
    name, version = parse_library_request(request)
    try:
        resolved = open_registry(caller_settings(store)).resolve(name, version)
        if out is not None:
            for rel, content in resolved.files.items():
                target = out / rel
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_resolved(resolved, color=color))
    if out is not None:
        typer.echo(f"Wrote {len(resolved.files)} files to {out}")


@app.command()
def implicit(store: StorePath = None) -> None:
    """List implicit libraries in load order."""
    from global_libraries.config import open_registry

    try:
        libraries = open_registry(caller_settings(store)).list_implicit()
    except Exception as exc:
        raise typer.Exit(handle_error(exc)) from exc

    for lib in libraries:
        typer.echo(f"{lib.name}@{lib.default_version or '-'}")


@app.command()
def migrate(
    store: StorePath = None,
    no_color: NoColor = False,
) -> None:
    """Rewrite a legacy registry snapshot in the current format."""
    from global_libraries.cli.formatting import styler
    from global_libraries.core.store import RegistrySnapshot, RegistryStore
    from global_libraries.migration import MigrationState
    from global_libraries.migration import migrate as migrate_fn

    color = use_color(no_color)
    try:
        registry_store = RegistryStore(caller_settings(store).store_path)
        data = registry_store.load()
        if data is None:
            typer.echo(f"Nothing to migrate: {registry_store.path} does not exist.")
            return
        result = migrate_fn(data)
        if result.state is MigrationState.MIGRATED:
            registry_store.save(RegistrySnapshot(libraries=list(result.libraries)).to_bytes())
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if result.state is MigrationState.CURRENT:
        typer.echo("Registry is already in the current format.")
        return
    typer.echo(
        styler(color)(
            f"Migrated {len(result.libraries)} libraries from {result.source_format} format.",
            fg="green",
        )
    )

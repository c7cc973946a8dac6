"""Terminal rendering of library views and command results."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import typer
from rich.table import Table

from global_libraries.registry.types import WriteOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from global_libraries.access.view import ConfigView
    from global_libraries.registry.types import ResolvedLibrary


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


def _yes_no(value: Any) -> str:
    return "yes" if value else "no"


def describe_retriever(retriever: dict[str, Any] | None) -> str:
    """One-line summary of a dumped retriever (``-`` when redacted)."""
    if retriever is None:
        return "-"
    if retriever.get("kind") == "directory":
        return f"directory {retriever.get('path')}"
    source = retriever.get("source", {})
    summary = f"{source.get('type')} {source.get('remote')}"
    if retriever.get("library_path"):
        summary += f" ({retriever['library_path']})"
    traits = [t["kind"] for t in source.get("traits", [])]
    if traits:
        summary += f" [{', '.join(traits)}]"
    return summary


def libraries_table(view: ConfigView) -> Table:
    table = Table(title=f"Libraries ({view.level} view)")
    table.add_column("Name", style="bold")
    table.add_column("Default version")
    table.add_column("Implicit")
    table.add_column("Override")
    if view.level == "full":
        table.add_column("Source")

    for lib in view.libraries:
        row = [
            lib["name"],
            lib.get("default_version") or "-",
            _yes_no(lib.get("implicit")),
            _yes_no(lib.get("allow_version_override")),
        ]
        if view.level == "full":
            row.append(describe_retriever(lib.get("retriever")))
        table.add_row(*row)
    return table


def format_outcome(outcome: WriteOutcome, count: int, *, color: bool) -> str:
    s = styler(color)
    if outcome is WriteOutcome.DENIED:
        return s(
            "Submission ignored: configuring libraries requires the run_scripts privilege.",
            fg="yellow",
        )
    plural = "y" if count == 1 else "ies"
    return s(f"Library configuration saved ({count} librar{plural}).", fg="green")


def format_resolved(resolved: ResolvedLibrary, *, color: bool) -> str:
    s = styler(color)
    lines = [s(f"{resolved.name}@{resolved.version}", bold=True)]
    lines.extend(f"  {path}" for path in sorted(resolved.files))
    if resolved.browse_url:
        lines.append(f"Browse: {resolved.browse_url}")
    return "\n".join(lines)

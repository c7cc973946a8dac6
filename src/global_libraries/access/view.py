"""Privilege-gated rendering and submission of the library configuration.

``render_config`` is a pure projection of the registry for one caller;
``submit_config`` is the matching write path. A caller without the write
privilege can submit anything: the submission is dropped and the registry
stays exactly as it was.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from global_libraries.access.gate import (
    Decision,
    GateAction,
    ViewLevel,
    decide,
    normalize_privileges,
    view_level,
)
from global_libraries.libraries.base import LibraryDefinition
from global_libraries.registry.errors import InvalidLibrariesError
from global_libraries.registry.types import WriteOutcome

if TYPE_CHECKING:
    from collections.abc import Iterable

    from global_libraries.access.gate import Privilege
    from global_libraries.registry.registry import LibraryRegistry

logger = logging.getLogger(__name__)

# Source endpoints and credentials references live under the retriever.
_REDACTED_FIELDS: frozenset[str] = frozenset({"retriever"})

_LIBRARY_LIST = TypeAdapter(list[LibraryDefinition])


class ConfigView(BaseModel):
    """Library configuration as shown to one caller."""

    level: ViewLevel
    libraries: list[dict[str, Any]] = Field(default_factory=list)


def render_config(
    registry: LibraryRegistry,
    privileges: Iterable[Privilege | str],
) -> ConfigView:
    level = view_level(privileges)
    if level == "hidden":
        return ConfigView(level=level)
    exclude = None if level == "full" else set(_REDACTED_FIELDS)
    return ConfigView(
        level=level,
        libraries=[lib.model_dump(mode="json", exclude=exclude) for lib in registry.get_all()],
    )


def parse_view(view: ConfigView) -> list[LibraryDefinition]:
    """Turn a submitted view back into definitions (full views only)."""
    try:
        return _LIBRARY_LIST.validate_python(view.libraries)
    except ValidationError as exc:
        raise InvalidLibrariesError([str(exc)]) from exc


def submit_config(
    registry: LibraryRegistry,
    view: ConfigView | dict[str, Any],
    privileges: Iterable[Privilege | str],
) -> WriteOutcome:
    """Apply a submitted view when the caller may write; otherwise do nothing."""
    held = normalize_privileges(privileges)
    if decide(held, GateAction.WRITE) is Decision.DENY:
        logger.warning("Dropped library configuration submission from unprivileged caller")
        return WriteOutcome.DENIED

    if not isinstance(view, ConfigView):
        try:
            view = ConfigView.model_validate(view)
        except ValidationError as exc:
            raise InvalidLibrariesError([str(exc)]) from exc
    return registry.replace_all(parse_view(view), held)

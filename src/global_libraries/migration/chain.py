"""Load persisted registry bytes, migrating legacy shapes.

The current shape is tried first, then each legacy parser in fixed priority
order. A parser returns ``None`` when the bytes are not its shape and raises
``InvalidLibrariesError`` when they are but the content is unusable. Bytes
that no parser recognizes are fatal: an unreadable configuration never turns
into an empty registry.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import ValidationError

from global_libraries.core.store import CURRENT_FORMAT, RegistrySnapshot
from global_libraries.migration.json_v1 import parse_json_v1
from global_libraries.migration.xstream import parse_xstream
from global_libraries.registry.errors import (
    InvalidLibrariesError,
    UnrecognizedPersistedFormatError,
)

if TYPE_CHECKING:
    from global_libraries.libraries.base import LibraryDefinition

logger = logging.getLogger(__name__)

Parser = Callable[[bytes], "list[LibraryDefinition] | None"]


class MigrationState(str, Enum):
    CURRENT = "current"
    MIGRATED = "migrated"


@dataclass(frozen=True)
class MigrationResult:
    state: MigrationState
    source_format: str
    libraries: tuple[LibraryDefinition, ...]


def parse_current(data: bytes) -> list[LibraryDefinition] | None:
    try:
        raw = json.loads(data)
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(raw, dict) or raw.get("format") != CURRENT_FORMAT:
        return None
    try:
        return RegistrySnapshot.model_validate(raw).libraries
    except ValidationError as exc:
        raise InvalidLibrariesError([str(exc)]) from exc


LEGACY_PARSERS: tuple[tuple[str, Parser], ...] = (
    ("json-v1", parse_json_v1),
    ("xstream-xml", parse_xstream),
)


def migrate(
    data: bytes,
    parsers: tuple[tuple[str, Parser], ...] = LEGACY_PARSERS,
) -> MigrationResult:
    """Parse *data* as the current shape or the first matching legacy shape."""
    libraries = parse_current(data)
    if libraries is not None:
        return MigrationResult(MigrationState.CURRENT, f"v{CURRENT_FORMAT}", tuple(libraries))

    for name, parser in parsers:
        libraries = parser(data)
        if libraries is not None:
            logger.debug("Persisted libraries recognized as %s", name)
            return MigrationResult(MigrationState.MIGRATED, name, tuple(libraries))

    raise UnrecognizedPersistedFormatError([f"v{CURRENT_FORMAT}", *(n for n, _ in parsers)])

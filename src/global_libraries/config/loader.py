"""YAML library file loader."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from ruamel.yaml import YAML

from global_libraries.libraries.base import LibraryDefinition
from global_libraries.registry.registry import validate_libraries

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised for library file loading / validation errors."""


_SOURCE_ALIASES: dict[str, str] = {"svn": "subversion"}


def _none_to_list(v: Any) -> Any:
    return v if v is not None else []


def _normalize_entry(v: Any) -> Any:
    """Fill in the retriever ``kind`` and expand source type aliases.

    ``retriever: {source: ...}`` means ``kind: scm``;
    ``retriever: {path: ...}`` means ``kind: directory``.
    """
    if not isinstance(v, dict) or not isinstance(v.get("retriever"), dict):
        return v
    retriever = dict(v["retriever"])
    if "kind" not in retriever:
        if "source" in retriever:
            retriever["kind"] = "scm"
        elif "path" in retriever:
            retriever["kind"] = "directory"
    source = retriever.get("source")
    if isinstance(source, dict) and "type" in source:
        kind = source["type"]
        retriever["source"] = {**source, "type": _SOURCE_ALIASES.get(kind, kind)}
    return {**v, "retriever": retriever}


_LibraryEntry = Annotated[LibraryDefinition, BeforeValidator(_normalize_entry)]


class LibrariesFile(BaseModel):
    """Declarative library file: a ``libraries`` list in registry order."""

    model_config = ConfigDict(extra="forbid")

    libraries: Annotated[list[_LibraryEntry], BeforeValidator(_none_to_list)] = []


def load_libraries(path: Path | str) -> list[LibraryDefinition]:
    """Load a YAML library file.

    Raises:
        ConfigError: On YAML parse errors or validation failures.
    """
    path = Path(path)

    try:
        raw = YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc

    try:
        libraries = LibrariesFile.model_validate(raw or {}).libraries
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    errors = validate_libraries(libraries)
    if errors:
        raise ConfigError("\n".join(errors))

    logger.info("Loaded %d libraries from %s", len(libraries), path)
    return libraries

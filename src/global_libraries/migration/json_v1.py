"""Parser for the pre-trait JSON snapshot (no ``format`` key).

Shape::

    {
      "libraries": [
        {
          "name": "shared",
          "default_version": "main",
          "implicit": false,
          "allow_version_override": true,
          "retriever": {
            "scm": {
              "type": "git",
              "remote": "https://example.com/shared.git",
              "credentials_id": "deploy-key",
              "remote_name": "origin",
              "raw_refspecs": "+refs/heads/*:refs/remotes/origin/*",
              "includes": "*",
              "excludes": "",
              "git_tool": null,
              "ignore_on_push_notifications": true,
              "browser": {"kind": "GitLab", "url": "https://example.com/shared"}
            },
            "library_path": ""
          }
        }
      ]
    }

``scm.type`` may also be ``"subversion"`` (``remote``, ``credentials_id``,
``includes``, ``excludes``), and ``retriever`` may be ``{"directory": {"path": ...}}``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from global_libraries.libraries.base import LibraryDefinition
from global_libraries.libraries.retrievers import (
    AnyRetriever,
    DirectoryRetriever,
    SCMSourceRetriever,
)
from global_libraries.libraries.sources import AnySource, SubversionSource
from global_libraries.libraries.traits import GitBrowser
from global_libraries.migration.legacy import (
    DEFAULT_EXCLUDES,
    DEFAULT_INCLUDES,
    DEFAULT_REMOTE_NAME,
    LegacyGitFields,
    build_definition,
    parse_bool,
)
from global_libraries.registry.errors import InvalidLibrariesError


def _source(name: str, scm: dict[str, Any]) -> AnySource:
    kind = scm.get("type", "git")
    if kind == "subversion":
        return SubversionSource(
            remote=scm["remote"],
            credentials_id=scm.get("credentials_id") or None,
            includes=scm.get("includes") or SubversionSource.model_fields["includes"].default,
            excludes=scm.get("excludes") or "",
        )
    if kind != "git":
        raise InvalidLibrariesError([f"Library '{name}': unsupported source type {kind!r}"])

    browser = scm.get("browser")
    fields = LegacyGitFields(
        remote=scm["remote"],
        credentials_id=scm.get("credentials_id"),
        remote_name=scm.get("remote_name") or DEFAULT_REMOTE_NAME,
        raw_refspecs=scm.get("raw_refspecs"),
        includes=scm.get("includes") or DEFAULT_INCLUDES,
        excludes=scm.get("excludes") or DEFAULT_EXCLUDES,
        git_tool=scm.get("git_tool"),
        ignore_on_push_notifications=parse_bool(scm.get("ignore_on_push_notifications")),
        browser=GitBrowser.model_validate(browser) if browser else None,
    )
    return fields.to_source()


def _retriever(name: str, raw: dict[str, Any]) -> AnyRetriever:
    if "scm" in raw:
        return SCMSourceRetriever(
            source=_source(name, raw["scm"]),
            library_path=raw.get("library_path") or "",
        )
    if "directory" in raw:
        return DirectoryRetriever(path=raw["directory"]["path"])
    raise InvalidLibrariesError([f"Library '{name}': unsupported retriever {sorted(raw)}"])


def parse_json_v1(data: bytes) -> list[LibraryDefinition] | None:
    """Return migrated definitions, or ``None`` if *data* is not this shape."""
    try:
        raw = json.loads(data)
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(raw, dict) or "format" in raw or not isinstance(raw.get("libraries"), list):
        return None

    libraries = []
    for entry in raw["libraries"]:
        if not isinstance(entry, dict):
            raise InvalidLibrariesError([f"Malformed library entry: {entry!r}"])
        name = entry.get("name", "")
        try:
            retriever = _retriever(name, entry["retriever"])
        except (KeyError, TypeError) as exc:
            raise InvalidLibrariesError([f"Library '{name}': missing field {exc}"]) from exc
        except ValidationError as exc:
            raise InvalidLibrariesError([f"Library '{name}': {exc}"]) from exc
        libraries.append(
            build_definition(
                name,
                retriever=retriever,
                default_version=entry.get("default_version") or None,
                implicit=parse_bool(entry.get("implicit")),
                allow_version_override=parse_bool(entry.get("allow_version_override"), True),
                include_in_changesets=parse_bool(entry.get("include_in_changesets"), True),
            )
        )
    return libraries

"""Shared mapping from legacy flat source fields to trait-composed sources.

Older persisted shapes stored every git behavior as a flat field on the
source. Each field that differs from its legacy default becomes exactly one
trait; fields at their default produce no trait.

| legacy field                  | trait                          |
|-------------------------------|--------------------------------|
| ``includes`` / ``excludes``   | ``wildcard_filter``            |
| ``remoteName``                | ``remote_name``                |
| ``rawRefSpecs``               | ``refspecs``                   |
| ``gitTool``                   | ``git_tool``                   |
| ``ignoreOnPushNotifications`` | ``ignore_on_push_notification``|
| ``browser``                   | ``git_browser``                |
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from global_libraries.libraries.base import LibraryDefinition
from global_libraries.libraries.sources import GitSource
from global_libraries.libraries.traits import (
    AnyTrait,
    GitBrowser,
    GitBrowserTrait,
    GitToolTrait,
    IgnoreOnPushNotificationTrait,
    RefSpecsTrait,
    RemoteNameTrait,
    WildcardFilterTrait,
)
from global_libraries.registry.errors import InvalidLibrariesError

DEFAULT_INCLUDES = "*"
DEFAULT_EXCLUDES = ""
DEFAULT_REMOTE_NAME = "origin"
DEFAULT_GIT_TOOL = "Default"


def default_refspec(remote_name: str) -> str:
    return f"+refs/heads/*:refs/remotes/{remote_name}/*"


def parse_bool(value: Any, default: bool = False) -> bool:
    """Interpret legacy boolean encodings (``"true"``, ``True``, ``None``...)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


# Repository browser classes whose link layout is known, by class name suffix.
_BROWSER_KINDS: dict[str, str] = {
    "GitLab": "GitLab",
    "GithubWeb": "GitHub",
    "BitbucketWeb": "Bitbucket",
    "GiteaBrowser": "Gitea",
    "GitWeb": "GitWeb",
}


def browser_kind(class_name: str) -> str:
    """``hudson.plugins.git.browser.GithubWeb`` -> ``GitHub``.

    Unknown browsers keep their class name suffix (``AssemblaWeb``, ``CGit``...).
    """
    short = class_name.rsplit(".", 1)[-1] or "unknown"
    return _BROWSER_KINDS.get(short, short)


@dataclass
class LegacyGitFields:
    """Git source as persisted before traits existed."""

    remote: str
    credentials_id: str | None = None
    remote_name: str = DEFAULT_REMOTE_NAME
    raw_refspecs: str | None = None
    includes: str = DEFAULT_INCLUDES
    excludes: str = DEFAULT_EXCLUDES
    git_tool: str | None = None
    ignore_on_push_notifications: bool = False
    browser: GitBrowser | None = None

    def traits(self) -> list[AnyTrait]:
        traits: list[AnyTrait] = []
        if self.includes != DEFAULT_INCLUDES or self.excludes != DEFAULT_EXCLUDES:
            traits.append(WildcardFilterTrait(includes=self.includes, excludes=self.excludes))
        if self.remote_name != DEFAULT_REMOTE_NAME:
            traits.append(RemoteNameTrait(remote_name=self.remote_name))
        refspecs = (self.raw_refspecs or "").split()
        if refspecs and refspecs != [default_refspec(self.remote_name)]:
            traits.append(RefSpecsTrait(refspecs=tuple(refspecs)))
        if self.git_tool and self.git_tool != DEFAULT_GIT_TOOL:
            traits.append(GitToolTrait(git_tool=self.git_tool))
        if self.ignore_on_push_notifications:
            traits.append(IgnoreOnPushNotificationTrait())
        if self.browser is not None:
            traits.append(GitBrowserTrait(browser=self.browser))
        return traits

    def to_source(self) -> GitSource:
        return GitSource(
            remote=self.remote,
            credentials_id=self.credentials_id or None,
            traits=tuple(self.traits()),
        )


def build_definition(name: str, **fields: Any) -> LibraryDefinition:
    """Validate one migrated definition, reporting failures against its name."""
    try:
        return LibraryDefinition.model_validate({"name": name, **fields})
    except ValidationError as exc:
        raise InvalidLibrariesError([f"Library '{name}': {exc}"]) from exc

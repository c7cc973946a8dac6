"""Behavioral traits attached to SCM sources.

A trait is a small, independent modifier of how a source behaves. Traits
never change the identity of the source they decorate (its remote and
credentials); they only adjust:

- which versions are visible (``is_visible``)
- how a checkout is performed (``decorate``)
- whether push notifications are honoured (``accepts_push``)
- how revisions are linked in a repository browser (``browse_url``)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field


@dataclass
class CheckoutRequest:
    """Mutable checkout parameters, decorated by each trait before a clone."""

    remote: str
    version: str
    git_tool: str = "git"
    remote_name: str = "origin"
    refspecs: list[str] = field(default_factory=list)


class Trait(BaseModel):
    """Base class for source traits."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Canonical position within a source's trait tuple.
    trait_priority: ClassVar[int] = 100

    kind: str

    def is_visible(self, version: str) -> bool:
        _ = version
        return True

    def accepts_push(self) -> bool:
        return True

    def decorate(self, request: CheckoutRequest) -> None:
        _ = request

    def browse_url(self, version: str) -> str | None:
        _ = version
        return None


def _patterns(value: str) -> list[str]:
    return value.split()


class WildcardFilterTrait(Trait):
    """Restrict visible versions to space separated include/exclude globs."""

    trait_priority: ClassVar[int] = 10

    kind: Literal["wildcard_filter"] = "wildcard_filter"
    includes: str = "*"
    excludes: str = ""

    def is_visible(self, version: str) -> bool:
        if not any(fnmatchcase(version, p) for p in _patterns(self.includes)):
            return False
        return not any(fnmatchcase(version, p) for p in _patterns(self.excludes))


class RemoteNameTrait(Trait):
    trait_priority: ClassVar[int] = 20

    kind: Literal["remote_name"] = "remote_name"
    remote_name: str = Field(default="origin", min_length=1)

    def decorate(self, request: CheckoutRequest) -> None:
        request.remote_name = self.remote_name


class RefSpecsTrait(Trait):
    """Additional refspecs fetched alongside the requested version."""

    trait_priority: ClassVar[int] = 30

    kind: Literal["refspecs"] = "refspecs"
    refspecs: tuple[Annotated[str, Field(min_length=1)], ...] = Field(min_length=1)

    def decorate(self, request: CheckoutRequest) -> None:
        request.refspecs.extend(self.refspecs)


class GitToolTrait(Trait):
    trait_priority: ClassVar[int] = 40

    kind: Literal["git_tool"] = "git_tool"
    git_tool: str = Field(min_length=1)

    def decorate(self, request: CheckoutRequest) -> None:
        request.git_tool = self.git_tool


class IgnoreOnPushNotificationTrait(Trait):
    """Do not react to push notifications for this source."""

    trait_priority: ClassVar[int] = 50

    kind: Literal["ignore_on_push_notification"] = "ignore_on_push_notification"

    def accepts_push(self) -> bool:
        return False


_TREE_URLS: dict[str, str] = {
    "GitLab": "{url}/tree/{version}",
    "GitHub": "{url}/tree/{version}",
    "Bitbucket": "{url}/src/{version}",
    "Gitea": "{url}/src/branch/{version}",
    "GitWeb": "{url}?a=tree;hb={version}",
}


class GitBrowser(BaseModel):
    """Repository browser configuration (link style).

    ``kind`` is kept as given; kinds without a known URL layout produce no
    browse links but still round-trip.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str = Field(min_length=1)
    url: str | None = None
    version: str | None = None

    def tree_url(self, version: str) -> str | None:
        template = _TREE_URLS.get(self.kind)
        if not self.url or template is None:
            return None
        return template.format(url=self.url.rstrip("/"), version=version)


class GitBrowserTrait(Trait):
    trait_priority: ClassVar[int] = 60

    kind: Literal["git_browser"] = "git_browser"
    browser: GitBrowser

    def browse_url(self, version: str) -> str | None:
        return self.browser.tree_url(version)


AnyTrait = Annotated[
    WildcardFilterTrait
    | RemoteNameTrait
    | RefSpecsTrait
    | GitToolTrait
    | IgnoreOnPushNotificationTrait
    | GitBrowserTrait,
    Discriminator("kind"),
]

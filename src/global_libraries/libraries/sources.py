"""SCM source descriptors."""

from __future__ import annotations

import logging
import subprocess
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, field_validator

from global_libraries.libraries.traits import AnyTrait, CheckoutRequest

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def normalize_remote(remote: str) -> str:
    """Normalize a remote for comparison (trailing ``/`` and ``.git`` ignored)."""
    remote = remote.strip().rstrip("/")
    return remote.removesuffix(".git")


def _run(cmd: list[str]) -> None:
    logger.debug("Running %s", " ".join(cmd))
    subprocess.run(cmd, check=True, capture_output=True, text=True)


class Source(BaseModel):
    """Base class for SCM source descriptors.

    A source is identified by its remote and credentials reference. Traits
    modify behavior; they are stored in canonical order so that equality does
    not depend on the order they were declared in.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    supported_traits: ClassVar[frozenset[str]]

    type: str
    remote: str = Field(min_length=1)
    credentials_id: str | None = None
    traits: tuple[AnyTrait, ...] = ()

    @field_validator("traits")
    @classmethod
    def _canonical_traits(cls, traits: tuple[AnyTrait, ...]) -> tuple[AnyTrait, ...]:
        seen: set[str] = set()
        for trait in traits:
            if trait.kind not in cls.supported_traits:
                raise ValueError(f"Trait '{trait.kind}' is not applicable to {cls.__name__}")
            if trait.kind in seen:
                raise ValueError(f"Duplicate trait '{trait.kind}'")
            seen.add(trait.kind)
        return tuple(sorted(traits, key=lambda t: (t.trait_priority, t.kind)))

    def trait(self, kind: str) -> AnyTrait | None:
        """Return the trait of the given kind, or ``None``."""
        return next((t for t in self.traits if t.kind == kind), None)

    def is_visible(self, version: str) -> bool:
        return all(t.is_visible(version) for t in self.traits)

    def accepts_push(self) -> bool:
        return all(t.accepts_push() for t in self.traits)

    def browse_url(self, version: str) -> str | None:
        return next((u for t in self.traits if (u := t.browse_url(version))), None)

    def matches_remote(self, remote: str) -> bool:
        return normalize_remote(self.remote) == normalize_remote(remote)

    def open(self, version: str, target: Path) -> None:
        """Check out *version* into *target* (which must not exist yet)."""
        raise NotImplementedError


class GitSource(Source):
    """Git repository source."""

    supported_traits: ClassVar[frozenset[str]] = frozenset(
        {
            "wildcard_filter",
            "remote_name",
            "refspecs",
            "git_tool",
            "ignore_on_push_notification",
            "git_browser",
        }
    )

    type: Literal["git"] = "git"

    def checkout_request(self, version: str) -> CheckoutRequest:
        request = CheckoutRequest(remote=self.remote, version=version)
        for trait in self.traits:
            trait.decorate(request)
        return request

    def open(self, version: str, target: Path) -> None:
        request = self.checkout_request(version)
        git = request.git_tool
        if self.credentials_id:
            logger.debug("Using credentials %s for %s", self.credentials_id, self.remote)
        target.mkdir(parents=True)
        _run([git, "init", "--quiet", str(target)])
        _run([git, "-C", str(target), "remote", "add", request.remote_name, request.remote])
        _run(
            [
                git,
                "-C",
                str(target),
                "fetch",
                "--quiet",
                "--depth",
                "1",
                "--end-of-options",
                request.remote_name,
                request.version,
                *request.refspecs,
            ]
        )
        _run([git, "-C", str(target), "checkout", "--quiet", "FETCH_HEAD"])


class SubversionSource(Source):
    """Subversion repository source.

    ``includes``/``excludes`` are comma separated globs over repository paths
    such as ``trunk`` or ``branches/feature``.
    """

    supported_traits: ClassVar[frozenset[str]] = frozenset({"ignore_on_push_notification"})

    type: Literal["subversion"] = "subversion"
    includes: str = "trunk,branches/*,tags/*,sandbox/*"
    excludes: str = ""

    def is_visible(self, version: str) -> bool:
        includes = [p.strip() for p in self.includes.split(",") if p.strip()]
        excludes = [p.strip() for p in self.excludes.split(",") if p.strip()]
        if not any(fnmatchcase(version, p) for p in includes):
            return False
        if any(fnmatchcase(version, p) for p in excludes):
            return False
        return super().is_visible(version)

    def open(self, version: str, target: Path) -> None:
        url = f"{self.remote.rstrip('/')}/{version}"
        _run(["svn", "export", "--quiet", "--non-interactive", "--", url, str(target)])


AnySource = Annotated[GitSource | SubversionSource, Discriminator("type")]

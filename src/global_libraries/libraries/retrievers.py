"""Retriever variants: how a library's content is produced for a version."""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path, PurePosixPath
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, field_validator

from global_libraries.libraries.sources import AnySource
from global_libraries.registry.errors import FetchError
from global_libraries.registry.types import ResolvedLibrary

logger = logging.getLogger(__name__)

_VCS_DIRS = frozenset({".git", ".svn", ".hg"})


def collect_files(root: Path) -> dict[str, bytes]:
    """Read every regular file under *root*, skipping VCS metadata directories."""
    files: dict[str, bytes] = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root)
        if rel.parts[0] in _VCS_DIRS or not path.is_file():
            continue
        files[rel.as_posix()] = path.read_bytes()
    return files


def _is_safe_relative(value: str) -> bool:
    path = PurePosixPath(value)
    return not path.is_absolute() and ".." not in path.parts


def _is_plain_name(value: str) -> bool:
    """One path segment, not ``.`` or ``..`` and without separators."""
    if value in {".", ".."} or "\\" in value:
        return False
    return PurePosixPath(value).parts == (value,)


class Retriever(BaseModel):
    """Base class for retrievers."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str

    def fetch(self, name: str, version: str) -> ResolvedLibrary:
        """Produce the content of library *name* at *version*.

        Raises:
            FetchError: If the content cannot be produced.
        """
        raise NotImplementedError


class SCMSourceRetriever(Retriever):
    """Retrieve a library by checking out a version from an SCM source."""

    kind: Literal["scm"] = "scm"
    source: AnySource
    library_path: str = ""

    @field_validator("library_path")
    @classmethod
    def _check_library_path(cls, v: str) -> str:
        if not v:
            return v
        if not _is_safe_relative(v):
            raise ValueError("library_path must be relative and may not contain '..'")
        return PurePosixPath(v).as_posix()

    def fetch(self, name: str, version: str) -> ResolvedLibrary:
        # A leading dash would be read as a command line option by git and svn.
        if not version or version.startswith("-"):
            raise FetchError(name, version, "version may not be empty or start with '-'")
        if not self.source.is_visible(version):
            raise FetchError(name, version, "version is excluded by the source filters")

        with tempfile.TemporaryDirectory(prefix=f"{name}-") as tmp:
            checkout = Path(tmp) / "checkout"
            try:
                self.source.open(version, checkout)
            except subprocess.CalledProcessError as exc:
                stderr = (exc.stderr or "").strip()
                msg = f"checkout of {self.source.remote} failed"
                if stderr:
                    msg += f": {stderr}"
                raise FetchError(name, version, msg) from exc
            except OSError as exc:
                raise FetchError(name, version, str(exc)) from exc

            root = checkout / self.library_path if self.library_path else checkout
            if not root.is_dir():
                raise FetchError(name, version, f"no '{self.library_path}' in checkout")
            files = collect_files(root)

        logger.info("Fetched library %s@%s (%d files)", name, version, len(files))
        return ResolvedLibrary(
            name=name,
            version=version,
            files=files,
            browse_url=self.source.browse_url(version),
        )


class DirectoryRetriever(Retriever):
    """Retrieve a library from ``<path>/<version>/`` on the local filesystem."""

    kind: Literal["directory"] = "directory"
    path: Path

    def fetch(self, name: str, version: str) -> ResolvedLibrary:
        if not _is_plain_name(version):
            raise FetchError(name, version, "version may not be empty or contain path separators")
        root = self.path / version
        if not root.is_dir():
            raise FetchError(name, version, f"{root} does not exist")
        files = collect_files(root)
        logger.info("Loaded library %s@%s from %s (%d files)", name, version, root, len(files))
        return ResolvedLibrary(name=name, version=version, files=files)


AnyRetriever = Annotated[SCMSourceRetriever | DirectoryRetriever, Discriminator("kind")]

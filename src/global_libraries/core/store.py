"""Persistence of the library registry snapshot."""

import contextlib
import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from global_libraries.libraries.base import LibraryDefinition
from global_libraries.registry.lock import StoreLock

logger = logging.getLogger(__name__)

CURRENT_FORMAT = 2


def _canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


class RegistrySnapshot(BaseModel):
    """Current persisted shape of the registry.

    Attributes:
        format: Snapshot format version; legacy shapes carry none
        libraries: Library definitions in registry order
    """

    model_config = ConfigDict(extra="forbid")

    format: Literal[2] = CURRENT_FORMAT
    libraries: list[LibraryDefinition] = Field(default_factory=list)

    def to_bytes(self) -> bytes:
        data = self.model_dump(mode="json")
        return (json.dumps(data, indent=2, sort_keys=True) + "\n").encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "RegistrySnapshot":
        return cls.model_validate_json(data)


def compute_libraries_digest(libraries: Iterable[LibraryDefinition]) -> str:
    """Stable digest of an ordered set of definitions (retriever configuration included)."""
    payload = _canonical_json([lib.model_dump(mode="json") for lib in libraries])
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class RegistryStore:
    """File-backed store for registry snapshots.

    The store deals in opaque bytes; parsing (and migration of legacy
    shapes) happens in :mod:`global_libraries.migration`.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @property
    def backup_path(self) -> Path:
        return Path(str(self.path) + ".backup")

    def load(self) -> bytes | None:
        """Return the persisted bytes, or ``None`` when nothing has been saved yet."""
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            logger.debug("No registry snapshot at %s", self.path)
            return None
        logger.debug("Registry snapshot loaded from %s (%d bytes)", self.path, len(data))
        return data

    def save(self, data: bytes) -> None:
        """Persist *data*.

        - Writes atomically (temp file + rename) under a cross-process lock
        - Writes a `.backup` copy of the previous snapshot when overwriting
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with StoreLock(self.path):
            with contextlib.suppress(FileNotFoundError):
                self.backup_path.write_bytes(self.path.read_bytes())

            fd, tmp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
            tmp_file = Path(tmp_path)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                tmp_file.replace(self.path)
            finally:
                with contextlib.suppress(FileNotFoundError):
                    tmp_file.unlink()
        logger.debug("Registry snapshot saved: path=%s bytes=%d", self.path, len(data))

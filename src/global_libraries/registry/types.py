"""Registry result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class WriteOutcome(str, Enum):
    ACCEPTED = "accepted"
    DENIED = "denied"


@dataclass(frozen=True)
class ResolvedLibrary:
    """Content of one library at one version.

    ``files`` maps POSIX-style paths relative to the library root to file bytes.
    """

    name: str
    version: str
    files: Mapping[str, bytes] = field(default_factory=dict)
    browse_url: str | None = None

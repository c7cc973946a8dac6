"""Access policy for the library configuration surface.

The gate is a pure function of the caller's privileges and the requested
action. Configuring library sources lets a caller choose code that every
consuming context will load, so full views and writes require
``run_scripts``; ``administer`` alone only grants the redacted view.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from typing import Literal, TypeAlias

logger = logging.getLogger(__name__)


class Privilege(str, Enum):
    READ = "read"
    ADMINISTER = "administer"
    RUN_SCRIPTS = "run_scripts"


class GateAction(str, Enum):
    VIEW_REDACTED = "view-redacted"
    VIEW_FULL = "view-full"
    WRITE = "write"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


ViewLevel: TypeAlias = Literal["full", "redacted", "hidden"]

_REQUIRED: dict[GateAction, frozenset[Privilege]] = {
    GateAction.VIEW_REDACTED: frozenset(Privilege),
    GateAction.VIEW_FULL: frozenset({Privilege.RUN_SCRIPTS}),
    GateAction.WRITE: frozenset({Privilege.RUN_SCRIPTS}),
}


def normalize_privileges(privileges: Iterable[Privilege | str]) -> frozenset[Privilege]:
    """Coerce privilege names to ``Privilege`` members, dropping unknown names."""
    held: set[Privilege] = set()
    for p in privileges:
        try:
            held.add(Privilege(p))
        except ValueError:
            logger.debug("Ignoring unknown privilege %r", p)
    return frozenset(held)


def decide(privileges: Iterable[Privilege | str], action: GateAction) -> Decision:
    """Allow *action* when the caller holds any privilege that grants it."""
    held = normalize_privileges(privileges)
    return Decision.ALLOW if held & _REQUIRED[action] else Decision.DENY


def view_level(privileges: Iterable[Privilege | str]) -> ViewLevel:
    held = normalize_privileges(privileges)
    if decide(held, GateAction.VIEW_FULL) is Decision.ALLOW:
        return "full"
    if decide(held, GateAction.VIEW_REDACTED) is Decision.ALLOW:
        return "redacted"
    return "hidden"

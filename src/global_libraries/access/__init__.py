"""Access gate and gated rendering of the library configuration."""

from global_libraries.access.gate import (
    Decision,
    GateAction,
    Privilege,
    decide,
    normalize_privileges,
    view_level,
)
from global_libraries.access.view import ConfigView, parse_view, render_config, submit_config

__all__ = [
    "ConfigView",
    "Decision",
    "GateAction",
    "Privilege",
    "decide",
    "normalize_privileges",
    "parse_view",
    "render_config",
    "submit_config",
    "view_level",
]

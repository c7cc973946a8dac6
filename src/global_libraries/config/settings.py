"""Runtime settings for the library registry."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic_settings import BaseSettings, SettingsConfigDict

# Field name -> environment variable.
_ENV_MAP: dict[str, str] = {
    "store_path": "LIBS_STORE_PATH",
    "privileges": "LIBS_PRIVILEGES",
}


class RegistrySettings(BaseSettings):
    """Where the registry is persisted and who the local caller is.

    Fields can be passed explicitly or set via ``LIBS_``-prefixed environment
    variables.  ``privileges`` is a comma separated list such as
    ``read,run_scripts``.
    """

    model_config = SettingsConfigDict(env_prefix="LIBS_")

    store_path: Path = Path("global-libraries.json")
    privileges: str = ""

    @property
    def privilege_names(self) -> list[str]:
        return [p.strip() for p in self.privileges.split(",") if p.strip()]


def load_settings(config_dir: Path | str = Path(), **overrides: Any) -> RegistrySettings:
    """Resolve settings from explicit values, env vars and a ``.env`` file.

    Priority (highest wins): explicit value > env var > ``.env`` file.
    """
    env_file = Path(config_dir) / ".env"
    dotenv_vals = dotenv_values(env_file, encoding="utf-8-sig") if env_file.is_file() else {}

    resolved: dict[str, Any] = {}
    for field, env_key in _ENV_MAP.items():
        val = overrides.get(field)
        if val is None:
            val = os.environ.get(env_key)
        if val is None:
            val = dotenv_vals.get(env_key)
        if val is not None:
            resolved[field] = val
    return RegistrySettings(**resolved)

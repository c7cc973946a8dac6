"""Migration of persisted registry snapshots into the current model."""

from global_libraries.migration.chain import (
    LEGACY_PARSERS,
    MigrationResult,
    MigrationState,
    migrate,
    parse_current,
)

__all__ = ["LEGACY_PARSERS", "MigrationResult", "MigrationState", "migrate", "parse_current"]

"""Library definition model."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from global_libraries.libraries.retrievers import AnyRetriever

NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9._-]*$"


class LibraryDefinition(BaseModel):
    """One named library configuration.

    Definitions are immutable; the registry replaces them wholesale.

    Attributes:
        name: Unique library name, used in ``name@version`` requests
        retriever: How the library content is produced
        default_version: Version used when a request names none
        implicit: Load the library in every consuming context without a request
        allow_version_override: Whether requests may name a version other than
            ``default_version``
        include_in_changesets: Report library changes in consuming changelogs
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(pattern=NAME_PATTERN)
    retriever: AnyRetriever
    default_version: str | None = Field(default=None, min_length=1)
    implicit: bool = False
    allow_version_override: bool = True
    include_in_changesets: bool = True

    @model_validator(mode="after")
    def _check_fixed_version(self) -> Self:
        if not self.allow_version_override and self.default_version is None:
            raise ValueError("'default_version' is required when version override is disallowed")
        return self

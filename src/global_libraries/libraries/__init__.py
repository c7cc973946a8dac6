"""Library definition, retriever, source and trait models."""

from global_libraries.libraries.base import LibraryDefinition
from global_libraries.libraries.retrievers import (
    AnyRetriever,
    DirectoryRetriever,
    Retriever,
    SCMSourceRetriever,
)
from global_libraries.libraries.sources import AnySource, GitSource, Source, SubversionSource
from global_libraries.libraries.traits import (
    AnyTrait,
    GitBrowser,
    GitBrowserTrait,
    GitToolTrait,
    IgnoreOnPushNotificationTrait,
    RefSpecsTrait,
    RemoteNameTrait,
    Trait,
    WildcardFilterTrait,
)

__all__ = [
    "AnyRetriever",
    "AnySource",
    "AnyTrait",
    "DirectoryRetriever",
    "GitBrowser",
    "GitBrowserTrait",
    "GitSource",
    "GitToolTrait",
    "IgnoreOnPushNotificationTrait",
    "LibraryDefinition",
    "RefSpecsTrait",
    "RemoteNameTrait",
    "Retriever",
    "SCMSourceRetriever",
    "Source",
    "SubversionSource",
    "Trait",
    "WildcardFilterTrait",
]

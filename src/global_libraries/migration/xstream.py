"""Parser for the legacy XML configuration (XStream serialization).

The automation server persisted the global library list as XML::

    <org.jenkinsci.plugins.workflow.libs.GlobalLibraries>
      <libraries>
        <org.jenkinsci.plugins.workflow.libs.LibraryConfiguration>
          <name>shared</name>
          <retriever class="org.jenkinsci.plugins.workflow.libs.SCMSourceRetriever">
            <scm class="jenkins.plugins.git.GitSCMSource">
              <remote>git@example.com/shared.git</remote>
              <ignoreOnPushNotifications>true</ignoreOnPushNotifications>
              <browser class="hudson.plugins.git.browser.GitLab">...</browser>
            </scm>
          </retriever>
          <defaultVersion>master</defaultVersion>
          <implicit>false</implicit>
          <allowVersionOverride>true</allowVersionOverride>
        </org.jenkinsci.plugins.workflow.libs.LibraryConfiguration>
      </libraries>
    </org.jenkinsci.plugins.workflow.libs.GlobalLibraries>

Git sources either carry the flat pre-trait fields (``remoteName``,
``rawRefSpecs``, ``includes``, ``excludes``, ``gitTool``,
``ignoreOnPushNotifications``, ``browser``) or, when written by a newer git
plugin, a ``<traits>`` list. Both map onto the same trait set.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING
from xml.etree import ElementTree as ET

from pydantic import ValidationError

from global_libraries.libraries.retrievers import SCMSourceRetriever
from global_libraries.libraries.sources import AnySource, GitSource, SubversionSource
from global_libraries.libraries.traits import (
    AnyTrait,
    GitBrowser,
    GitBrowserTrait,
    GitToolTrait,
    IgnoreOnPushNotificationTrait,
    RefSpecsTrait,
    RemoteNameTrait,
    WildcardFilterTrait,
)
from global_libraries.migration.legacy import (
    DEFAULT_EXCLUDES,
    DEFAULT_INCLUDES,
    DEFAULT_REMOTE_NAME,
    LegacyGitFields,
    browser_kind,
    build_definition,
    default_refspec,
    parse_bool,
)
from global_libraries.registry.errors import InvalidLibrariesError

if TYPE_CHECKING:
    from global_libraries.libraries.base import LibraryDefinition

logger = logging.getLogger(__name__)

# Expat only understands XML 1.0 declarations; the server writes 1.1.
_XML_DECLARATION = re.compile(rb"^\s*<\?xml[^>]*\?>")

_SCM_SOURCE_RETRIEVER = "SCMSourceRetriever"
_GIT_SOURCE = "GitSCMSource"
_SUBVERSION_SOURCE = "SubversionSCMSource"

# Traits with no counterpart: every ref is fetchable by name.
_IMPLIED_TRAITS = frozenset({"BranchDiscoveryTrait", "TagDiscoveryTrait"})


def _short(class_name: str | None) -> str:
    return (class_name or "").rsplit(".", 1)[-1]


def _text(el: ET.Element, tag: str, default: str | None = None) -> str | None:
    child = el.find(tag)
    if child is None:
        return default
    return (child.text or "").strip()


def _browser(el: ET.Element | None) -> GitBrowser | None:
    if el is None:
        return None
    return GitBrowser(
        kind=browser_kind(el.get("class", "")),
        url=_text(el, "url") or None,
        version=_text(el, "version") or None,
    )


def _trait_list(name: str, traits_el: ET.Element) -> list[AnyTrait]:
    traits: list[AnyTrait] = []
    for el in traits_el:
        kind = _short(el.tag)
        if kind in _IMPLIED_TRAITS:
            continue
        if kind == "IgnoreOnPushNotificationTrait":
            traits.append(IgnoreOnPushNotificationTrait())
        elif kind == "GitBrowserSCMSourceTrait":
            traits.append(GitBrowserTrait(browser=_browser(el.find("browser"))))
        elif kind == "GitToolSCMSourceTrait":
            traits.append(GitToolTrait(git_tool=_text(el, "gitTool") or ""))
        elif kind == "RemoteNameSCMSourceTrait":
            traits.append(RemoteNameTrait(remote_name=_text(el, "remoteName") or ""))
        elif kind == "WildcardSCMHeadFilterTrait":
            traits.append(
                WildcardFilterTrait(
                    includes=_text(el, "includes") or DEFAULT_INCLUDES,
                    excludes=_text(el, "excludes") or DEFAULT_EXCLUDES,
                )
            )
        elif kind == "RefSpecsSCMSourceTrait":
            values = [v.text.strip() for v in el.iter("value") if v.text and v.text.strip()]
            traits.append(RefSpecsTrait(refspecs=tuple(values)))
        else:
            raise InvalidLibrariesError([f"Library '{name}': unsupported trait {el.tag}"])
    return traits


def _git_source(name: str, scm: ET.Element) -> GitSource:
    remote = _text(scm, "remote") or ""
    credentials_id = _text(scm, "credentialsId") or None
    traits_el = scm.find("traits")
    if traits_el is not None:
        return GitSource(
            remote=remote,
            credentials_id=credentials_id,
            traits=tuple(_trait_list(name, traits_el)),
        )

    remote_name = _text(scm, "remoteName") or DEFAULT_REMOTE_NAME
    fields = LegacyGitFields(
        remote=remote,
        credentials_id=credentials_id,
        remote_name=remote_name,
        raw_refspecs=_text(scm, "rawRefSpecs", default_refspec(remote_name)),
        includes=_text(scm, "includes") or DEFAULT_INCLUDES,
        excludes=_text(scm, "excludes") or DEFAULT_EXCLUDES,
        git_tool=_text(scm, "gitTool") or None,
        ignore_on_push_notifications=parse_bool(_text(scm, "ignoreOnPushNotifications")),
        browser=_browser(scm.find("browser")),
    )
    return fields.to_source()


def _source(name: str, scm: ET.Element) -> AnySource:
    kind = _short(scm.get("class"))
    if kind == _GIT_SOURCE:
        return _git_source(name, scm)
    if kind == _SUBVERSION_SOURCE:
        return SubversionSource(
            remote=_text(scm, "remote") or "",
            credentials_id=_text(scm, "credentialsId") or None,
            includes=_text(scm, "includes") or SubversionSource.model_fields["includes"].default,
            excludes=_text(scm, "excludes") or "",
        )
    raise InvalidLibrariesError([f"Library '{name}': unsupported source class {kind or '?'}"])


def _definition(el: ET.Element) -> LibraryDefinition:
    name = _text(el, "name") or ""
    retriever_el = el.find("retriever")
    if retriever_el is None or _short(retriever_el.get("class")) != _SCM_SOURCE_RETRIEVER:
        found = None if retriever_el is None else retriever_el.get("class")
        raise InvalidLibrariesError([f"Library '{name}': unsupported retriever {found}"])
    scm = retriever_el.find("scm")
    if scm is None:
        raise InvalidLibrariesError([f"Library '{name}': retriever has no <scm>"])

    try:
        retriever = SCMSourceRetriever(
            source=_source(name, scm),
            library_path=_text(retriever_el, "libraryPath") or "",
        )
    except ValidationError as exc:
        raise InvalidLibrariesError([f"Library '{name}': {exc}"]) from exc

    return build_definition(
        name,
        retriever=retriever,
        default_version=_text(el, "defaultVersion") or None,
        implicit=parse_bool(_text(el, "implicit")),
        allow_version_override=parse_bool(_text(el, "allowVersionOverride"), True),
        include_in_changesets=parse_bool(_text(el, "includeInChangesets"), True),
    )


def parse_xstream(data: bytes) -> list[LibraryDefinition] | None:
    """Return migrated definitions, or ``None`` if *data* is not this shape."""
    try:
        root = ET.fromstring(_XML_DECLARATION.sub(b"", data, count=1))
    except ET.ParseError:
        return None
    if not _short(root.tag).endswith("GlobalLibraries"):
        return None

    libraries_el = root.find("libraries")
    if libraries_el is None:
        logger.debug("Legacy XML has no <libraries> element")
        return []
    return [_definition(el) for el in libraries_el]

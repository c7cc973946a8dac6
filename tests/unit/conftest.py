"""Shared fixtures for unit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from global_libraries.core.store import RegistryStore
from global_libraries.libraries import (
    DirectoryRetriever,
    GitBrowser,
    GitBrowserTrait,
    GitSource,
    IgnoreOnPushNotificationTrait,
    LibraryDefinition,
    SCMSourceRetriever,
    SubversionSource,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

_LIBS_ENV_VARS = ("LIBS_STORE_PATH", "LIBS_PRIVILEGES", "LIBS_LOG")

LEGACY_XML = b"""<?xml version='1.1' encoding='UTF-8'?>
<org.jenkinsci.plugins.workflow.libs.GlobalLibraries plugin="workflow-cps-global-lib@2.8">
  <libraries>
    <org.jenkinsci.plugins.workflow.libs.LibraryConfiguration>
      <name>jenkins-groovy-common</name>
      <retriever class="org.jenkinsci.plugins.workflow.libs.SCMSourceRetriever">
        <scm class="jenkins.plugins.git.GitSCMSource" plugin="git@3.3.0">
          <id>6ac7e6a6-31b6-4b23-a2b4-c7a1c8b47a2f</id>
          <remote>git@mygitserver/jenkins-groovy-common.git</remote>
          <credentialsId>gitlab-deploy-key</credentialsId>
          <remoteName>origin</remoteName>
          <rawRefSpecs>+refs/heads/*:refs/remotes/origin/*</rawRefSpecs>
          <includes>*</includes>
          <excludes></excludes>
          <ignoreOnPushNotifications>true</ignoreOnPushNotifications>
          <browser class="hudson.plugins.git.browser.GitLab">
            <url>https://mygitserver/jenkins-groovy-common</url>
            <version>9.0</version>
          </browser>
          <gitTool>Default</gitTool>
        </scm>
      </retriever>
      <defaultVersion>master</defaultVersion>
      <implicit>false</implicit>
      <allowVersionOverride>true</allowVersionOverride>
      <includeInChangesets>true</includeInChangesets>
    </org.jenkinsci.plugins.workflow.libs.LibraryConfiguration>
  </libraries>
</org.jenkinsci.plugins.workflow.libs.GlobalLibraries>
"""


@pytest.fixture(autouse=True)
def _clean_libs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove LIBS_* env vars so unit tests don't leak host config."""
    for var in _LIBS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def legacy_xml() -> bytes:
    return LEGACY_XML


@pytest.fixture
def store(tmp_path: Path) -> RegistryStore:
    return RegistryStore(tmp_path / "libraries.json")


@pytest.fixture
def foo() -> LibraryDefinition:
    return LibraryDefinition(
        name="foo",
        retriever=SCMSourceRetriever(
            source=SubversionSource(remote="https://phony.example.io/foo/")
        ),
    )


@pytest.fixture
def bar() -> LibraryDefinition:
    return LibraryDefinition(
        name="bar",
        retriever=SCMSourceRetriever(
            source=GitSource(
                remote="https://phony.example.io/bar.git",
                credentials_id="bar-key",
                traits=(
                    GitBrowserTrait(
                        browser=GitBrowser(kind="GitLab", url="https://phony.example.io/bar")
                    ),
                    IgnoreOnPushNotificationTrait(),
                ),
            )
        ),
        default_version="master",
        implicit=True,
        allow_version_override=False,
    )


@pytest.fixture
def make_directory_library(tmp_path: Path) -> Callable[..., LibraryDefinition]:
    """Factory fixture: lay out ``<root>/<version>/`` files, return a definition."""

    def _make(
        name: str,
        versions: dict[str, dict[str, str]],
        **fields: object,
    ) -> LibraryDefinition:
        root = tmp_path / "libs" / name
        for version, files in versions.items():
            for rel, content in files.items():
                path = root / version / rel
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content)
        root.mkdir(parents=True, exist_ok=True)
        return LibraryDefinition(name=name, retriever=DirectoryRetriever(path=root), **fields)

    return _make

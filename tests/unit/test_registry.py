"""Tests for the library registry service."""

from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from global_libraries.core.store import RegistrySnapshot
from global_libraries.libraries import (
    GitSource,
    IgnoreOnPushNotificationTrait,
    LibraryDefinition,
    SCMSourceRetriever,
)
from global_libraries.registry.errors import (
    FetchError,
    InvalidLibrariesError,
    LibraryNotFoundError,
    MissingVersionError,
    UnrecognizedPersistedFormatError,
    VersionOverrideDeniedError,
)
from global_libraries.registry.registry import (
    LibraryRegistry,
    parse_library_request,
    validate_libraries,
)
from global_libraries.registry.types import WriteOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from global_libraries.core.store import RegistryStore

PRIVILEGED = {"administer", "run_scripts"}
ADMIN_ONLY = {"administer", "read"}


def _git(name: str, remote: str, *, ignore_push: bool = False) -> LibraryDefinition:
    traits = (IgnoreOnPushNotificationTrait(),) if ignore_push else ()
    return LibraryDefinition(
        name=name,
        retriever=SCMSourceRetriever(source=GitSource(remote=remote, traits=traits)),
        default_version="main",
    )


class TestValidateLibraries:
    def test_valid(self, foo: LibraryDefinition, bar: LibraryDefinition) -> None:
        assert validate_libraries([foo, bar]) == []

    def test_duplicate_names(self, foo: LibraryDefinition) -> None:
        errors = validate_libraries([foo, foo])
        assert errors == ["Duplicate library name 'foo'"]

    def test_fixed_version_without_default(self, foo: LibraryDefinition) -> None:
        broken = LibraryDefinition.model_construct(
            **{**dict(foo), "allow_version_override": False, "default_version": None}
        )
        errors = validate_libraries([broken])
        assert len(errors) == 1
        assert "default_version is required" in errors[0]


class TestParseLibraryRequest:
    @pytest.mark.parametrize(
        ("request_str", "expected"),
        [
            ("shared", ("shared", None)),
            ("shared@1.0", ("shared", "1.0")),
            ("shared@", ("shared", None)),
            ("shared@feature/x", ("shared", "feature/x")),
        ],
    )
    def test_parse(self, request_str: str, expected: tuple[str, str | None]) -> None:
        assert parse_library_request(request_str) == expected


class TestReplaceAll:
    def test_privileged_write(
        self, store: RegistryStore, foo: LibraryDefinition, bar: LibraryDefinition
    ) -> None:
        registry = LibraryRegistry(store)
        assert registry.replace_all([foo, bar], PRIVILEGED) is WriteOutcome.ACCEPTED
        assert registry.get_all() == (foo, bar)

        persisted = RegistrySnapshot.from_bytes(store.path.read_bytes())
        assert persisted.libraries == [foo, bar]

    def test_denied_write_changes_nothing(
        self, store: RegistryStore, foo: LibraryDefinition, bar: LibraryDefinition
    ) -> None:
        registry = LibraryRegistry(store)
        registry.replace_all([foo], PRIVILEGED)
        before = store.path.read_bytes()
        digest = registry.digest

        assert registry.replace_all([bar], ADMIN_ONLY) is WriteOutcome.DENIED

        assert registry.get_all() == (foo,)
        assert registry.digest == digest
        assert store.path.read_bytes() == before

    def test_denied_write_is_logged(
        self, foo: LibraryDefinition, caplog: pytest.LogCaptureFixture
    ) -> None:
        registry = LibraryRegistry()
        with caplog.at_level("WARNING", logger="global_libraries"):
            registry.replace_all([foo], ["read"])
        assert "Ignored library configuration write" in caplog.text

    def test_denied_write_skips_validation(self, foo: LibraryDefinition) -> None:
        registry = LibraryRegistry()
        assert registry.replace_all([foo, foo], ADMIN_ONLY) is WriteOutcome.DENIED

    def test_duplicate_names_rejected(self, foo: LibraryDefinition) -> None:
        registry = LibraryRegistry()
        with pytest.raises(InvalidLibrariesError) as exc_info:
            registry.replace_all([foo, foo], PRIVILEGED)
        assert exc_info.value.errors == ["Duplicate library name 'foo'"]
        assert registry.get_all() == ()

    def test_invalid_batch_not_applied_in_part(
        self, foo: LibraryDefinition, bar: LibraryDefinition
    ) -> None:
        registry = LibraryRegistry(libraries=[foo])
        with pytest.raises(InvalidLibrariesError):
            registry.replace_all([bar, bar], PRIVILEGED)
        assert registry.get_all() == (foo,)

    def test_store_failure_leaves_registry_unchanged(
        self, store: RegistryStore, foo: LibraryDefinition, bar: LibraryDefinition
    ) -> None:
        registry = LibraryRegistry(store, [foo])
        with (
            patch.object(type(store), "save", side_effect=OSError("disk full")),
            pytest.raises(OSError, match="disk full"),
        ):
            registry.replace_all([bar], PRIVILEGED)
        assert registry.get_all() == (foo,)

    def test_empty_replace(self, foo: LibraryDefinition) -> None:
        registry = LibraryRegistry(libraries=[foo])
        assert registry.replace_all([], PRIVILEGED) is WriteOutcome.ACCEPTED
        assert registry.get_all() == ()

    def test_readers_see_whole_configurations(
        self, foo: LibraryDefinition, bar: LibraryDefinition
    ) -> None:
        registry = LibraryRegistry(libraries=[foo])
        seen: list[tuple[LibraryDefinition, ...]] = []
        stop = threading.Event()

        def read() -> None:
            while not stop.is_set():
                seen.append(registry.get_all())

        reader = threading.Thread(target=read)
        reader.start()
        try:
            for _ in range(50):
                registry.replace_all([foo, bar], PRIVILEGED)
                registry.replace_all([foo], PRIVILEGED)
        finally:
            stop.set()
            reader.join()

        assert set(seen) <= {(foo,), (foo, bar)}


class TestLoad:
    def test_missing_store_is_empty(self, store: RegistryStore) -> None:
        assert LibraryRegistry.load(store).get_all() == ()

    def test_current_snapshot(
        self, store: RegistryStore, foo: LibraryDefinition, bar: LibraryDefinition
    ) -> None:
        LibraryRegistry(store).replace_all([foo, bar], PRIVILEGED)
        assert LibraryRegistry.load(store).get_all() == (foo, bar)

    def test_unrecognized_bytes_are_fatal(self, store: RegistryStore) -> None:
        store.path.write_bytes(b"not a registry")
        with pytest.raises(UnrecognizedPersistedFormatError):
            LibraryRegistry.load(store)

    def test_legacy_snapshot_rewritten(self, store: RegistryStore, legacy_xml: bytes) -> None:
        store.path.write_bytes(legacy_xml)
        registry = LibraryRegistry.load(store)

        rewritten = json.loads(store.path.read_bytes())
        assert rewritten["format"] == 2
        assert [lib["name"] for lib in rewritten["libraries"]] == ["jenkins-groovy-common"]
        assert store.backup_path.read_bytes() == legacy_xml
        assert LibraryRegistry.load(store).get_all() == registry.get_all()

    def test_legacy_snapshot_left_alone(self, store: RegistryStore, legacy_xml: bytes) -> None:
        store.path.write_bytes(legacy_xml)
        registry = LibraryRegistry.load(store, rewrite_legacy=False)
        assert len(registry.get_all()) == 1
        assert store.path.read_bytes() == legacy_xml

    def test_invalid_constructor_input(self, foo: LibraryDefinition) -> None:
        with pytest.raises(InvalidLibrariesError):
            LibraryRegistry(libraries=[foo, foo])


class TestResolve:
    def test_lookup(self, foo: LibraryDefinition, bar: LibraryDefinition) -> None:
        registry = LibraryRegistry(libraries=[foo, bar])
        assert registry.lookup("bar") is bar
        with pytest.raises(LibraryNotFoundError, match="'baz'"):
            registry.lookup("baz")

    def test_default_version(
        self, make_directory_library: Callable[..., LibraryDefinition]
    ) -> None:
        lib = make_directory_library(
            "shared",
            {"1.0": {"vars/a.groovy": "one"}, "2.0": {"vars/a.groovy": "two"}},
            default_version="1.0",
        )
        resolved = LibraryRegistry(libraries=[lib]).resolve("shared")
        assert resolved.version == "1.0"
        assert resolved.files == {"vars/a.groovy": b"one"}

    def test_override(self, make_directory_library: Callable[..., LibraryDefinition]) -> None:
        lib = make_directory_library(
            "shared",
            {"1.0": {"vars/a.groovy": "one"}, "2.0": {"vars/a.groovy": "two"}},
            default_version="1.0",
        )
        resolved = LibraryRegistry(libraries=[lib]).resolve("shared", "2.0")
        assert resolved.files == {"vars/a.groovy": b"two"}

    def test_override_denied(self, bar: LibraryDefinition) -> None:
        registry = LibraryRegistry(libraries=[bar])
        with pytest.raises(VersionOverrideDeniedError) as exc_info:
            registry.resolve("bar", "develop")
        assert exc_info.value.requested == "develop"
        assert exc_info.value.default == "master"

    def test_fixed_version_requested_explicitly(
        self, make_directory_library: Callable[..., LibraryDefinition]
    ) -> None:
        lib = make_directory_library(
            "pinned",
            {"1.0": {"vars/a.groovy": "one"}},
            default_version="1.0",
            allow_version_override=False,
        )
        assert LibraryRegistry(libraries=[lib]).resolve("pinned", "1.0").version == "1.0"

    def test_missing_version(self, foo: LibraryDefinition) -> None:
        with pytest.raises(MissingVersionError):
            LibraryRegistry(libraries=[foo]).resolve("foo")

    def test_fetch_error_propagates(
        self, make_directory_library: Callable[..., LibraryDefinition]
    ) -> None:
        lib = make_directory_library("shared", {"1.0": {"a": "x"}})
        with pytest.raises(FetchError):
            LibraryRegistry(libraries=[lib]).resolve("shared", "9.9")

    def test_option_like_version_never_reaches_git(self) -> None:
        lib = _git("shared", "https://git.example.com/org/shared.git")
        registry = LibraryRegistry(libraries=[lib])
        with (
            patch("global_libraries.libraries.sources.subprocess.run") as mock_run,
            pytest.raises(FetchError),
        ):
            registry.resolve("shared", "--upload-pack=touch /tmp/marker;git-upload-pack")
        mock_run.assert_not_called()

    def test_unknown_library(self) -> None:
        with pytest.raises(LibraryNotFoundError):
            LibraryRegistry().resolve("nope", "1.0")


class TestQueries:
    def test_list_implicit_keeps_order(
        self, make_directory_library: Callable[..., LibraryDefinition]
    ) -> None:
        a = make_directory_library("a", {}, implicit=True, default_version="1")
        b = make_directory_library("b", {})
        c = make_directory_library("c", {}, implicit=True, default_version="1")
        registry = LibraryRegistry(libraries=[c, b, a])
        assert [lib.name for lib in registry.list_implicit()] == ["c", "a"]

    def test_libraries_for_push(
        self, make_directory_library: Callable[..., LibraryDefinition]
    ) -> None:
        remote = "https://git.example.com/org/shared.git"
        listening = _git("listening", remote)
        ignoring = _git("ignoring", remote, ignore_push=True)
        other = _git("other", "https://git.example.com/org/other.git")
        local = make_directory_library("local", {})
        registry = LibraryRegistry(libraries=[listening, ignoring, other, local])

        assert registry.libraries_for_push("https://git.example.com/org/shared") == (listening,)

    def test_digest_tracks_content(self, foo: LibraryDefinition, bar: LibraryDefinition) -> None:
        assert LibraryRegistry(libraries=[foo]).digest == LibraryRegistry(libraries=[foo]).digest
        assert LibraryRegistry(libraries=[foo]).digest != LibraryRegistry(libraries=[bar]).digest

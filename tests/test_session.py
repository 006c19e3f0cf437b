"""
Unit tests for the organizer session.
"""

import json

import pytest

from bookmark_organizer.config.configuration import Configuration
from bookmark_organizer.config.pydantic_config import OrganizerConfig
from bookmark_organizer.core.data_models import EntryDraft, Folder, Link
from bookmark_organizer.core.key_value_store import FileKeyValueStore, MemoryKeyValueStore
from bookmark_organizer.core.mutation_engine import Backend
from bookmark_organizer.core.remote_store import AuthState
from bookmark_organizer.core.session import OrganizerSession
from bookmark_organizer.utils.error_handler import (
    CorruptLocalStateError,
    FolderNotFoundError,
    NotAuthenticatedError,
    ValidationError,
)
from tests.fixtures.test_data import SAMPLE_TREE_DATA, VALID_TOKEN


@pytest.fixture
def local_session(session, sample_tree):
    """Session with the sample tree stored locally."""
    session.local.save(sample_tree)
    session.open()
    return session


@pytest.fixture
def verified_session(session):
    session.remote.set_credential(VALID_TOKEN)
    assert session.remote.test_connection().success
    session.open()
    return session


class TestSessionConstruction:
    """Test building a session from configuration."""

    def test_from_config_uses_data_dir(self, session, configuration):
        assert isinstance(session.local.store, FileKeyValueStore)
        assert session.local.store.directory == configuration.storage.data_dir
        assert session.remote.client is not None
        assert session.remote.client.owner == "octocat"

    def test_from_config_without_repository(self):
        config = Configuration(config=OrganizerConfig(logging={"log_to_file": False}))
        session = OrganizerSession.from_config(config, store=MemoryKeyValueStore())

        assert session.remote.client is None
        assert session.auth_state is AuthState.UNAUTHENTICATED

    def test_starts_at_root_with_empty_tree(self, session):
        assert session.tree == []
        assert session.breadcrumb == []
        assert session.current_path_string == ""


class TestLoading:
    """Test choosing the source of the tree."""

    def test_open_reads_local_when_unverified(self, session, sample_tree, fake_github):
        session.local.save(sample_tree)

        assert session.open() == sample_tree
        assert session.source is Backend.LOCAL
        assert fake_github.requests == []

    def test_open_reads_remote_when_verified(self, verified_session, sample_tree):
        assert verified_session.tree == sample_tree
        assert verified_session.source is Backend.REMOTE
        assert verified_session.local.has_snapshot() is False

    def test_reload_keeps_location(self, local_session):
        local_session.navigate("Dev/Go")

        local_session.reload()

        assert local_session.current_path_string == "Dev/Go"

    def test_reload_falls_back_to_root(self, local_session):
        local_session.navigate("Dev/Go")
        local_session.local.save([])

        local_session.reload()

        assert local_session.breadcrumb == []


class TestNavigation:
    """Test moving around the tree."""

    def test_navigate(self, local_session):
        local_session.navigate("dev/go")

        assert [crumb.name for crumb in local_session.breadcrumb] == ["Dev", "Go"]
        assert local_session.current_path_string == "Dev/Go"
        assert [e.name for e in local_session.current_entries()] == ["Go docs"]
        assert local_session.current_folder.name == "Go"

    def test_navigate_unknown_resets_to_root(self, local_session):
        local_session.navigate("Dev")

        with pytest.raises(FolderNotFoundError):
            local_session.navigate("Dev/Nope")

        assert local_session.breadcrumb == []
        assert len(local_session.current_entries()) == 3

    def test_go_up_and_home(self, local_session):
        local_session.navigate(["Dev", "Go"])

        local_session.go_up()
        assert local_session.current_path_string == "Dev"

        local_session.go_home()
        assert local_session.current_path_string == ""

    def test_go_up_at_root(self, local_session):
        assert local_session.go_up().is_root

    def test_current_entries_is_a_copy(self, local_session):
        local_session.current_entries().clear()

        assert len(local_session.current_entries()) == 3


class TestSessionMutations:
    """Test adding, importing, exporting and clearing."""

    def test_add_entry_at_current_path(self, local_session):
        local_session.navigate("Dev")

        result = local_session.add_entry(EntryDraft("Rust", "Rust site", "https://rust-lang.org"))

        assert result.location == "folder: Dev"
        assert local_session.current_path_string == "Dev"
        assert [e.name for e in local_session.current_entries()][-1] == "Rust"
        assert local_session.local.load()[0].children[-1].name == "Rust"

    def test_add_entry_remote(self, verified_session, fake_github):
        verified_session.navigate("C%2FC%2B%2B")

        result = verified_session.add_entry(EntryDraft("Rust", "Rust site", "https://rust-lang.org"))

        assert result.backend is Backend.REMOTE
        assert fake_github.commits == ["Add link: Rust to folder: C/C++"]
        assert verified_session.current_entries()[0].name == "Rust"

    def test_add_entry_in_folder_with_literal_percent(self, session):
        session.local.save([Folder("a%2Fb", "Literal percent")])
        session.open()
        session.navigate(["a%252Fb"])

        result = session.add_entry(EntryDraft("Go", "Go site", "https://go.dev"))

        assert result.location == "folder: a%2Fb"
        assert session.current_folder.name == "a%2Fb"
        assert session.local.load()[0].children[0].name == "Go"

        session.reload()
        assert session.current_folder.name == "a%2Fb"
        assert session.go_up().is_root

    def test_add_entry_forced_remote_unauthenticated(self, local_session):
        with pytest.raises(NotAuthenticatedError):
            local_session.add_entry(
                EntryDraft("Rust", "Rust site", "https://rust-lang.org"), Backend.REMOTE
            )

    def test_import_resets_to_root(self, local_session):
        local_session.navigate("Dev")

        tree = local_session.import_snapshot(
            json.dumps([{"name": "Go", "description": "Go site", "url": "https://go.dev"}])
        )

        assert tree == [Link("Go", "Go site", "https://go.dev")]
        assert local_session.breadcrumb == []
        assert local_session.current_entries() == tree

    def test_failed_import_keeps_tree(self, local_session, sample_tree):
        with pytest.raises(ValidationError):
            local_session.import_snapshot('{"name": "Dev"}')

        assert local_session.tree == sample_tree
        assert local_session.local.load() == sample_tree

    def test_import_file(self, session, temp_dir, sample_tree):
        path = temp_dir / "import.json"
        path.write_text(json.dumps(SAMPLE_TREE_DATA), encoding="utf-8")

        assert session.import_file(path) == sample_tree

    def test_export_to_file(self, local_session, temp_dir):
        result = local_session.export_to_file(temp_dir / "out" / "links.json")

        assert result.count == 6
        assert json.loads(result.path.read_text(encoding="utf-8")) == SAMPLE_TREE_DATA

    def test_export_markdown(self, local_session, temp_dir):
        result = local_session.export_to_file(temp_dir / "links", "markdown")

        assert result.path.suffix == ".md"
        assert "[News](https://news.ycombinator.com)" in result.path.read_text(encoding="utf-8")

    def test_clear(self, local_session):
        local_session.navigate("Dev")

        assert local_session.clear() is True
        assert local_session.tree == []
        assert local_session.breadcrumb == []
        assert local_session.local.has_snapshot() is False


class TestSynchronization:
    """Test pull and push between backends."""

    def test_pull_saves_remote_locally(self, verified_session, sample_tree):
        verified_session.pull()

        assert verified_session.local.load() == sample_tree

    def test_pull_requires_credential(self, session):
        with pytest.raises(NotAuthenticatedError):
            session.pull()

    def test_push_overwrites_remote(self, verified_session, fake_github):
        local_tree = [Link("Go", "Go site", "https://go.dev")]
        verified_session.local.save(local_tree)

        result = verified_session.push()

        assert fake_github.stored_data() == [
            {"name": "Go", "description": "Go site", "url": "https://go.dev"}
        ]
        assert fake_github.commits == [result.message]
        assert verified_session.tree == local_tree

    def test_push_refuses_snapshot_with_unreadable_entry(self, verified_session, fake_github):
        verified_session.local.store.set(
            verified_session.local.key,
            json.dumps(
                [
                    {"name": "Go", "description": "Go site", "url": "https://go.dev"},
                    {"name": "Odd", "description": "No url or folder"},
                ]
            ),
        )

        with pytest.raises(CorruptLocalStateError):
            verified_session.push()

        assert fake_github.commits == []

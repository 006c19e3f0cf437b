"""
Unit tests for the mutation engine.
"""

import json

import pytest

from bookmark_organizer.core.data_models import EntryDraft, Folder, Link
from bookmark_organizer.core.mutation_engine import Backend, MutationEngine
from bookmark_organizer.utils.error_handler import (
    CorruptLocalStateError,
    FolderNotFoundError,
    NotAuthenticatedError,
    ValidationError,
)
from tests.fixtures.test_data import VALID_TOKEN


@pytest.fixture
def engine(local_store, remote_store) -> MutationEngine:
    return MutationEngine(local_store, remote_store)


class TestBackendSelection:
    """Test where mutations are sent."""

    def test_local_when_unauthenticated(self, engine):
        assert engine.select_backend() is Backend.LOCAL

    def test_local_when_only_authenticated(self, engine, remote_store):
        remote_store.set_credential(VALID_TOKEN)

        assert engine.select_backend() is Backend.LOCAL

    def test_remote_when_verified(self, local_store, verified_remote):
        engine = MutationEngine(local_store, verified_remote)

        assert engine.select_backend() is Backend.REMOTE

    def test_forced_local_when_verified(self, local_store, verified_remote):
        engine = MutationEngine(local_store, verified_remote)

        assert engine.select_backend(Backend.LOCAL) is Backend.LOCAL

    def test_forced_remote_requires_credential(self, engine):
        with pytest.raises(NotAuthenticatedError):
            engine.select_backend(Backend.REMOTE)

    def test_forced_remote_with_unverified_credential(self, engine, remote_store):
        remote_store.set_credential(VALID_TOKEN)

        assert engine.select_backend(Backend.REMOTE) is Backend.REMOTE

    def test_no_remote_store(self, local_store):
        engine = MutationEngine(local_store)

        assert engine.select_backend() is Backend.LOCAL
        with pytest.raises(NotAuthenticatedError):
            engine.select_backend(Backend.REMOTE)


class TestLocalMutations:
    """Test inserting into the locally stored tree."""

    def test_add_link_at_root(self, engine, local_store):
        result = engine.add_entry(EntryDraft("Go", "Go site", "https://go.dev"), [])

        assert result.backend is Backend.LOCAL
        assert result.location == "main page"
        assert result.commit is None
        assert result.message == "Successfully added Go to main page"
        assert local_store.load() == [Link("Go", "Go site", "https://go.dev")]

    def test_add_folder_in_nested_path(self, engine, local_store, sample_tree):
        local_store.save(sample_tree)

        result = engine.add_entry(EntryDraft("Tools", "Go tools"), "Dev/Go")

        assert result.location == "folder: Dev/Go"
        stored = local_store.load()
        go = stored[0].children[0]
        assert go.children[-1] == Folder("Tools", "Go tools")

    def test_appends_after_existing_entries(self, engine, local_store, sample_tree):
        local_store.save(sample_tree)

        engine.add_entry(Link("Rust", "Rust site", "https://rust-lang.org"), ["Dev"])

        names = [entry.name for entry in local_store.load()[0].children]
        assert names == ["Go", "Python", "Rust"]

    def test_invalid_draft_changes_nothing(self, engine, local_store, sample_tree):
        local_store.save(sample_tree)

        with pytest.raises(ValidationError):
            engine.add_entry(EntryDraft("", "No name", "https://example.com"), [])

        assert local_store.load() == sample_tree

    def test_invalid_entry_object_rejected(self, engine):
        with pytest.raises(ValidationError, match="Invalid entry"):
            engine.add_entry(Link("Bad", "Bad url", "example"), [])

    def test_unknown_path_changes_nothing(self, engine, local_store, sample_tree):
        local_store.save(sample_tree)

        with pytest.raises(FolderNotFoundError):
            engine.add_entry(EntryDraft("Go", "Go site", "https://go.dev"), ["Nope"])

        assert local_store.load() == sample_tree

    def test_unreadable_snapshot_entry_not_overwritten(self, engine, memory_store):
        original = json.dumps(
            [
                {"name": "Keep", "description": "Kept", "url": "https://example.com"},
                {"name": "Odd", "description": "No url or folder"},
            ]
        )
        memory_store.set("linksData", original)

        with pytest.raises(CorruptLocalStateError):
            engine.add_entry(EntryDraft("New", "New link", "https://new.example"), [])

        assert memory_store.get("linksData") == original

    def test_duplicate_names_allowed(self, engine, local_store):
        draft = EntryDraft("Go", "Go site", "https://go.dev")
        engine.add_entry(draft, [])
        engine.add_entry(draft, [])

        assert len(local_store.load()) == 2


class TestRemoteMutations:
    """Test inserting through the remote store."""

    def test_verified_remote_receives_entry(
        self, local_store, verified_remote, fake_github
    ):
        engine = MutationEngine(local_store, verified_remote)

        result = engine.add_entry(EntryDraft("Go docs 2", "More docs", "https://go.dev"), ["Dev", "Go"])

        assert result.backend is Backend.REMOTE
        assert result.location == "folder: Dev/Go"
        assert result.commit is not None
        assert fake_github.commits == ["Add link: Go docs 2 to folder: Dev/Go"]
        assert local_store.has_snapshot() is False

    def test_forced_local_leaves_remote(self, local_store, verified_remote, fake_github):
        engine = MutationEngine(local_store, verified_remote)

        result = engine.add_entry(
            EntryDraft("Go", "Go site", "https://go.dev"), [], backend=Backend.LOCAL
        )

        assert result.backend is Backend.LOCAL
        assert fake_github.commits == []
        assert len(local_store.load()) == 1

    def test_forced_remote_while_unauthenticated(self, engine, fake_github):
        with pytest.raises(NotAuthenticatedError):
            engine.add_entry(
                EntryDraft("Go", "Go site", "https://go.dev"), [], backend=Backend.REMOTE
            )

        assert fake_github.requests == []

"""
Pytest configuration and shared fixtures for bookmark organizer tests.

This module provides the sample trees, storage backends, the fake GitHub
endpoint and configured sessions shared across test modules.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from bookmark_organizer.config.configuration import Configuration
from bookmark_organizer.config.pydantic_config import OrganizerConfig
from bookmark_organizer.core.data_models import Tree
from bookmark_organizer.core.github_client import GitHubContentsClient
from bookmark_organizer.core.key_value_store import MemoryKeyValueStore
from bookmark_organizer.core.local_store import LocalTreeStore
from bookmark_organizer.core.remote_store import RemoteTreeStore
from bookmark_organizer.core.session import OrganizerSession
from tests.fixtures.fake_github import FakeGitHub
from tests.fixtures.test_data import (
    VALID_TOKEN,
    create_sample_tree,
    create_sample_tree_data,
)


@pytest.fixture(autouse=True)
def no_github_repository_env(monkeypatch):
    """Keep a GITHUB_REPOSITORY from the environment out of configuration tests."""
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)


# ============================================================================
# Temporary Directory Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp(prefix="bookmark_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path)


# ============================================================================
# Tree Fixtures
# ============================================================================


@pytest.fixture
def sample_tree_data():
    """Sample snapshot in serialized form."""
    return create_sample_tree_data()


@pytest.fixture
def sample_tree() -> Tree:
    """Sample snapshot as model objects."""
    return create_sample_tree()


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def local_store(memory_store) -> LocalTreeStore:
    return LocalTreeStore(memory_store)


@pytest.fixture
def fake_github() -> FakeGitHub:
    """Fake contents endpoint serving the sample tree."""
    return FakeGitHub(tree=create_sample_tree())


@pytest.fixture
def github_client(fake_github) -> Generator[GitHubContentsClient, None, None]:
    client = GitHubContentsClient(
        owner=fake_github.owner,
        repo=fake_github.repo,
        file_path=fake_github.file_path,
        max_retries=2,
        retry_delay=0,
        transport=fake_github.transport,
    )
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def remote_store(github_client, memory_store) -> RemoteTreeStore:
    return RemoteTreeStore(github_client, memory_store)


@pytest.fixture
def verified_remote(remote_store) -> RemoteTreeStore:
    """Remote store holding a token that passed the connection test."""
    remote_store.set_credential(VALID_TOKEN)
    status = remote_store.test_connection()
    assert status.success
    return remote_store


# ============================================================================
# Configuration and Session Fixtures
# ============================================================================


@pytest.fixture
def organizer_config(temp_dir: Path) -> OrganizerConfig:
    """Configuration pointing at a temporary data directory and the fake repo."""
    return OrganizerConfig(
        storage={"data_dir": str(temp_dir / "data")},
        remote={"owner": "octocat", "repo": "links"},
        network={"retry_delay": 0},
        logging={"log_to_file": False},
    )


@pytest.fixture
def configuration(organizer_config) -> Configuration:
    return Configuration(config=organizer_config)


@pytest.fixture
def session(configuration, fake_github) -> Generator[OrganizerSession, None, None]:
    """Session over a file store in the temporary data directory."""
    organizer_session = OrganizerSession.from_config(
        configuration, transport=fake_github.transport
    )
    try:
        yield organizer_session
    finally:
        organizer_session.close()


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary TOML configuration file."""
    config_path = temp_dir / "bookmark_organizer.toml"
    config_content = f"""
[storage]
data_dir = "{(temp_dir / 'data').as_posix()}"

[remote]
owner = "octocat"
repo = "links"
file_path = "src/data/links.json"

[network]
timeout = 10
max_retries = 1
retry_delay = 0

[logging]
level = "DEBUG"
log_to_file = false
"""
    config_path.write_text(config_content, encoding="utf-8")
    return config_path

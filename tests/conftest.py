from __future__ import annotations

from pathlib import Path

import pygit2
import pytest

from api_semver import API, load_api

pytest_plugins = ["api_semver.plugin"]

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(scope="session")
def prev_path() -> Path:
    return DATA_DIR / "prev_api.json"


@pytest.fixture(scope="session")
def current_path() -> Path:
    return DATA_DIR / "current_api.json"


@pytest.fixture(scope="session")
def additive_path() -> Path:
    return DATA_DIR / "additive_api.json"


@pytest.fixture
def prev_api(prev_path: Path) -> API:
    return load_api(prev_path)


@pytest.fixture
def current_api(current_path: Path) -> API:
    return load_api(current_path)


@pytest.fixture
def additive_api(additive_path: Path) -> API:
    return load_api(additive_path)


@pytest.fixture
def tagged_repo(tmp_path: Path) -> Path:
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    repo = pygit2.init_repository(str(repo_path), initial_head="main")
    sig = pygit2.Signature("Test User", "test@example.com")

    (repo_path / "README.md").write_text("# first\n")
    repo.index.add("README.md")
    repo.index.write()
    first = repo.create_commit("refs/heads/main", sig, sig, "first", repo.index.write_tree(), [])

    (repo_path / "README.md").write_text("# second\n")
    repo.index.add("README.md")
    repo.index.write()
    second = repo.create_commit("refs/heads/main", sig, sig, "second", repo.index.write_tree(), [first])

    repo.references.create("refs/tags/v1.0.0", first)
    repo.create_tag("v1.1.0", second, pygit2.enums.ObjectType.COMMIT, sig, "release 1.1.0")
    repo.references.create("refs/tags/v0.1.0", first)
    repo.references.create("refs/tags/nightly", second)
    blob = repo.create_blob(b"not a commit")
    repo.references.create("refs/tags/v9.9.9", blob)
    return repo_path

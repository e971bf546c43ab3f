"""Shared fixtures: a freshly initialized project in a temp directory."""

import pytest

from promptsmith.database import open_db
from promptsmith.store import PromptStore
from promptsmith.versioning import write_text_exact
from promptsmith.workspace import init_project


@pytest.fixture
def project_root(tmp_path):
    root = tmp_path / "demo"
    root.mkdir()
    init_project(root, name="demo")
    return root.resolve()


@pytest.fixture
def db(project_root):
    with open_db(project_root) as session:
        yield session


@pytest.fixture
def store(db):
    return PromptStore(db)


@pytest.fixture
def write_file(project_root):
    """Write a file under the project root, returning its relative path."""
    def _write(rel_path: str, content: str) -> str:
        path = project_root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        write_text_exact(path, content)
        return rel_path
    return _write

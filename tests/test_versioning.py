"""Tests for commit, status, checkout, diff and log."""

import json

import pytest

from promptsmith.errors import (
    NoVersionsError, PromptNotFoundError, RefNotFoundError,
    UncommittedChangesError, ValidationError
)
from promptsmith.versioning import (
    PromptState, VersionManager, bump_version, content_changed, read_text_exact
)
from promptsmith.workspace import Workspace


def test_bump_version():
    assert bump_version("1.0.0") == "1.0.1"
    assert bump_version("2.3.9") == "2.3.10"
    assert bump_version("1.0") == "1.0.0"
    assert bump_version("1.0.x") == "1.0.0"


def test_content_changed():
    assert not content_changed("abc\n", "abc\n")
    assert content_changed("abc\n", "abc")
    assert content_changed("abc\n", "abc\r\n")


class TestVersionManager:

    @pytest.fixture(autouse=True)
    def setup(self, store, project_root, write_file):
        self.store = store
        self.root = project_root
        self.write_file = write_file
        self.workspace = Workspace(store, project_root)
        self.manager = VersionManager(store, project_root)

        write_file("prompts/greet.prompt", "Hello {{name}}\n")
        self.prompt = self.workspace.add("prompts/greet.prompt")

    def status_of(self, name: str):
        report = self.manager.status()
        return next(p for p in report.prompts if p.name == name)

    # ---------- commit ----------

    def test_first_commit(self):
        result = self.manager.commit("initial", author="alice")

        assert result.committed == 1
        version = result.versions[0]
        assert version.version == "1.0.0"
        assert version.parent_version_id is None
        assert version.commit_message == "initial"
        assert version.created_by == "alice"
        assert json.loads(version.variables) == [
            {"name": "name", "type": "string", "required": True}
        ]

    def test_versions_are_monotonic_with_parent_chain(self):
        for i in range(4):
            self.write_file("prompts/greet.prompt", f"Hello {{{{name}}}} #{i}\n")
            self.manager.commit(f"change {i}")

        versions = list(reversed(self.store.list_versions(self.prompt.id)))
        assert [v.version for v in versions] == ["1.0.0", "1.0.1", "1.0.2", "1.0.3"]
        assert versions[0].parent_version_id is None
        for parent, child in zip(versions, versions[1:]):
            assert child.parent_version_id == parent.id

    def test_unchanged_content_is_not_committed(self):
        self.manager.commit("initial")
        result = self.manager.commit("again")

        assert result.committed == 0
        assert len(self.store.list_versions(self.prompt.id)) == 1

    def test_empty_message_rejected(self):
        with pytest.raises(ValidationError):
            self.manager.commit("  ")

    def test_missing_file_is_a_warning(self):
        self.write_file("prompts/other.prompt", "Other\n")
        self.workspace.add("prompts/other.prompt")
        (self.root / "prompts" / "greet.prompt").unlink()

        result = self.manager.commit("batch")

        assert [v.version for v in result.versions] == ["1.0.0"]
        assert len(result.warnings) == 1
        assert result.warnings[0].prompt_name == "greet"
        assert self.store.list_versions(self.prompt.id) == []

    def test_frontmatter_metadata_is_stored(self):
        self.write_file("prompts/greet.prompt", (
            "---\n"
            "name: greet\n"
            "model_hint: gpt-4o\n"
            "variables:\n"
            "  - name: name\n"
            "    required: true\n"
            "    default: world\n"
            "---\n"
            "Hello {{name}}\n"
        ))
        version = self.manager.commit("with frontmatter").versions[0]

        assert json.loads(version.metadata_json) == {"model_hint": "gpt-4o"}
        assert json.loads(version.variables) == [
            {"name": "name", "type": "string", "required": True, "default": "world"}
        ]

    # ---------- status ----------

    def test_status_transitions(self):
        status = self.status_of("greet")
        assert status.status == PromptState.NEW
        assert status.version == "0.0.0"

        self.manager.commit("initial")
        assert self.status_of("greet").status == PromptState.CLEAN

        self.write_file("prompts/greet.prompt", "Hello {{name}}\nMore text\n")
        assert self.status_of("greet").status == PromptState.MODIFIED

        (self.root / "prompts" / "greet.prompt").unlink()
        assert self.status_of("greet").status == PromptState.DELETED

    def test_status_report(self):
        self.write_file("prompts/loose.prompt", "not tracked\n")
        self.write_file("prompts/notes.txt", "ignored\n")

        report = self.manager.status()

        assert report.project_name == "demo"
        assert report.untracked == ["prompts/loose.prompt"]
        assert report.uncommitted_count == 1

    # ---------- checkout ----------

    def test_checkout_previous_version(self):
        self.manager.commit("initial")
        self.write_file("prompts/greet.prompt", "Hi {{name}}\n")
        self.manager.commit("second")

        target = self.manager.checkout("greet", "HEAD~1")

        assert target.version == "1.0.0"
        assert read_text_exact(self.root / "prompts" / "greet.prompt") == "Hello {{name}}\n"
        assert self.status_of("greet").status == PromptState.MODIFIED

    def test_checkout_refuses_to_overwrite_changes(self):
        self.manager.commit("initial")
        self.write_file("prompts/greet.prompt", "edited\n")

        with pytest.raises(UncommittedChangesError):
            self.manager.checkout("greet", "1.0.0")

        self.manager.checkout("greet", "1.0.0", force=True)
        assert read_text_exact(self.root / "prompts" / "greet.prompt") == "Hello {{name}}\n"

    def test_checkout_restores_deleted_file(self):
        self.manager.commit("initial")
        (self.root / "prompts" / "greet.prompt").unlink()

        self.manager.checkout("greet", "HEAD")
        assert self.status_of("greet").status == PromptState.CLEAN

    def test_checkout_errors(self):
        with pytest.raises(NoVersionsError):
            self.manager.checkout("greet", "HEAD")
        with pytest.raises(PromptNotFoundError):
            self.manager.checkout("missing", "HEAD")

        self.manager.commit("initial")
        with pytest.raises(RefNotFoundError):
            self.manager.checkout("greet", "9.9.9")

    # ---------- diff ----------

    def test_diff_working_copy(self):
        self.manager.commit("initial")
        self.write_file("prompts/greet.prompt", "Hello {{name}}\nBye\n")

        result = self.manager.diff("greet")

        assert result.label1 == "greet@1.0.0"
        assert result.label2 == "greet (working)"
        assert result.hunks[0].lines == [" Hello {{name}}", "+Bye", " "]

    def test_diff_between_versions(self):
        self.manager.commit("initial")
        self.write_file("prompts/greet.prompt", "Hi {{name}}\n")
        self.manager.commit("second")

        against_latest = self.manager.diff("greet", "1.0.0")
        explicit = self.manager.diff("greet", "HEAD", "HEAD~1")

        assert against_latest.label2 == "greet@1.0.1"
        assert against_latest.hunks[0].lines == ["-Hello {{name}}", "+Hi {{name}}", " "]
        assert explicit.label1 == "greet@1.0.1"
        assert explicit.label2 == "greet@1.0.0"
        assert explicit.to_dict()["hunks"][0]["lines"] == ["-Hi {{name}}", "+Hello {{name}}", " "]

    def test_diff_without_changes(self):
        self.manager.commit("initial")
        result = self.manager.diff("greet")

        assert result.identical
        assert result.render() == "No differences."

    def test_diff_missing_working_file(self):
        self.manager.commit("initial")
        (self.root / "prompts" / "greet.prompt").unlink()

        with pytest.raises(FileNotFoundError):
            self.manager.diff("greet")

    # ---------- log ----------

    def test_log(self):
        self.write_file("prompts/other.prompt", "Other\n")
        self.workspace.add("prompts/other.prompt")
        self.manager.commit("initial")
        self.write_file("prompts/greet.prompt", "Hi {{name}}\n")
        self.manager.commit("second")

        entries = self.manager.log()
        assert [(e.prompt_name, e.version) for e in entries][0] == ("greet", "1.0.1")
        assert len(entries) == 3

        assert [e.version for e in self.manager.log("greet")] == ["1.0.1", "1.0.0"]
        assert len(self.manager.log(limit=1)) == 1
        assert self.manager.log("greet", limit=1)[0].commit_message == "second"

"""Tests for PromptStore: ordering, constraints, cascading delete, run logs and sync."""

import json

import pytest
from sqlalchemy.exc import IntegrityError

from promptsmith.database import open_db
from promptsmith.database.models import Prompt, PromptVersion, Tag
from promptsmith.errors import (
    DuplicatePromptError, PathSafetyError, PromptNotFoundError, TagNotFoundError,
    VersionNotFoundError
)
from promptsmith.schemas import PromptSchema, SyncBundle
from promptsmith.store import PromptStore
from promptsmith.versioning import VersionManager, write_text_exact
from promptsmith.workspace import Workspace, init_project


class TestPromptStore:

    @pytest.fixture(autouse=True)
    def setup(self, store):
        self.store = store
        self.project = store.get_project()

    def add_prompt(self, name: str) -> Prompt:
        return self.store.create_prompt(self.project.id, name, f"{name} prompt", f"prompts/{name}.prompt")

    def test_project_created_by_init(self):
        assert self.project is not None
        assert self.project.name == "demo"

    def test_prompts_ordered_by_name(self):
        self.add_prompt("zeta")
        self.add_prompt("alpha")
        assert [p.name for p in self.store.list_prompts()] == ["alpha", "zeta"]

    def test_lookups_return_none(self):
        assert self.store.get_prompt_by_name("missing") is None
        assert self.store.get_prompt_by_path("prompts/missing.prompt") is None
        assert self.store.get_latest_version("no-such-id") is None
        assert self.store.get_tag_by_name("no-such-id", "prod") is None

    def test_duplicate_prompt_name_rejected(self):
        self.add_prompt("greet")
        with pytest.raises(IntegrityError):
            self.store.create_prompt(self.project.id, "greet", "", "prompts/other.prompt")
        assert len(self.store.list_prompts()) == 1

    def test_duplicate_version_string_rejected(self):
        prompt = self.add_prompt("greet")
        self.store.create_version(prompt.id, "1.0.0", "a")
        with pytest.raises(IntegrityError):
            self.store.create_version(prompt.id, "1.0.0", "b")

    def test_latest_version_breaks_timestamp_ties_by_insertion(self):
        prompt = self.add_prompt("greet")
        stamp = "2024-01-01T00:00:00.000000+00:00"
        self.store.create_version(prompt.id, "1.0.0", "a", created_at=stamp)
        self.store.create_version(prompt.id, "1.0.1", "b", created_at=stamp)

        assert self.store.get_latest_version(prompt.id).version == "1.0.1"
        assert [v.version for v in self.store.list_versions(prompt.id)] == ["1.0.1", "1.0.0"]

    def test_update_prompt(self):
        prompt = self.add_prompt("greet")
        updated = self.store.update_prompt(prompt.id, description="Say hello")

        assert updated.name == "greet"
        assert updated.description == "Say hello"
        with pytest.raises(PromptNotFoundError):
            self.store.update_prompt("no-such-id", name="x")

    def test_tag_upsert(self):
        prompt = self.add_prompt("greet")
        v1 = self.store.create_version(prompt.id, "1.0.0", "a")
        v2 = self.store.create_version(prompt.id, "1.0.1", "b")

        self.store.create_tag(prompt.id, v1.id, "prod")
        self.store.create_tag(prompt.id, v2.id, "prod")

        tags = self.store.list_tags(prompt.id)
        assert len(tags) == 1
        assert tags[0].version_id == v2.id

    def test_tag_must_point_at_own_version(self):
        prompt = self.add_prompt("greet")
        other = self.add_prompt("other")
        foreign = self.store.create_version(other.id, "1.0.0", "c")

        with pytest.raises(VersionNotFoundError):
            self.store.create_tag(prompt.id, foreign.id, "prod")
        with pytest.raises(VersionNotFoundError):
            self.store.create_tag(prompt.id, "no-such-id", "prod")

    def test_delete_missing_tag(self):
        prompt = self.add_prompt("greet")
        with pytest.raises(TagNotFoundError):
            self.store.delete_tag(prompt.id, "prod")

    def test_cascading_delete(self):
        prompt = self.add_prompt("greet")
        v1 = self.store.create_version(prompt.id, "1.0.0", "a")
        self.store.create_version(prompt.id, "1.0.1", "b", parent_version_id=v1.id)
        self.store.create_tag(prompt.id, v1.id, "prod")
        other = self.add_prompt("other")
        self.store.create_version(other.id, "1.0.0", "c")

        self.store.delete_prompt(prompt.id)

        db = self.store.db
        assert db.query(PromptVersion).filter(PromptVersion.prompt_id == prompt.id).count() == 0
        assert db.query(Tag).filter(Tag.prompt_id == prompt.id).count() == 0
        assert self.store.get_prompt_by_name("greet") is None
        assert len(self.store.list_versions(other.id)) == 1

    def test_delete_missing_prompt(self):
        with pytest.raises(PromptNotFoundError):
            self.store.delete_prompt("no-such-id")

    def test_run_logs(self):
        prompt = self.add_prompt("greet")
        version = self.store.create_version(prompt.id, "1.0.0", "a")

        suite = self.store.create_test_suite(prompt.id, "smoke", json.dumps({"cases": 2}))
        run = self.store.save_test_run(suite.id, version.id, "passed", json.dumps({"passed": 2}))
        assert self.store.get_test_run(run.id).status == "passed"
        assert [r.id for r in self.store.list_test_runs(suite.id)] == [run.id]

        benchmark = self.store.create_benchmark(prompt.id, json.dumps({"providers": ["openai"]}))
        bench_run = self.store.save_benchmark_run(benchmark.id, version.id, json.dumps({"latency_ms": 120}))
        assert [r.id for r in self.store.list_benchmark_runs(benchmark.id)] == [bench_run.id]


class TestSync:

    @pytest.fixture(autouse=True)
    def setup(self, store, tmp_path):
        self.source = store
        project = store.get_project()
        prompt = store.create_prompt(project.id, "greet", "Say hello", "prompts/greet.prompt")
        v1 = store.create_version(prompt.id, "1.0.0", "Hello\n", commit_message="first")
        v2 = store.create_version(prompt.id, "1.0.1", "Hi\n", parent_version_id=v1.id)
        store.create_tag(prompt.id, v1.id, "prod")
        self.v2 = v2

        self.target_root = tmp_path / "other"
        self.target_root.mkdir()
        init_project(self.target_root, name="other")

    def test_export_bundle(self):
        bundle = self.source.export_bundle()

        assert bundle.project_id == self.source.get_project().id
        assert [p.name for p in bundle.prompts] == ["greet"]
        assert [v.version for v in bundle.versions] == ["1.0.1", "1.0.0"]
        assert [t.name for t in bundle.tags] == ["prod"]

    def test_import_into_empty_project(self):
        payload = self.source.export_bundle().model_dump_json()

        with open_db(self.target_root) as db:
            target = PromptStore(db)
            summary = target.import_bundle(SyncBundle.model_validate_json(payload), self.target_root)

            assert (summary.prompts_added, summary.versions_added, summary.tags_added) == (1, 2, 1)

            prompt = target.get_prompt_by_name("greet")
            versions = target.list_versions(prompt.id)
            assert [v.version for v in versions] == ["1.0.1", "1.0.0"]
            assert versions[0].parent_version_id == versions[1].id
            assert versions[0].id != self.v2.id
            assert versions[1].commit_message == "first"

            tag = target.get_tag_by_name(prompt.id, "prod")
            assert tag.version_id == versions[1].id

            again = target.import_bundle(SyncBundle.model_validate_json(payload), self.target_root)
            assert again.up_to_date
            assert again.prompts_existing == 1

    def test_import_rejects_escaping_paths(self):
        bundle = self.source.export_bundle()
        bundle.prompts[0].file_path = "../outside.prompt"

        with open_db(self.target_root) as db:
            target = PromptStore(db)
            with pytest.raises(PathSafetyError):
                target.import_bundle(bundle, self.target_root)
            assert target.list_prompts() == []

    def track_local(self, target: PromptStore, rel_path: str, content: str):
        path = self.target_root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        write_text_exact(path, content)
        return Workspace(target, self.target_root).add(rel_path)

    def test_import_after_local_history_then_commit(self):
        bundle = self.source.export_bundle()
        # Remote rows older than anything committed locally
        bundle.versions[0].created_at = "2020-01-02T00:00:00.000000+00:00"
        bundle.versions[1].created_at = "2020-01-01T00:00:00.000000+00:00"

        with open_db(self.target_root) as db:
            target = PromptStore(db)
            manager = VersionManager(target, self.target_root)
            prompt = self.track_local(target, "prompts/greet.prompt", "Local\n")
            local_first = manager.commit("local").versions[0]

            summary = target.import_bundle(bundle, self.target_root)
            assert summary.versions_added == 1

            versions = target.list_versions(prompt.id)
            assert [v.version for v in versions] == ["1.0.1", "1.0.0"]
            assert versions[0].parent_version_id == local_first.id

            write_text_exact(self.target_root / "prompts" / "greet.prompt", "Local again\n")
            committed = manager.commit("after import").versions[0]

            assert committed.version == "1.0.2"
            assert committed.parent_version_id == versions[0].id

    def test_import_with_tracked_path_is_all_or_nothing(self):
        bundle = self.source.export_bundle()
        bundle.prompts.append(PromptSchema(
            id="remote-renamed",
            name="renamed",
            file_path="prompts/a.prompt",
            created_at="2020-01-01T00:00:00.000000+00:00"
        ))

        with open_db(self.target_root) as db:
            target = PromptStore(db)
            self.track_local(target, "prompts/a.prompt", "A\n")

            with pytest.raises(DuplicatePromptError, match="prompts/a.prompt"):
                target.import_bundle(bundle, self.target_root)

            assert [p.name for p in target.list_prompts()] == ["a"]
            assert target.get_prompt_by_name("greet") is None

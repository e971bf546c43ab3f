"""Relational store for projects, prompts, versions and tags.

All other components read and write through PromptStore. Lookups that
find nothing return None; mutations against a missing row raise the
matching NotFoundError. Storage errors are propagated after rolling back
the session.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from sqlalchemy import literal_column
from sqlalchemy.orm import Session

from .database.models import (
    Project, Prompt, PromptVersion, Tag,
    TestSuite, TestRun, Benchmark, BenchmarkRun
)
from .errors import (
    DuplicatePromptError, PromptNotFoundError, ProjectNotFoundError, TagNotFoundError,
    VersionNotFoundError
)
from .paths import safe_project_path
from .schemas import (
    PromptSchema, VersionSchema, TagSchema, SyncBundle, ImportSummary
)
from .utils import utc_now

logger = logging.getLogger(__name__)

# Insertion order breaks ties between versions created in the same instant
_VERSION_ROWID = literal_column("prompt_versions.rowid")


class PromptStore:
    """CRUD operations over a single project database."""

    def __init__(self, db: Session):
        """Initialize store.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ========== Project ==========

    def create_project(self, name: str) -> Project:
        now = utc_now()
        project = Project(name=name, created_at=now, updated_at=now)
        self.db.add(project)
        self._commit()
        logger.info(f"Created project '{name}' ({project.id})")
        return project

    def get_project(self) -> Optional[Project]:
        """Return the project row, or None before initialization."""
        return self.db.query(Project).order_by(Project.created_at.asc()).first()

    # ========== Prompts ==========

    def create_prompt(self, project_id: str, name: str, description: str, file_path: str) -> Prompt:
        now = utc_now()
        prompt = Prompt(
            project_id=project_id,
            name=name,
            description=description or "",
            file_path=file_path,
            created_at=now,
            updated_at=now
        )
        self.db.add(prompt)
        self._commit()
        logger.info(f"Tracking prompt '{name}' at {file_path}")
        return prompt

    def get_prompt_by_id(self, prompt_id: str) -> Optional[Prompt]:
        return self.db.query(Prompt).filter(Prompt.id == prompt_id).first()

    def get_prompt_by_name(self, name: str) -> Optional[Prompt]:
        return self.db.query(Prompt).filter(Prompt.name == name).first()

    def get_prompt_by_path(self, file_path: str) -> Optional[Prompt]:
        return self.db.query(Prompt).filter(Prompt.file_path == file_path).first()

    def list_prompts(self) -> List[Prompt]:
        """All prompts, ordered by name ascending."""
        return self.db.query(Prompt).order_by(Prompt.name.asc()).all()

    def update_prompt(self, prompt_id: str, name: Optional[str] = None,
                      description: Optional[str] = None) -> Prompt:
        """Rename and/or re-describe a prompt. None leaves a field unchanged.

        Raises:
            PromptNotFoundError: If no prompt has this id
        """
        prompt = self.get_prompt_by_id(prompt_id)
        if prompt is None:
            raise PromptNotFoundError(prompt_id)

        if name is not None:
            prompt.name = name
        if description is not None:
            prompt.description = description
        prompt.updated_at = utc_now()
        self._commit()
        return prompt

    def delete_prompt(self, prompt_id: str) -> None:
        """Delete a prompt with its tags and versions in one transaction.

        Raises:
            PromptNotFoundError: If no prompt has this id; nothing is deleted
        """
        try:
            # Tags reference versions and prompts, versions reference prompts
            self.db.query(Tag).filter(Tag.prompt_id == prompt_id).delete()
            self.db.query(PromptVersion).filter(PromptVersion.prompt_id == prompt_id).delete()
            deleted = self.db.query(Prompt).filter(Prompt.id == prompt_id).delete()
        except Exception:
            self.db.rollback()
            raise

        if deleted == 0:
            self.db.rollback()
            raise PromptNotFoundError(prompt_id)

        self._commit()
        logger.info(f"Deleted prompt {prompt_id} with its versions and tags")

    # ========== Versions ==========

    def create_version(
        self,
        prompt_id: str,
        version: str,
        content: str,
        variables: str = "[]",
        metadata: str = "{}",
        commit_message: str = "",
        created_by: str = "",
        parent_version_id: Optional[str] = None,
        created_at: Optional[str] = None
    ) -> PromptVersion:
        """Insert a version row as given.

        Version numbering and parent selection belong to the caller
        (see versioning.create_version_from_content).
        """
        row = PromptVersion(
            prompt_id=prompt_id,
            version=version,
            content=content,
            variables=variables,
            metadata_json=metadata,
            parent_version_id=parent_version_id,
            commit_message=commit_message,
            created_at=created_at or utc_now(),
            created_by=created_by
        )
        self.db.add(row)
        self._commit()
        logger.debug(f"Created version {version} for prompt {prompt_id}")
        return row

    def get_latest_version(self, prompt_id: str) -> Optional[PromptVersion]:
        return self.db.query(PromptVersion).filter(
            PromptVersion.prompt_id == prompt_id
        ).order_by(PromptVersion.created_at.desc(), _VERSION_ROWID.desc()).first()

    def get_version_by_id(self, version_id: str) -> Optional[PromptVersion]:
        return self.db.query(PromptVersion).filter(PromptVersion.id == version_id).first()

    def get_version_by_string(self, prompt_id: str, version: str) -> Optional[PromptVersion]:
        return self.db.query(PromptVersion).filter(
            PromptVersion.prompt_id == prompt_id,
            PromptVersion.version == version
        ).first()

    def list_versions(self, prompt_id: str) -> List[PromptVersion]:
        """Versions of a prompt, newest first. Index 0 is always the latest."""
        return self.db.query(PromptVersion).filter(
            PromptVersion.prompt_id == prompt_id
        ).order_by(PromptVersion.created_at.desc(), _VERSION_ROWID.desc()).all()

    def list_all_versions_for_log(self) -> List[Tuple[Prompt, PromptVersion]]:
        """Every version across all prompts, newest first, paired with its prompt."""
        rows = self.db.query(Prompt, PromptVersion).join(
            PromptVersion, PromptVersion.prompt_id == Prompt.id
        ).order_by(PromptVersion.created_at.desc(), _VERSION_ROWID.desc()).all()
        return [(prompt, version) for prompt, version in rows]

    # ========== Tags ==========

    def create_tag(self, prompt_id: str, version_id: str, name: str) -> Tag:
        """Point tag `name` at version_id, creating it or moving an existing one.

        A moved tag keeps its id and created_at.

        Raises:
            VersionNotFoundError: If version_id is not a version of this prompt
        """
        version = self.get_version_by_id(version_id)
        if version is None or version.prompt_id != prompt_id:
            raise VersionNotFoundError(version_id)

        existing = self.get_tag_by_name(prompt_id, name)
        if existing is not None:
            existing.version_id = version_id
            self._commit()
            logger.info(f"Moved tag '{name}' to version {version_id}")
            return existing

        tag = Tag(
            prompt_id=prompt_id,
            version_id=version_id,
            name=name,
            created_at=utc_now()
        )
        self.db.add(tag)
        self._commit()
        logger.info(f"Created tag '{name}' at version {version_id}")
        return tag

    def get_tag_by_name(self, prompt_id: str, name: str) -> Optional[Tag]:
        return self.db.query(Tag).filter(
            Tag.prompt_id == prompt_id,
            Tag.name == name
        ).first()

    def list_tags(self, prompt_id: str) -> List[Tag]:
        """Tags of a prompt, ordered by name."""
        return self.db.query(Tag).filter(
            Tag.prompt_id == prompt_id
        ).order_by(Tag.name.asc()).all()

    def delete_tag(self, prompt_id: str, name: str) -> None:
        """Delete a tag by name.

        Raises:
            TagNotFoundError: If the prompt has no tag with this name
        """
        try:
            deleted = self.db.query(Tag).filter(
                Tag.prompt_id == prompt_id,
                Tag.name == name
            ).delete()
        except Exception:
            self.db.rollback()
            raise

        if deleted == 0:
            self.db.rollback()
            raise TagNotFoundError(name)

        self._commit()
        logger.info(f"Deleted tag '{name}'")

    # ========== Run logs ==========

    def create_test_suite(self, prompt_id: str, name: str, config: str) -> TestSuite:
        suite = TestSuite(prompt_id=prompt_id, name=name, config=config)
        self.db.add(suite)
        self._commit()
        return suite

    def save_test_run(self, suite_id: str, version_id: str, status: str, results: str) -> TestRun:
        now = utc_now()
        run = TestRun(
            suite_id=suite_id,
            version_id=version_id,
            status=status,
            results=results,
            started_at=now,
            completed_at=now
        )
        self.db.add(run)
        self._commit()
        return run

    def list_test_runs(self, suite_id: str) -> List[TestRun]:
        return self.db.query(TestRun).filter(
            TestRun.suite_id == suite_id
        ).order_by(TestRun.started_at.desc()).all()

    def get_test_run(self, run_id: str) -> Optional[TestRun]:
        return self.db.query(TestRun).filter(TestRun.id == run_id).first()

    def create_benchmark(self, prompt_id: str, config: str) -> Benchmark:
        benchmark = Benchmark(prompt_id=prompt_id, config=config)
        self.db.add(benchmark)
        self._commit()
        return benchmark

    def save_benchmark_run(self, benchmark_id: str, version_id: str, results: str) -> BenchmarkRun:
        run = BenchmarkRun(
            benchmark_id=benchmark_id,
            version_id=version_id,
            results=results,
            created_at=utc_now()
        )
        self.db.add(run)
        self._commit()
        return run

    def list_benchmark_runs(self, benchmark_id: str) -> List[BenchmarkRun]:
        return self.db.query(BenchmarkRun).filter(
            BenchmarkRun.benchmark_id == benchmark_id
        ).order_by(BenchmarkRun.created_at.desc()).all()

    # ========== Sync ==========

    def export_bundle(self) -> SyncBundle:
        """Bulk read of every prompt, version and tag in the project."""
        project = self.get_project()
        prompts = self.list_prompts()

        versions = []
        tags = []
        for prompt in prompts:
            versions.extend(VersionSchema.from_model(v) for v in self.list_versions(prompt.id))
            tags.extend(TagSchema.from_model(t) for t in self.list_tags(prompt.id))

        return SyncBundle(
            project_id=project.id if project else "",
            prompts=[PromptSchema.from_model(p) for p in prompts],
            versions=versions,
            tags=tags
        )

    def import_bundle(self, bundle: SyncBundle,
                      project_root: Union[str, Path, None] = None) -> ImportSummary:
        """Insert rows from a foreign store that are not present locally.

        Prompts are matched by name, versions by (prompt, version string)
        and tags by (prompt, tag name). Existing local rows are never
        modified. Parent pointers and tag targets are translated from the
        bundle's ids to local ids through version strings. The import
        is all or nothing: a failure leaves the local store unchanged.

        Args:
            bundle: Rows exported by another store
            project_root: When given, every prompt file path must stay inside it

        Raises:
            ProjectNotFoundError: If the local project is not initialized
            PathSafetyError: If a prompt's file path escapes project_root
            DuplicatePromptError: If a new prompt.s file path is already tracked
        """
        project = self.get_project()
        if project is None:
            raise ProjectNotFoundError()

        self._validate_bundle(bundle, project_root)

        summary = ImportSummary()
        try:
            self._import_rows(project, bundle, summary)
        except Exception:
            self.db.rollback()
            raise
        self._commit()

        logger.info(
            f"Imported {summary.prompts_added} prompt(s), "
            f"{summary.versions_added} version(s), {summary.tags_added} tag(s)"
        )
        return summary

    def _validate_bundle(self, bundle: SyncBundle, project_root: Union[str, Path, None]) -> None:
        """Reject a bundle whose new prompts would collide with tracked files."""
        new_paths = set()
        for remote in bundle.prompts:
            if project_root is not None:
                safe_project_path(project_root, remote.file_path)
            if self.get_prompt_by_name(remote.name) is not None:
                continue

            owner = self.get_prompt_by_path(remote.file_path)
            if owner is not None:
                raise DuplicatePromptError(
                    f"prompt {remote.file_path} is already tracked as '{owner.name}'"
                )
            if remote.file_path in new_paths:
                raise DuplicatePromptError(f"bundle tracks {remote.file_path} more than once")
            new_paths.add(remote.file_path)

    def _import_rows(self, project: Project, bundle: SyncBundle, summary: ImportSummary) -> None:
        """Stage the missing rows of bundle in the session without committing.

        Each row is flushed so that later lookups in the same import see it.
        """
        remote_prompt_names = {}
        for remote in bundle.prompts:
            remote_prompt_names[remote.id] = remote.name

            if self.get_prompt_by_name(remote.name) is None:
                now = utc_now()
                self.db.add(Prompt(
                    project_id=project.id,
                    name=remote.name,
                    description=remote.description or "",
                    file_path=remote.file_path,
                    created_at=now,
                    updated_at=now
                ))
                self.db.flush()
                summary.prompts_added += 1
            else:
                summary.prompts_existing += 1

        remote_version_strings = {v.id: v.version for v in bundle.versions}

        # Oldest first so parents exist before their children. Bundles list
        # versions newest first, so reversing keeps equal timestamps in order.
        # Imported rows are stamped with local time so they sort after the
        # local history.
        for remote in sorted(reversed(bundle.versions), key=lambda v: v.created_at):
            local_prompt = self._local_prompt(remote_prompt_names, remote.prompt_id)
            if local_prompt is None:
                continue
            if self.get_version_by_string(local_prompt.id, remote.version) is not None:
                continue

            parent_id = None
            parent_string = remote_version_strings.get(remote.parent_version_id)
            if parent_string:
                parent = self.get_version_by_string(local_prompt.id, parent_string)
                parent_id = parent.id if parent else None

            self.db.add(PromptVersion(
                prompt_id=local_prompt.id,
                version=remote.version,
                content=remote.content,
                variables=remote.variables,
                metadata_json=remote.metadata,
                parent_version_id=parent_id,
                commit_message=remote.commit_message,
                created_at=utc_now(),
                created_by=remote.created_by
            ))
            self.db.flush()
            summary.versions_added += 1

        for remote in bundle.tags:
            local_prompt = self._local_prompt(remote_prompt_names, remote.prompt_id)
            if local_prompt is None:
                continue
            if self.get_tag_by_name(local_prompt.id, remote.name) is not None:
                continue

            version_string = remote_version_strings.get(remote.version_id)
            if not version_string:
                continue
            local_version = self.get_version_by_string(local_prompt.id, version_string)
            if local_version is None:
                continue

            self.db.add(Tag(
                prompt_id=local_prompt.id,
                version_id=local_version.id,
                name=remote.name,
                created_at=utc_now()
            ))
            self.db.flush()
            summary.tags_added += 1

    def _local_prompt(self, remote_prompt_names: dict, remote_prompt_id: str) -> Optional[Prompt]:
        name = remote_prompt_names.get(remote_prompt_id)
        if not name:
            return None
        return self.get_prompt_by_name(name)

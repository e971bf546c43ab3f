"""Commit, status, checkout, diff and log over tracked prompt files.

Status is computed fresh on every call from the working file and the
latest stored version:

    no version yet              -> new (shown as 0.0.0)
    working file missing        -> deleted
    content differs from latest -> modified
    otherwise                   -> clean

Both status and commit decide "changed" through content_changed; any
byte difference counts, no whitespace or line-ending normalization.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .config import PROMPTS_DIR, PROMPT_FILE_SUFFIX
from .database.models import Prompt, PromptVersion
from .diff import Hunk, diff_contents, render_unified
from .errors import (
    NoVersionsError, PromptNotFoundError, UncommittedChangesError, ValidationError
)
from .paths import safe_project_path
from .prompt import PromptTemplateParser
from .refs import RefResolver
from .store import PromptStore
from .utils import get_author

logger = logging.getLogger(__name__)

FIRST_VERSION = "1.0.0"
UNVERSIONED = "0.0.0"
DEFAULT_LOG_LIMIT = 10


class PromptState(str, Enum):
    CLEAN = "clean"
    MODIFIED = "modified"
    DELETED = "deleted"
    NEW = "new"


def content_hash(content: str) -> str:
    """SHA-256 hex digest of content encoded as UTF-8."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def content_changed(old: str, new: str) -> bool:
    """True when the two contents differ by at least one byte."""
    return content_hash(old) != content_hash(new)


def bump_version(version: str) -> str:
    """Increment PATCH of MAJOR.MINOR.PATCH; malformed input restarts at 1.0.0."""
    parts = version.split(".")
    if len(parts) != 3:
        return FIRST_VERSION
    try:
        patch = int(parts[2])
    except ValueError:
        return FIRST_VERSION
    parts[2] = str(patch + 1)
    return ".".join(parts)


def next_version(latest: Optional[PromptVersion]) -> str:
    if latest is None:
        return FIRST_VERSION
    return bump_version(latest.version)


def read_text_exact(path: Union[str, Path]) -> str:
    """Read a file without newline translation."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text_exact(path: Union[str, Path], content: str) -> None:
    """Write a file without newline translation."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


# ========== Result types ==========

@dataclass
class PromptStatus:
    name: str
    file_path: str
    version: str
    status: PromptState
    description: str = ""


@dataclass
class StatusReport:
    project_name: str
    prompts: List[PromptStatus] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)

    @property
    def uncommitted_count(self) -> int:
        return sum(1 for p in self.prompts if p.status in (PromptState.MODIFIED, PromptState.NEW))


@dataclass
class CommitWarning:
    prompt_name: str
    file_path: str
    message: str


@dataclass
class CommitResult:
    """Outcome of one commit batch."""
    versions: List[PromptVersion] = field(default_factory=list)
    warnings: List[CommitWarning] = field(default_factory=list)

    @property
    def committed(self) -> int:
        return len(self.versions)


@dataclass
class DiffResult:
    prompt_name: str
    label1: str
    label2: str
    hunks: List[Hunk] = field(default_factory=list)

    @property
    def identical(self) -> bool:
        return not self.hunks

    def render(self) -> str:
        if self.identical:
            return "No differences."
        return render_unified(self.label1, self.label2, self.hunks)

    def to_dict(self) -> dict:
        return {
            "prompt": self.prompt_name,
            "version1": self.label1,
            "version2": self.label2,
            "hunks": [h.to_dict() for h in self.hunks],
        }


@dataclass
class LogEntry:
    prompt_name: str
    version: str
    commit_message: str
    created_at: str
    created_by: str


# ========== Engine ==========

class VersionManager:
    """Commit/status engine bound to one project.

    States and batch rules are described in the module docstring.
    """

    def __init__(self, store: PromptStore, project_root: Union[str, Path]):
        """Initialize version manager.

        Args:
            store: Store for the project's database
            project_root: Directory holding .promptsmith/ and the working files
        """
        self.store = store
        self.project_root = Path(project_root)
        self.parser = PromptTemplateParser()

    def working_path(self, prompt: Prompt) -> Path:
        return safe_project_path(self.project_root, prompt.file_path)

    def read_working_file(self, prompt: Prompt) -> Optional[str]:
        """Return the working file content, or None if the file is missing.

        Other read errors propagate.
        """
        try:
            return read_text_exact(self.working_path(prompt))
        except FileNotFoundError:
            return None

    def _get_prompt(self, prompt_name: str) -> Prompt:
        prompt = self.store.get_prompt_by_name(prompt_name)
        if prompt is None:
            raise PromptNotFoundError(prompt_name)
        return prompt

    # ---------- status ----------

    def prompt_status(self, prompt: Prompt) -> PromptStatus:
        """Classify one tracked prompt."""
        status = PromptStatus(
            name=prompt.name,
            file_path=prompt.file_path,
            version=UNVERSIONED,
            status=PromptState.NEW,
            description=prompt.description or ""
        )

        latest = self.store.get_latest_version(prompt.id)
        if latest is None:
            return status

        status.version = latest.version
        current = self.read_working_file(prompt)
        if current is None:
            status.status = PromptState.DELETED
        elif content_changed(latest.content, current):
            status.status = PromptState.MODIFIED
        else:
            status.status = PromptState.CLEAN
        return status

    def status(self) -> StatusReport:
        """Status of every tracked prompt plus untracked *.prompt files."""
        project = self.store.get_project()
        prompts = self.store.list_prompts()

        report = StatusReport(project_name=project.name if project else "")
        report.prompts = [self.prompt_status(p) for p in prompts]

        tracked = {Path(p.file_path).as_posix() for p in prompts}
        prompts_dir = self.project_root / PROMPTS_DIR
        if prompts_dir.is_dir():
            for path in sorted(prompts_dir.glob(f"*{PROMPT_FILE_SUFFIX}")):
                rel_path = path.relative_to(self.project_root).as_posix()
                if rel_path not in tracked:
                    report.untracked.append(rel_path)

        return report

    # ---------- commit ----------

    def create_version_from_content(self, prompt: Prompt, content: str, message: str,
                                    author: Optional[str] = None) -> PromptVersion:
        """Snapshot content as the next version of prompt.

        The version string is PATCH+1 of the latest (1.0.0 for the first)
        and the parent is the latest version. Every caller that creates
        versions goes through here so numbering and variable extraction
        stay identical.

        Raises:
            PromptParseError: If the content has malformed frontmatter
        """
        parsed = self.parser.parse(content)
        latest = self.store.get_latest_version(prompt.id)

        version = self.store.create_version(
            prompt.id,
            next_version(latest),
            content,
            variables=parsed.variables_json(),
            metadata=parsed.metadata_json(),
            commit_message=message,
            created_by=author or get_author(),
            parent_version_id=latest.id if latest else None
        )
        logger.info(f"Committed {prompt.name}@{version.version}")
        return version

    def commit(self, message: str, author: Optional[str] = None) -> CommitResult:
        """Create a new version for every tracked prompt whose file changed.

        Missing working files are reported as warnings and skipped; any
        other read or parse error aborts the remaining batch.

        Raises:
            ValidationError: If message is empty
        """
        if not message or not message.strip():
            raise ValidationError("commit message is required")

        result = CommitResult()
        for prompt in self.store.list_prompts():
            content = self.read_working_file(prompt)
            if content is None:
                logger.warning(f"{prompt.name}: file not found ({prompt.file_path})")
                result.warnings.append(CommitWarning(prompt.name, prompt.file_path, "file not found"))
                continue

            latest = self.store.get_latest_version(prompt.id)
            if latest is not None and not content_changed(latest.content, content):
                logger.debug(f"{prompt.name}: no changes")
                continue

            result.versions.append(self.create_version_from_content(prompt, content, message, author))

        return result

    # ---------- checkout ----------

    def checkout(self, prompt_name: str, ref: str, force: bool = False) -> PromptVersion:
        """Overwrite the working file with the content of the version ref names.

        Raises:
            PromptNotFoundError: If no prompt has this name
            NoVersionsError: If the prompt has never been committed
            RefNotFoundError / RefOutOfRangeError: If ref does not resolve
            UncommittedChangesError: If the working file differs from the latest
                version and force is False
        """
        prompt = self._get_prompt(prompt_name)
        versions = self.store.list_versions(prompt.id)
        if not versions:
            raise NoVersionsError(prompt_name)

        target = RefResolver(self.store, prompt.id, versions).require(ref)

        path = self.working_path(prompt)
        current = self.read_working_file(prompt)
        if current is not None and not force and content_changed(versions[0].content, current):
            raise UncommittedChangesError(prompt.file_path)

        path.parent.mkdir(parents=True, exist_ok=True)
        write_text_exact(path, target.content)
        logger.info(f"Checked out {prompt.name}@{target.version}")
        return target

    # ---------- diff ----------

    def diff(self, prompt_name: str, ref1: Optional[str] = None,
             ref2: Optional[str] = None) -> DiffResult:
        """Diff two states of a prompt.

        no refs    -> latest version vs working file
        ref1 only  -> ref1 vs latest version
        both refs  -> ref1 vs ref2

        Raises:
            PromptNotFoundError, NoVersionsError, RefNotFoundError, RefOutOfRangeError
            FileNotFoundError: If the working file is needed but missing
        """
        prompt = self._get_prompt(prompt_name)
        versions = self.store.list_versions(prompt.id)
        if not versions:
            raise NoVersionsError(prompt_name)

        resolver = RefResolver(self.store, prompt.id, versions)
        latest = versions[0]

        if ref1 is None:
            old = latest
            new_content = read_text_exact(self.working_path(prompt))
            label2 = f"{prompt_name} (working)"
        else:
            old = resolver.require(ref1)
            new = resolver.require(ref2) if ref2 is not None else latest
            new_content = new.content
            label2 = f"{prompt_name}@{new.version}"

        return DiffResult(
            prompt_name=prompt_name,
            label1=f"{prompt_name}@{old.version}",
            label2=label2,
            hunks=diff_contents(old.content, new_content)
        )

    # ---------- log ----------

    def log(self, prompt_name: Optional[str] = None,
            limit: Optional[int] = DEFAULT_LOG_LIMIT) -> List[LogEntry]:
        """Commit history, newest first, for one prompt or across all prompts."""
        if prompt_name is not None:
            prompt = self._get_prompt(prompt_name)
            rows = [(prompt, v) for v in self.store.list_versions(prompt.id)]
        else:
            rows = self.store.list_all_versions_for_log()

        if limit is not None and limit > 0:
            rows = rows[:limit]

        return [
            LogEntry(
                prompt_name=p.name,
                version=v.version,
                commit_message=v.commit_message or "",
                created_at=v.created_at,
                created_by=v.created_by or ""
            )
            for p, v in rows
        ]

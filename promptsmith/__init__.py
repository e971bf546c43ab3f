"""Local version control for prompt files."""

from .errors import (
    PromptSmithError, NotFoundError, ValidationError,
    ProjectNotFoundError, PromptNotFoundError, VersionNotFoundError,
    TagNotFoundError, RefNotFoundError, NoVersionsError,
    InvalidRefError, RefOutOfRangeError, PathSafetyError,
    DuplicatePromptError, ProjectExistsError, PromptParseError,
    UncommittedChangesError
)
from .database import open_db, init_db, find_project_root
from .store import PromptStore
from .refs import RefResolver, resolve_ref
from .diff import Hunk, compute_diff, diff_contents, render_unified
from .versioning import VersionManager, PromptState, bump_version, content_changed
from .tags import TagManager
from .workspace import Workspace, init_project

__version__ = "0.1.0"

__all__ = [
    "PromptSmithError",
    "NotFoundError",
    "ValidationError",
    "ProjectNotFoundError",
    "PromptNotFoundError",
    "VersionNotFoundError",
    "TagNotFoundError",
    "RefNotFoundError",
    "NoVersionsError",
    "InvalidRefError",
    "RefOutOfRangeError",
    "PathSafetyError",
    "DuplicatePromptError",
    "ProjectExistsError",
    "PromptParseError",
    "UncommittedChangesError",
    "open_db",
    "init_db",
    "find_project_root",
    "PromptStore",
    "RefResolver",
    "resolve_ref",
    "Hunk",
    "compute_diff",
    "diff_contents",
    "render_unified",
    "VersionManager",
    "PromptState",
    "bump_version",
    "content_changed",
    "TagManager",
    "Workspace",
    "init_project",
]

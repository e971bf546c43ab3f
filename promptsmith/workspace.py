"""Project initialization and prompt tracking.

init_project lays out a new project:

    <root>/.promptsmith/promptsmith.db
    <root>/.promptsmith/config.yaml
    <root>/.promptsmith/.gitignore
    <root>/prompts/  <root>/tests/  <root>/benchmarks/
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .config import (
    BENCHMARKS_DIR, CONFIG_DIR, DB_FILE, PROMPTS_DIR, TESTS_DIR,
    ProjectConfig, save_project_config
)
from .database import init_db, open_db
from .database.models import Project, Prompt
from .errors import (
    DuplicatePromptError, NoVersionsError, ProjectExistsError,
    ProjectNotFoundError, PromptNotFoundError
)
from .paths import relative_to_root, safe_project_path
from .prompt import PromptTemplateParser
from .refs import RefResolver
from .store import PromptStore
from .utils import get_app_name
from .versioning import read_text_exact

logger = logging.getLogger(__name__)


def init_project(project_root: Union[str, Path], name: Optional[str] = None) -> Project:
    """Initialize a new project in project_root.

    Args:
        project_root: Directory to initialize
        name: Project name (default: the directory name)

    Returns:
        The created Project row

    Raises:
        ProjectExistsError: If project_root already holds a .promptsmith directory
    """
    root = Path(project_root).resolve()
    if (root / CONFIG_DIR).exists():
        raise ProjectExistsError(f"project already initialized in {root}")

    project_name = name or root.name
    init_db(root)

    with open_db(root) as db:
        project = PromptStore(db).create_project(project_name)

    save_project_config(root, ProjectConfig(name=project_name, id=project.id))

    for directory in (PROMPTS_DIR, TESTS_DIR, BENCHMARKS_DIR):
        (root / directory).mkdir(parents=True, exist_ok=True)

    (root / CONFIG_DIR / ".gitignore").write_text(
        f"# {get_app_name()} database\n{DB_FILE}\n", encoding="utf-8"
    )

    logger.info(f"Initialized project '{project_name}' in {root}")
    return project


@dataclass
class PromptDetails:
    """One version of a prompt as presented by `show`."""
    name: str
    description: str
    version: str
    file_path: str
    content: str  # Body without frontmatter
    variables: List[dict] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    created_at: str = ""
    created_by: str = ""


class Workspace:
    """Tracking operations for one project."""

    def __init__(self, store: PromptStore, project_root: Union[str, Path]):
        self.store = store
        self.project_root = Path(project_root)
        self.parser = PromptTemplateParser()

    def _get_prompt(self, prompt_name: str) -> Prompt:
        prompt = self.store.get_prompt_by_name(prompt_name)
        if prompt is None:
            raise PromptNotFoundError(prompt_name)
        return prompt

    def add(self, file_path: Union[str, Path]) -> Prompt:
        """Start tracking a prompt file.

        Relative paths are taken relative to the project root. The prompt
        name comes from frontmatter, falling back to the file name without
        extension. No version is created; the first commit does that.

        Raises:
            ProjectNotFoundError: If the project row is missing
            PathSafetyError: If the path is outside the project root
            FileNotFoundError: If the file does not exist
            DuplicatePromptError: If the path or the name is already tracked
            PromptParseError: If the frontmatter is malformed
        """
        project = self.store.get_project()
        if project is None:
            raise ProjectNotFoundError()

        if os.path.isabs(file_path):
            rel_path = relative_to_root(self.project_root, file_path)
        else:
            rel_path = str(file_path)
        abs_path = safe_project_path(self.project_root, rel_path)
        rel_path = relative_to_root(self.project_root, abs_path)

        content = read_text_exact(abs_path)

        if self.store.get_prompt_by_path(rel_path) is not None:
            raise DuplicatePromptError(f"prompt {rel_path} is already tracked")

        parsed = self.parser.parse(content)
        prompt_name = parsed.name or abs_path.stem

        if self.store.get_prompt_by_name(prompt_name) is not None:
            raise DuplicatePromptError(f"a prompt named {prompt_name} already exists")

        return self.store.create_prompt(project.id, prompt_name, parsed.description, rel_path)

    def remove(self, prompt_name: str) -> int:
        """Stop tracking a prompt and delete its history. The file is kept.

        Returns:
            Number of versions deleted
        """
        prompt = self._get_prompt(prompt_name)
        version_count = len(self.store.list_versions(prompt.id))
        self.store.delete_prompt(prompt.id)
        logger.info(f"Removed '{prompt_name}' from tracking ({version_count} version(s) deleted)")
        return version_count

    def update(self, prompt_name: str, new_name: Optional[str] = None,
               description: Optional[str] = None) -> Prompt:
        """Rename and/or re-describe a prompt.

        Raises:
            PromptNotFoundError: If no prompt has this name
            DuplicatePromptError: If new_name is taken by another prompt
        """
        prompt = self._get_prompt(prompt_name)
        if new_name is not None and new_name != prompt.name:
            if self.store.get_prompt_by_name(new_name) is not None:
                raise DuplicatePromptError(f"a prompt named {new_name} already exists")
        return self.store.update_prompt(prompt.id, name=new_name, description=description)

    def show(self, prompt_name: str, ref: Optional[str] = None) -> PromptDetails:
        """Describe a version of a prompt (default: latest).

        Raises:
            PromptNotFoundError, NoVersionsError, RefNotFoundError, RefOutOfRangeError
        """
        prompt = self._get_prompt(prompt_name)
        versions = self.store.list_versions(prompt.id)
        if not versions:
            raise NoVersionsError(prompt_name)

        version = versions[0]
        if ref is not None:
            version = RefResolver(self.store, prompt.id, versions).require(ref)

        tags = [t.name for t in self.store.list_tags(prompt.id) if t.version_id == version.id]
        parsed = self.parser.parse(version.content)

        return PromptDetails(
            name=prompt.name,
            description=prompt.description or "",
            version=version.version,
            file_path=prompt.file_path,
            content=parsed.content,
            variables=json.loads(version.variables or "[]"),
            tags=tags,
            created_at=version.created_at,
            created_by=version.created_by or ""
        )

"""Tag management on top of the store.

Tags are mutable named pointers to versions. Creating a tag whose name
already exists moves it; deleting a tag that does not exist is an error.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .database.models import Prompt, PromptVersion, Tag
from .errors import NoVersionsError, PromptNotFoundError
from .refs import RefResolver
from .store import PromptStore

logger = logging.getLogger(__name__)


@dataclass
class TagInfo:
    """A tag with the version string it points at ("unknown" if dangling)."""
    name: str
    version: str
    version_id: str
    created_at: str


class TagManager:
    """Create, move, list and delete tags by prompt name."""

    def __init__(self, store: PromptStore):
        self.store = store

    def _get_prompt(self, prompt_name: str) -> Prompt:
        prompt = self.store.get_prompt_by_name(prompt_name)
        if prompt is None:
            raise PromptNotFoundError(prompt_name)
        return prompt

    def create(self, prompt_name: str, tag_name: str, ref: Optional[str] = None) -> Tag:
        """Point tag_name at the version ref names (default: latest).

        Raises:
            PromptNotFoundError: If no prompt has this name
            NoVersionsError: If the prompt has never been committed
            RefNotFoundError / RefOutOfRangeError: If ref does not resolve
        """
        prompt = self._get_prompt(prompt_name)
        versions = self.store.list_versions(prompt.id)
        if not versions:
            raise NoVersionsError(prompt_name)

        target: PromptVersion = versions[0]
        if ref is not None:
            target = RefResolver(self.store, prompt.id, versions).require(ref)

        tag = self.store.create_tag(prompt.id, target.id, tag_name)
        logger.info(f"Tagged {prompt.name}@{target.version} as '{tag_name}'")
        return tag

    def list(self, prompt_name: str) -> List[TagInfo]:
        """Tags of a prompt ordered by name."""
        prompt = self._get_prompt(prompt_name)

        result = []
        for tag in self.store.list_tags(prompt.id):
            version = self.store.get_version_by_id(tag.version_id)
            result.append(TagInfo(
                name=tag.name,
                version=version.version if version else "unknown",
                version_id=tag.version_id,
                created_at=tag.created_at
            ))
        return result

    def delete(self, prompt_name: str, tag_name: str) -> None:
        """Delete a tag.

        Raises:
            PromptNotFoundError: If no prompt has this name
            TagNotFoundError: If the prompt has no such tag
        """
        prompt = self._get_prompt(prompt_name)
        self.store.delete_tag(prompt.id, tag_name)

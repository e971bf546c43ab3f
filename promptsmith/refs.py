"""Reference resolution: turn a user-supplied string into a version.

Grammar, first match wins:
    HEAD, HEAD~N  - N-th version back from the latest (HEAD == HEAD~0)
    1.0.2         - exact version string
    prod          - tag name

Checkout, diff and tag targeting all resolve through RefResolver.
"""

import re
from typing import List, Optional

from .database.models import PromptVersion
from .errors import InvalidRefError, RefNotFoundError, RefOutOfRangeError
from .store import PromptStore

HEAD_PATTERN = re.compile(r"HEAD(?:~([0-9]+))?")


def parse_head_offset(ref: str) -> Optional[int]:
    """Return N for HEAD / HEAD~N, or None when ref is not relative notation."""
    match = HEAD_PATTERN.fullmatch(ref)
    if match is None:
        return None
    return int(match.group(1) or 0)


class RefResolver:
    """Resolve references for one prompt.

    Args:
        store: Store used for version-string and tag lookups
        prompt_id: Prompt whose history is searched
        versions: The prompt's versions, newest first (PromptStore.list_versions)
    """

    def __init__(self, store: PromptStore, prompt_id: str, versions: List[PromptVersion]):
        self.store = store
        self.prompt_id = prompt_id
        self.versions = versions

    def resolve(self, ref: str) -> Optional[PromptVersion]:
        """Resolve ref to a version, or None when nothing matches.

        Raises:
            InvalidRefError: If ref is empty
            RefOutOfRangeError: If HEAD~N points past the oldest version
        """
        if ref is None or not ref.strip():
            raise InvalidRefError("reference is required")

        offset = parse_head_offset(ref)
        if offset is not None:
            if offset >= len(self.versions):
                raise RefOutOfRangeError(offset, len(self.versions))
            return self.versions[offset]

        version = self.store.get_version_by_string(self.prompt_id, ref)
        if version is not None:
            return version

        tag = self.store.get_tag_by_name(self.prompt_id, ref)
        if tag is not None:
            return self.store.get_version_by_id(tag.version_id)

        return None

    def require(self, ref: str) -> PromptVersion:
        """Like resolve, but a miss raises RefNotFoundError."""
        version = self.resolve(ref)
        if version is None:
            raise RefNotFoundError(ref)
        return version


def resolve_ref(store: PromptStore, prompt_id: str, ref: str,
                versions: Optional[List[PromptVersion]] = None) -> Optional[PromptVersion]:
    """Resolve ref for a prompt, loading its history when not supplied."""
    if versions is None:
        versions = store.list_versions(prompt_id)
    return RefResolver(store, prompt_id, versions).resolve(ref)

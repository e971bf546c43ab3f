"""Serialized views of store entities.

Used by collaborators that move data across process boundaries: the
HTTP layer returns them as JSON and the sync layer exchanges them as
bundles between a local store and a remote.
"""

from typing import List, Optional
from pydantic import BaseModel

from .database.models import Prompt, PromptVersion, Tag


class PromptSchema(BaseModel):
    """Prompt row."""
    id: str
    project_id: Optional[str] = None
    name: str
    description: str = ""
    file_path: str
    created_at: str

    @classmethod
    def from_model(cls, prompt: Prompt) -> "PromptSchema":
        return cls(
            id=prompt.id,
            project_id=prompt.project_id,
            name=prompt.name,
            description=prompt.description or "",
            file_path=prompt.file_path,
            created_at=prompt.created_at
        )


class VersionSchema(BaseModel):
    """Prompt version row. variables and metadata are JSON strings."""
    id: str
    prompt_id: str
    version: str
    content: str
    variables: str = "[]"
    metadata: str = "{}"
    parent_version_id: Optional[str] = None
    commit_message: str = ""
    created_at: str
    created_by: str = ""

    @classmethod
    def from_model(cls, version: PromptVersion) -> "VersionSchema":
        return cls(
            id=version.id,
            prompt_id=version.prompt_id,
            version=version.version,
            content=version.content,
            variables=version.variables or "[]",
            metadata=version.metadata_json or "{}",
            parent_version_id=version.parent_version_id,
            commit_message=version.commit_message or "",
            created_at=version.created_at,
            created_by=version.created_by or ""
        )


class TagSchema(BaseModel):
    """Tag row."""
    id: str
    prompt_id: str
    version_id: str
    name: str
    created_at: str

    @classmethod
    def from_model(cls, tag: Tag) -> "TagSchema":
        return cls(
            id=tag.id,
            prompt_id=tag.prompt_id,
            version_id=tag.version_id,
            name=tag.name,
            created_at=tag.created_at
        )


class SyncBundle(BaseModel):
    """Everything a project holds, as exchanged with a remote.

    Ids inside a bundle are only meaningful within that bundle; the
    receiving side matches prompts by name, versions by version string
    and tags by name.
    """
    project_id: str
    prompts: List[PromptSchema] = []
    versions: List[VersionSchema] = []
    tags: List[TagSchema] = []


class ImportSummary(BaseModel):
    """Counts of rows inserted by PromptStore.import_bundle."""
    prompts_added: int = 0
    prompts_existing: int = 0
    versions_added: int = 0
    tags_added: int = 0

    @property
    def up_to_date(self) -> bool:
        return self.prompts_added == 0 and self.versions_added == 0 and self.tags_added == 0

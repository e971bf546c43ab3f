"""SQLAlchemy models for the prompt versioning store.

One Project per local repository. A Project owns Prompts; a Prompt owns
its Versions (a linear chain through parent_version_id) and its Tags.
Identifiers are UUID strings so that two independently created stores can
exchange rows keyed by version string / tag name instead of id.
"""

from sqlalchemy import Column, Text, ForeignKey, Index
from sqlalchemy.orm import declarative_base, relationship

from ..utils import new_id, utc_now

Base = declarative_base()


class Project(Base):
    """Project table - exactly zero or one row per local repository."""
    __tablename__ = "projects"

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False, default=utc_now)
    updated_at = Column(Text, nullable=False, default=utc_now)

    prompts = relationship("Prompt", back_populates="project")


class Prompt(Base):
    """A tracked text artifact.

    Name and file path are unique within a project. Deletion is done by
    PromptStore.delete_prompt, which removes tags, then versions, then the
    prompt in one transaction.
    """
    __tablename__ = "prompts"

    id = Column(Text, primary_key=True, default=new_id)
    project_id = Column(Text, ForeignKey("projects.id"))
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    file_path = Column(Text, nullable=False)  # Relative to project root
    created_at = Column(Text, nullable=False, default=utc_now)
    updated_at = Column(Text, nullable=False, default=utc_now)

    project = relationship("Project", back_populates="prompts")

    __table_args__ = (
        Index("idx_prompts_project", "project_id"),
        Index("idx_prompts_project_name", "project_id", "name", unique=True),
        Index("idx_prompts_project_path", "project_id", "file_path", unique=True),
    )


class PromptVersion(Base):
    """Immutable full snapshot of a prompt's content."""
    __tablename__ = "prompt_versions"

    id = Column(Text, primary_key=True, default=new_id)
    prompt_id = Column(Text, ForeignKey("prompts.id"))
    version = Column(Text, nullable=False)  # MAJOR.MINOR.PATCH
    content = Column(Text, nullable=False)
    variables = Column(Text, nullable=False, default="[]")  # JSON format
    metadata_json = Column("metadata", Text, nullable=False, default="{}")  # JSON format
    parent_version_id = Column(Text, nullable=True)
    commit_message = Column(Text, nullable=False, default="")
    created_at = Column(Text, nullable=False, default=utc_now)
    created_by = Column(Text, nullable=False, default="")

    __table_args__ = (
        Index("idx_versions_prompt", "prompt_id"),
        Index("idx_versions_prompt_version", "prompt_id", "version", unique=True),
    )


class Tag(Base):
    """Mutable named pointer from a prompt to one of its versions."""
    __tablename__ = "tags"

    id = Column(Text, primary_key=True, default=new_id)
    prompt_id = Column(Text, ForeignKey("prompts.id"))
    version_id = Column(Text, ForeignKey("prompt_versions.id"))
    name = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False, default=utc_now)

    __table_args__ = (
        Index("idx_tags_prompt", "prompt_id"),
        Index("idx_tags_prompt_name", "prompt_id", "name", unique=True),
    )


# ========== RUN LOG TABLES ==========
# Written by the test runner and benchmark harness; results are opaque JSON.

class TestSuite(Base):
    __tablename__ = "test_suites"
    __test__ = False  # Not a pytest class

    id = Column(Text, primary_key=True, default=new_id)
    prompt_id = Column(Text, ForeignKey("prompts.id"))
    name = Column(Text, nullable=False)
    config = Column(Text, nullable=False)


class TestRun(Base):
    __tablename__ = "test_runs"
    __test__ = False

    id = Column(Text, primary_key=True, default=new_id)
    suite_id = Column(Text, ForeignKey("test_suites.id"))
    version_id = Column(Text, ForeignKey("prompt_versions.id"))
    status = Column(Text)
    results = Column(Text)  # JSON format
    started_at = Column(Text, default=utc_now)
    completed_at = Column(Text, default=utc_now)


class Benchmark(Base):
    __tablename__ = "benchmarks"

    id = Column(Text, primary_key=True, default=new_id)
    prompt_id = Column(Text, ForeignKey("prompts.id"))
    config = Column(Text, nullable=False)


class BenchmarkRun(Base):
    __tablename__ = "benchmark_runs"

    id = Column(Text, primary_key=True, default=new_id)
    benchmark_id = Column(Text, ForeignKey("benchmarks.id"))
    version_id = Column(Text, ForeignKey("prompt_versions.id"))
    results = Column(Text)  # JSON format
    created_at = Column(Text, nullable=False, default=utc_now)

    __table_args__ = (
        Index("idx_benchmark_runs_benchmark", "benchmark_id"),
    )

"""Database module for the prompt versioning store."""

from .models import (
    Base, Project, Prompt, PromptVersion, Tag,
    # Run log tables
    TestSuite, TestRun, Benchmark, BenchmarkRun
)
from .database import create_db_engine, open_db, init_db, find_project_root

__all__ = [
    "Base",
    "Project",
    "Prompt",
    "PromptVersion",
    "Tag",
    "TestSuite",
    "TestRun",
    "Benchmark",
    "BenchmarkRun",
    # Database utilities
    "create_db_engine",
    "open_db",
    "init_db",
    "find_project_root",
]

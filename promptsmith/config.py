"""Project configuration and environment settings.

Environment variables are loaded from a .env file when present:
    PROMPTSMITH_SQL_ECHO   - "1"/"true" to echo SQL statements (default off)
    PROMPTSMITH_AUTHOR     - author recorded on commits (see utils.get_author)
"""

import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Union

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

CONFIG_DIR = ".promptsmith"
DB_FILE = "promptsmith.db"
CONFIG_FILE = "config.yaml"
PROMPTS_DIR = "prompts"
TESTS_DIR = "tests"
BENCHMARKS_DIR = "benchmarks"
PROMPT_FILE_SUFFIX = ".prompt"


def sql_echo_enabled() -> bool:
    return os.getenv("PROMPTSMITH_SQL_ECHO", "").lower() in ("1", "true", "yes")


@dataclass
class DefaultsConfig:
    model: str = "gpt-4o"
    temperature: float = 0.7


@dataclass
class ProjectConfig:
    """Contents of .promptsmith/config.yaml."""
    name: str
    id: str
    version: int = 1
    prompts_dir: str = f"./{PROMPTS_DIR}"
    tests_dir: str = f"./{TESTS_DIR}"
    benchmarks_dir: str = f"./{BENCHMARKS_DIR}"
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    def to_yaml(self) -> str:
        data = {
            "version": self.version,
            "project": {"name": self.name, "id": self.id},
            "prompts_dir": self.prompts_dir,
            "tests_dir": self.tests_dir,
            "benchmarks_dir": self.benchmarks_dir,
            "defaults": asdict(self.defaults),
        }
        return yaml.safe_dump(data, sort_keys=False)

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectConfig":
        project = data.get("project") or {}
        defaults = data.get("defaults") or {}
        return cls(
            name=project.get("name", ""),
            id=project.get("id", ""),
            version=data.get("version", 1),
            prompts_dir=data.get("prompts_dir", f"./{PROMPTS_DIR}"),
            tests_dir=data.get("tests_dir", f"./{TESTS_DIR}"),
            benchmarks_dir=data.get("benchmarks_dir", f"./{BENCHMARKS_DIR}"),
            defaults=DefaultsConfig(
                model=defaults.get("model", DefaultsConfig.model),
                temperature=float(defaults.get("temperature", DefaultsConfig.temperature)),
            ),
        )


def config_path(project_root: Union[str, Path]) -> Path:
    return Path(project_root) / CONFIG_DIR / CONFIG_FILE


def db_path(project_root: Union[str, Path]) -> Path:
    return Path(project_root) / CONFIG_DIR / DB_FILE


def save_project_config(project_root: Union[str, Path], config: ProjectConfig) -> Path:
    path = config_path(project_root)
    path.write_text(config.to_yaml(), encoding="utf-8")
    return path


def load_project_config(project_root: Union[str, Path]) -> ProjectConfig:
    """Read .promptsmith/config.yaml.

    Raises:
        FileNotFoundError: If the project has no config file
    """
    path = config_path(project_root)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return ProjectConfig.from_dict(data)

"""Path containment checks for working files.

Every relative path that comes from outside the process (a remote bundle,
an API request, a user argument) goes through safe_project_path before it
is joined to the project root.
"""

import os
from pathlib import Path
from typing import Union

from .errors import PathSafetyError


def safe_project_path(project_root: Union[str, Path], rel_path: str) -> Path:
    """Join rel_path to project_root, refusing anything that escapes it.

    Args:
        project_root: Absolute project root
        rel_path: Path relative to the project root

    Returns:
        Absolute path inside the project root

    Raises:
        PathSafetyError: If rel_path is empty, absolute, or resolves outside the root
    """
    if rel_path is None or not str(rel_path).strip():
        raise PathSafetyError("path is required")
    if os.path.isabs(rel_path):
        raise PathSafetyError("absolute paths are not allowed")

    root = os.path.abspath(project_root)
    full_path = os.path.normpath(os.path.join(root, rel_path))

    relative = os.path.relpath(full_path, root)
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        raise PathSafetyError("path escapes project root")

    return Path(full_path)


def relative_to_root(project_root: Union[str, Path], path: Union[str, Path]) -> str:
    """Express path (absolute or cwd-relative) relative to project_root.

    Raises:
        PathSafetyError: If path is outside the project root
    """
    root = os.path.abspath(project_root)
    absolute = os.path.abspath(path)
    relative = os.path.relpath(absolute, root)
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        raise PathSafetyError("path escapes project root")
    return Path(relative).as_posix()

"""Exception hierarchy for the prompt versioning engine.

Lookups return None when nothing matches; these exceptions are raised
for mutations against missing rows, invalid references and unsafe paths.
"""

from typing import Optional


class PromptSmithError(Exception):
    """Base class for all engine errors."""


# ========== Not found ==========

class NotFoundError(PromptSmithError):
    """A referenced entity does not exist."""


class ProjectNotFoundError(NotFoundError):
    def __init__(self, message: str = "no project found in database"):
        super().__init__(message)


class PromptNotFoundError(NotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"prompt '{name}' not found")


class VersionNotFoundError(NotFoundError):
    def __init__(self, version: str, prompt_name: Optional[str] = None):
        self.version = version
        self.prompt_name = prompt_name
        if prompt_name:
            super().__init__(f"version '{version}' not found for prompt '{prompt_name}'")
        else:
            super().__init__(f"version '{version}' not found")


class TagNotFoundError(NotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"tag '{name}' not found")


class RefNotFoundError(NotFoundError):
    """A reference matched no HEAD offset, version string or tag."""
    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"version or tag '{ref}' not found")


class NoVersionsError(NotFoundError):
    def __init__(self, prompt_name: str):
        self.prompt_name = prompt_name
        super().__init__(f"no versions found for prompt '{prompt_name}'")


# ========== Validation ==========

class ValidationError(PromptSmithError):
    """Input was rejected before touching the store."""


class InvalidRefError(ValidationError):
    pass


class RefOutOfRangeError(ValidationError):
    """HEAD~N pointed past the oldest version."""
    def __init__(self, offset: int, history_length: int):
        self.offset = offset
        self.history_length = history_length
        noun = "version" if history_length == 1 else "versions"
        super().__init__(
            f"HEAD~{offset} is beyond version history (only {history_length} {noun})"
        )


class PathSafetyError(ValidationError):
    pass


class DuplicatePromptError(ValidationError):
    pass


class ProjectExistsError(ValidationError):
    pass


class PromptParseError(ValidationError):
    pass


# ========== Working tree ==========

class UncommittedChangesError(PromptSmithError):
    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(
            f"uncommitted changes in {file_path} would be overwritten"
        )

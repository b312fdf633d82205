"""Repository configuration models.

RepositoryConfig is the per-session input to RepositoryManager.init_repo().
"""

from pathlib import PurePosixPath
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GitAuthor(BaseModel):
    """Commit identity written into the working copy's local git config.

    Attributes:
        name: Author name (``user.name``).
        address: Author e-mail address (``user.email``).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    address: str = Field(min_length=1)


class RepositoryConfig(BaseModel):
    """Configuration for one managed repository.

    Attributes:
        remote_url: URL of the remote (credentials, if any, already embedded).
        repository: Repository identifier, e.g. ``owner/name``.
        platform: Platform identifier, e.g. ``github``.
        base_branch: Base branch name. Resolved from the remote's default
            branch when None.
        git_author: Optional commit identity.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    remote_url: str = Field(min_length=1)
    repository: str = Field(min_length=1)
    platform: str = Field(default="git", min_length=1)
    base_branch: str | None = None
    git_author: GitAuthor | None = None

    @field_validator("repository", "platform")
    @classmethod
    def _validate_relative(cls, value: str) -> str:
        path = PurePosixPath(value)
        if path.is_absolute() or ".." in path.parts:
            msg = f"must be a relative identifier without '..': {value!r}"
            raise ValueError(msg)
        return value

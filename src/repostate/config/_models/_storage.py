"""Storage configuration model.

This module provides the StorageConfig Pydantic model for working copy settings.
"""

import tempfile
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class StorageConfig(BaseModel):
    """Working copy storage configuration.

    Attributes:
        tmp_dir: Root directory under which working copies are kept.
        ephemeral: When True, existing working copies are never reused and
            every init_repo() performs a full clone.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    tmp_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Root directory for local working copies.",
    )
    ephemeral: bool = Field(
        default=False,
        description="Always re-clone instead of refreshing an existing copy.",
    )

"""
Settings file - which owners to sync and how many repositories to list.

Stored as YAML (e.g. `overall.yml`) next to the database.
"""
import logging
import os
from typing import List

import yaml
from pydantic import BaseModel, Field, field_validator

from overall.core.errors import ValidationError
from overall.core.validation import validate_owner

logger = logging.getLogger(__name__)


class GitHubSettings(BaseModel):
    """Code-host settings."""
    owners: List[str] = Field(default_factory=list, description="Users or organizations to sync")
    repo_limit: int = Field(default=50, ge=1, description="Repositories listed per owner")

    @field_validator('owners')
    @classmethod
    def validate_owners(cls, v: List[str]) -> List[str]:
        """Ensure every owner is a valid name, dropping duplicates."""
        owners = []
        for owner in v:
            owner = owner.strip()
            try:
                validate_owner(owner)
            except ValidationError as e:
                raise ValueError(str(e))
            if owner not in owners:
                owners.append(owner)
        return owners


class Settings(BaseModel):
    """
    Complete settings file.

    Example:
        version: "1.0"
        github:
          owners:
            - acme
          repo_limit: 50
    """
    version: str = Field(default="1.0", description="Settings format version")
    github: GitHubSettings = Field(default_factory=GitHubSettings)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "Settings":
        """Parse settings from YAML content."""
        try:
            data = yaml.safe_load(yaml_content)
            if data is None:
                # Empty file
                return cls()
            return cls(**data)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML: {e}")

    def to_yaml(self) -> str:
        """Convert settings to YAML format."""
        data = self.model_dump(exclude_none=True)
        return yaml.dump(data, sort_keys=False, default_flow_style=False)


def load_settings(path: str) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: Settings file path; a missing file yields the defaults

    Returns:
        Validated Settings

    Raises:
        ValueError: If the file is not valid YAML or fails validation
    """
    if not os.path.exists(path):
        logger.info(f"No settings file at {path}, using defaults")
        return Settings()

    with open(path) as f:
        return Settings.from_yaml(f.read())


def save_settings(settings: Settings, path: str):
    with open(path, 'w') as f:
        f.write(settings.to_yaml())

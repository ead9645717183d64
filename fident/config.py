from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from .constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_HEADER_PREFIX,
    IDENTITY_HEADER_SUFFIX,
    SIGNATURE_HEADER_SUFFIX,
)
from .request import canonical_header_name


class FidentConfig(BaseModel):
    """Top-level configuration model."""

    model_config = ConfigDict(validate_assignment=True)

    header_prefix: str = DEFAULT_HEADER_PREFIX
    public_key_path: Optional[str] = None

    @field_validator("header_prefix")
    @classmethod
    def _canonical_prefix(cls, value: str) -> str:
        # header names are matched in canonical MIME form
        if not value:
            raise ValueError("header_prefix must not be empty")
        return canonical_header_name(value)

    @property
    def identity_header(self) -> str:
        return self.header_prefix + IDENTITY_HEADER_SUFFIX

    @property
    def signature_header(self) -> str:
        return self.header_prefix + SIGNATURE_HEADER_SUFFIX


def load_config(path: Optional[str] = None) -> FidentConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to FIDENT_CONFIG env
            variable or 'fident.yaml' in the current directory.
    """

    config_path = path or os.getenv("FIDENT_CONFIG", DEFAULT_CONFIG_FILE)
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = FidentConfig(**data)
    else:
        config = FidentConfig()

    env_key_path = os.getenv("FIDENT_PUBLIC_KEY_PATH")
    if env_key_path:
        config.public_key_path = env_key_path
    env_prefix = os.getenv("FIDENT_HEADER_PREFIX")
    if env_prefix:
        config.header_prefix = env_prefix
    return config

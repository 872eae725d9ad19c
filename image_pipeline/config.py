"""
Process-wide pipeline settings.

Settings are assigned during cold start (before any invocation runs) and
only read afterwards, so no locking is done around them.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import DEFAULT_WORKSPACE_ROOT
from .errors import ConfigValidationError
from .models import format_validation_errors


class PipelineConfig(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)

    workspace_root: str = Field(default=DEFAULT_WORKSPACE_ROOT, min_length=1)


class ConfigOptions(BaseModel):
    """Accepted shape of a set_config() call; every field is optional."""

    model_config = ConfigDict(extra='forbid')

    workspace_root: Optional[str] = Field(default=None, min_length=1)

    @field_validator('workspace_root', mode='before')
    @classmethod
    def root_not_null(cls, value):
        if value is None:
            raise ValueError('workspace_root must be a string when present')
        return value


_config = PipelineConfig()


def get_config() -> PipelineConfig:
    return _config


def set_config(options) -> PipelineConfig:
    """
    Validate and apply configuration overrides.

    Args:
        options: Mapping that may contain 'workspace_root'

    Returns:
        The configuration now in effect

    Raises:
        ConfigValidationError: options violate the schema; nothing is changed
    """
    global _config

    try:
        parsed = ConfigOptions.model_validate(options)
    except ValidationError as e:
        raise ConfigValidationError(format_validation_errors(e)) from e

    if 'workspace_root' in parsed.model_fields_set:
        _config = _config.model_copy(update={'workspace_root': parsed.workspace_root})

    return _config


def reset_config() -> PipelineConfig:
    global _config
    _config = PipelineConfig()
    return _config

"""
Typed request/response structures for a single pipeline invocation.

Validation is a parse step: a raw Lambda event either becomes a frozen
InvocationRequest or raises RequestValidationError listing every violation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import RequestValidationError


class ProcessingMode(str, Enum):
    """Closed set of transformation engines a caller may select."""

    FIT = 'fit'
    FILL = 'fill'


class Stage(str, Enum):
    VALIDATING = 'validating'
    PREPARING_WORKSPACE = 'preparing_workspace'
    FETCHING_SOURCE = 'fetching_source'
    PROCESSING = 'processing'
    PROJECTING_RESULT = 'projecting_result'
    UPLOADING_RESULTS = 'uploading_results'
    CLEANING_UP = 'cleaning_up'
    DONE = 'done'
    FAILED = 'failed'


class InvocationRequest(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)

    processing_mode: ProcessingMode
    source_bucket: str = Field(min_length=1)
    source_key: str = Field(min_length=1)
    destination_prefix: str = Field(min_length=1)
    # Element shape belongs to the transformation engine
    versions: Optional[List[Any]] = None

    @field_validator('versions', mode='before')
    @classmethod
    def versions_not_null(cls, value):
        # Absent is fine; present must be a list
        if value is None:
            raise ValueError('versions must be a list when present')
        return value


@dataclass(frozen=True)
class Workspace:
    token: str
    input_dir: str
    output_dir: str


# original file name -> derived file names, primary version first
ProcessingManifest = Dict[str, List[str]]


def format_validation_errors(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten a pydantic ValidationError into plain, JSON-safe dicts."""
    return [
        {
            'field': '.'.join(str(part) for part in item['loc']),
            'message': item['msg'],
            'type': item['type'],
        }
        for item in error.errors()
    ]


def validate_request(event: Any) -> InvocationRequest:
    """
    Parse a raw invocation event.

    Args:
        event: Lambda event payload (expected to be a JSON object)

    Returns:
        Validated, immutable InvocationRequest

    Raises:
        RequestValidationError: with every violated constraint
    """
    try:
        return InvocationRequest.model_validate(event)
    except ValidationError as e:
        raise RequestValidationError(format_validation_errors(e)) from e

"""
Fetch an image from S3, derive resized versions and upload them back.
"""

from .config import PipelineConfig, get_config, reset_config, set_config
from .errors import (
    ConfigValidationError,
    EgressTransferError,
    IngressTransferError,
    PipelineError,
    ProcessingError,
    RequestValidationError,
    WorkspaceCleanupError,
    WorkspaceCreationError,
)
from .models import InvocationRequest, ProcessingMode, Stage, Workspace, validate_request
from .pipeline import ImagePipeline, Invocation, project_result
from .storage import S3ObjectStore
from .transforms import ENGINES, TransformError
from .workspace import WorkspaceManager

__all__ = [
    "PipelineConfig",
    "get_config",
    "set_config",
    "reset_config",
    "PipelineError",
    "ConfigValidationError",
    "RequestValidationError",
    "WorkspaceCreationError",
    "IngressTransferError",
    "ProcessingError",
    "EgressTransferError",
    "WorkspaceCleanupError",
    "InvocationRequest",
    "ProcessingMode",
    "Stage",
    "Workspace",
    "validate_request",
    "ImagePipeline",
    "Invocation",
    "project_result",
    "S3ObjectStore",
    "ENGINES",
    "TransformError",
    "WorkspaceManager",
]

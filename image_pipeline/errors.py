"""
Error taxonomy for the image versions pipeline.

Every failure surfaced to the caller is a PipelineError annotated with the
stage where it happened. Only WorkspaceCleanupError is non-fatal: the
orchestrator logs it and keeps whatever outcome was already determined.
"""

from typing import Any, Dict, List, Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    default_stage = 'unknown'

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            'errorType': type(self).__name__,
            'stage': self.stage,
            'message': self.message,
        }
        if self.cause is not None:
            payload['cause'] = f"{type(self.cause).__name__}: {self.cause}"
        return payload


class SchemaViolationError(PipelineError):
    """Validation failure carrying the full list of violated constraints."""

    def __init__(self, errors: List[Dict[str, Any]], stage: Optional[str] = None):
        self.errors = errors
        summary = '; '.join(f"{e['field'] or '<root>'}: {e['message']}" for e in errors)
        super().__init__(summary or 'validation failed', stage)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload['errors'] = self.errors
        return payload


class ConfigValidationError(SchemaViolationError):
    default_stage = 'configuring'


class RequestValidationError(SchemaViolationError):
    default_stage = 'validating'


class WorkspaceCreationError(PipelineError):
    default_stage = 'preparing_workspace'


class IngressTransferError(PipelineError):
    default_stage = 'fetching_source'


class ProcessingError(PipelineError):
    default_stage = 'processing'


class EgressTransferError(PipelineError):
    default_stage = 'uploading_results'

    def __init__(self, message: str, uploaded_keys: Optional[List[str]] = None,
                 stage: Optional[str] = None):
        super().__init__(message, stage)
        # Objects already written before the failure; they are not rolled back
        self.uploaded_keys = list(uploaded_keys or [])


class WorkspaceCleanupError(PipelineError):
    default_stage = 'cleaning_up'

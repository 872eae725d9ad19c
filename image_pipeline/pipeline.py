"""
Pipeline orchestrator.

One invocation runs strictly in order:

    validating -> preparing_workspace -> fetching_source -> processing
    -> projecting_result -> uploading_results -> cleaning_up -> done

Any failure moves to 'failed' after cleanup. The first error is re-raised
annotated with the stage it happened in. Cleanup runs exactly once for every
acquired workspace, and a cleanup failure is only logged: it never replaces
a result or an error that is already on its way out.
"""

import json
import os
import posixpath
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .config import PipelineConfig
from .constants import CACHE_MAX_AGE_SECONDS, LOG_PREFIX, UPLOAD_ACL
from .errors import (
    EgressTransferError,
    IngressTransferError,
    PipelineError,
    ProcessingError,
    WorkspaceCleanupError,
    WorkspaceCreationError,
)
from .models import (
    InvocationRequest,
    ProcessingManifest,
    ProcessingMode,
    Stage,
    Workspace,
    validate_request,
)
from .storage import S3ObjectStore
from .transforms import ENGINES
from .workspace import WorkspaceManager

# Error raised when a collaborator fails with something other than a PipelineError
STAGE_ERRORS = {
    Stage.PREPARING_WORKSPACE: WorkspaceCreationError,
    Stage.FETCHING_SOURCE: IngressTransferError,
    Stage.PROCESSING: ProcessingError,
    Stage.PROJECTING_RESULT: ProcessingError,
    Stage.UPLOADING_RESULTS: EgressTransferError,
}


@dataclass
class Invocation:
    """Bookkeeping for one run of the pipeline"""

    invocation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    stage: Stage = Stage.VALIDATING
    history: List[Stage] = field(default_factory=list)
    error: Optional[PipelineError] = None
    cleanup_error: Optional[WorkspaceCleanupError] = None


def source_file_name(key: str) -> str:
    """Final path component of an object key, used as the local file name"""
    return posixpath.basename(key)


def check_manifest(manifest: Any, file_name: str) -> List[str]:
    """
    Verify an engine response and return the derived names for file_name.

    The manifest must hold exactly one entry, keyed by the source file name,
    with at least one derived file (the primary version first).
    """
    if not isinstance(manifest, dict):
        raise ProcessingError(f"Engine returned {type(manifest).__name__}, expected a mapping")
    if file_name not in manifest:
        raise ProcessingError(f"Engine response has no entry for {file_name}")
    if len(manifest) != 1:
        raise ProcessingError(f"Engine response has {len(manifest)} entries, expected 1")

    derived = manifest[file_name]
    if not isinstance(derived, (list, tuple)) or not derived:
        raise ProcessingError(f"Engine response lists no versions for {file_name}")
    return list(derived)


def project_result(manifest: ProcessingManifest, file_name: str,
                   destination_prefix: str) -> Dict[str, Dict[str, str]]:
    """
    Build the invocation result from the primary (first) derived version.

    Only the primary key is returned; the other versions share its name
    stem and can be derived from it.
    """
    primary = check_manifest(manifest, file_name)[0]
    return {'data': {'key': posixpath.join(destination_prefix, primary)}}


class ImagePipeline:
    """
    Fetch one image, derive its versions and upload them.

    Args:
        store: Object store with fetch() and upload_directory()
        engines: ProcessingMode -> engine callable
        workspaces: Workspace manager; built from config when omitted
        config: Injected configuration; when omitted, the process-wide
            configuration is read at workspace acquisition time
    """

    def __init__(
        self,
        store: Optional[S3ObjectStore] = None,
        engines: Optional[Dict[ProcessingMode, Callable[..., ProcessingManifest]]] = None,
        workspaces: Optional[WorkspaceManager] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.store = store if store is not None else S3ObjectStore()
        self.engines = engines if engines is not None else ENGINES
        if workspaces is None:
            workspaces = WorkspaceManager(config.workspace_root if config is not None else None)
        self.workspaces = workspaces

    def invoke(self, event: Any) -> Dict[str, Dict[str, str]]:
        return self.execute(Invocation(), event)

    def execute(self, invocation: Invocation, event: Any) -> Dict[str, Dict[str, str]]:
        """
        Run every stage for one event.

        Returns:
            {'data': {'key': <destination key of the primary version>}}

        Raises:
            PipelineError: the first failure, with .stage set
        """
        workspace = None
        succeeded = False

        try:
            self._advance(invocation, Stage.VALIDATING)
            request = validate_request(event)
            print(f"{LOG_PREFIX}: Validation complete")

            self._advance(invocation, Stage.PREPARING_WORKSPACE)
            workspace = self.workspaces.acquire()

            self._advance(invocation, Stage.FETCHING_SOURCE)
            file_name = self.fetch_source(request, workspace)

            self._advance(invocation, Stage.PROCESSING)
            manifest = self.run_engine(request, workspace, file_name)

            self._advance(invocation, Stage.PROJECTING_RESULT)
            result = project_result(manifest, file_name, request.destination_prefix)

            self._advance(invocation, Stage.UPLOADING_RESULTS)
            self.upload_results(request, workspace)
            succeeded = True

        except PipelineError as e:
            self._record_failure(invocation, e)
            raise

        except Exception as e:
            error_class = STAGE_ERRORS.get(invocation.stage, PipelineError)
            error = error_class(f"{type(e).__name__}: {e}")
            self._record_failure(invocation, error)
            raise error from e

        finally:
            if workspace is not None:
                self._cleanup(invocation, workspace)
            if not succeeded:
                self._advance(invocation, Stage.FAILED)

        self._advance(invocation, Stage.DONE)
        print(f"{LOG_PREFIX}: Returning {json.dumps(result)}")
        return result

    def fetch_source(self, request: InvocationRequest, workspace: Workspace) -> str:
        """Download the source object into the input directory; returns its local name"""
        file_name = source_file_name(request.source_key)
        if not file_name:
            raise IngressTransferError(f"Key {request.source_key!r} does not name a file")
        print(f"{LOG_PREFIX}: file_name = {file_name}")

        print(f"{LOG_PREFIX}: Getting s3://{request.source_bucket}/{request.source_key}")
        body = self.store.fetch(request.source_bucket, request.source_key)

        local_path = os.path.join(workspace.input_dir, file_name)
        try:
            with open(local_path, 'wb') as f:
                f.write(body)
        except OSError as e:
            raise IngressTransferError(f"Could not write {local_path}: {e}") from e

        print(f"{LOG_PREFIX}: Got object ({len(body)} bytes)")
        return file_name

    def run_engine(self, request: InvocationRequest, workspace: Workspace,
                   file_name: str) -> ProcessingManifest:
        engine = self.engines.get(request.processing_mode)
        if engine is None:
            raise ProcessingError(f"No engine registered for mode {request.processing_mode.value}")

        print(f"{LOG_PREFIX}: Starting image processing ({request.processing_mode.value})")
        try:
            manifest = engine(workspace.input_dir, workspace.output_dir, request.versions)
        except PipelineError:
            raise
        except Exception as e:
            # Engine failures are surfaced as-is, whatever their cause
            raise ProcessingError(f"{type(e).__name__}: {e}") from e

        check_manifest(manifest, file_name)
        print(f"{LOG_PREFIX}: Finished image processing")
        return manifest

    def upload_results(self, request: InvocationRequest, workspace: Workspace) -> List[str]:
        print(f"{LOG_PREFIX}: Uploading to s3://{request.source_bucket}/{request.destination_prefix}")
        uploaded = self.store.upload_directory(
            workspace.output_dir,
            request.source_bucket,
            request.destination_prefix,
            acl=UPLOAD_ACL,
            cache_max_age=CACHE_MAX_AGE_SECONDS,
        )
        print(f"{LOG_PREFIX}: Uploaded {len(uploaded)} file(s)")
        return uploaded

    def _cleanup(self, invocation: Invocation, workspace: Workspace) -> None:
        self._advance(invocation, Stage.CLEANING_UP)
        try:
            self.workspaces.release(workspace)
        except WorkspaceCleanupError as e:
            invocation.cleanup_error = e
            print(f"{LOG_PREFIX}: Cleanup failed (ignored) {json.dumps(e.to_dict())}")

    def _record_failure(self, invocation: Invocation, error: PipelineError) -> None:
        error.stage = invocation.stage.value
        invocation.error = error
        print(f"{LOG_PREFIX}: Failed {json.dumps(error.to_dict())}")

    def _advance(self, invocation: Invocation, stage: Stage) -> None:
        invocation.stage = stage
        invocation.history.append(stage)
        print(f"{LOG_PREFIX}: [{invocation.invocation_id}] {stage.value}")

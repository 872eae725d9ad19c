"""
Per-invocation transient directories.

Each invocation gets its own input/output directory pair under the
configured workspace root. Both names carry a uuid4 token, so concurrent
invocations in a shared root (or a reused warm container) never collide.
"""

import os
import shutil
import uuid
from typing import Optional

from .config import get_config
from .constants import INPUT_DIR_PREFIX, LOG_PREFIX, OUTPUT_DIR_PREFIX
from .errors import WorkspaceCleanupError, WorkspaceCreationError
from .models import Workspace


class WorkspaceManager:
    """
    Creates and removes invocation workspaces.

    Args:
        root: Workspace root. When None, the process-wide configuration is
            read each time a workspace is acquired.
    """

    def __init__(self, root: Optional[str] = None):
        self.root = root

    def _current_root(self) -> str:
        return self.root if self.root is not None else get_config().workspace_root

    def acquire(self) -> Workspace:
        token = uuid.uuid4().hex
        root = self._current_root()
        workspace = Workspace(
            token=token,
            input_dir=os.path.join(root, f"{INPUT_DIR_PREFIX}{token}"),
            output_dir=os.path.join(root, f"{OUTPUT_DIR_PREFIX}{token}"),
        )

        try:
            os.makedirs(workspace.input_dir)
            os.makedirs(workspace.output_dir)
        except OSError as e:
            # Don't leave a half-built workspace behind
            for path in (workspace.input_dir, workspace.output_dir):
                shutil.rmtree(path, ignore_errors=True)
            raise WorkspaceCreationError(
                f"Could not create workspace under {root}: {e}"
            ) from e

        print(f"{LOG_PREFIX}: Created workspace {workspace.input_dir}, {workspace.output_dir}")
        return workspace

    def release(self, workspace: Workspace) -> None:
        """
        Remove both workspace directories and everything inside them.

        Both removals are attempted even if the first one fails.

        Raises:
            WorkspaceCleanupError: if either directory could not be removed
        """
        failures = []

        for path in (workspace.input_dir, workspace.output_dir):
            try:
                shutil.rmtree(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                failures.append((path, e))

        if failures:
            details = ', '.join(f"{path} ({e})" for path, e in failures)
            raise WorkspaceCleanupError(f"Could not remove {details}") from failures[0][1]

        print(f"{LOG_PREFIX}: Removed workspace {workspace.token}")

"""Platform layer reconciling a bot workspace with the BotRacers registry."""

__version__ = "0.3.0"

from .build import CargoBuildInvoker
from .engine import (
    EngineSnapshot,
    ReconciliationEngine,
    ReplaceOutcome,
    UploadOutcome,
    classify_refresh_failure,
)
from .errors import (
    BuildError,
    BuildOutputMissingError,
    PreconditionError,
    WorkbenchError,
    WorkspaceManifestError,
)
from .factory import create_engine
from .registry_client import RegistryClient, RegistryClientError, RegistryClientHTTPError
from .scaffold import scaffold_workspace
from .session_store import FileSessionStore
from .view_state import (
    LoggedOut,
    LoggedOutReason,
    NeedsWorkspace,
    Ready,
    ViewState,
    ViewStatus,
    WorkspaceIssue,
    view_status_from_pair,
)
from .workspace import LocalBinary, WorkspaceContext, WorkspaceInspector, artifact_output_path

__all__ = [
    "__version__",
    "BuildError",
    "BuildOutputMissingError",
    "CargoBuildInvoker",
    "EngineSnapshot",
    "FileSessionStore",
    "LocalBinary",
    "LoggedOut",
    "LoggedOutReason",
    "NeedsWorkspace",
    "PreconditionError",
    "Ready",
    "ReconciliationEngine",
    "RegistryClient",
    "RegistryClientError",
    "RegistryClientHTTPError",
    "ReplaceOutcome",
    "UploadOutcome",
    "ViewState",
    "ViewStatus",
    "WorkbenchError",
    "WorkspaceContext",
    "WorkspaceInspector",
    "WorkspaceIssue",
    "WorkspaceManifestError",
    "artifact_output_path",
    "classify_refresh_failure",
    "create_engine",
    "scaffold_workspace",
    "view_status_from_pair",
]

"""
Core functionality for contribkit.

This package contains the foundational modules the contribution pipelines
depend on: progress tracking, transport, archives, verification, host
detection and the content store layout.
"""

from .directory import (
    ContentStore,
    DirectoryError,
    get_data_dir,
)

from .locking import (
    StoreLock,
    LockTimeout,
)

from .platform import (
    PlatformInfo,
    ScriptDiscovery,
    detect_platform,
)

from .progress import (
    MultiStepProgress,
)

from .exceptions import (
    ContribKitError,
    ContributionError,
    AlreadyInstalledError,
    ToolUnavailableError,
    ToolNotFoundError,
    ScriptExecutionError,
    IndexUpdateError,
)

__all__ = [
    "ContentStore",
    "DirectoryError",
    "get_data_dir",
    "StoreLock",
    "LockTimeout",
    "PlatformInfo",
    "ScriptDiscovery",
    "detect_platform",
    "MultiStepProgress",
    "ContribKitError",
    "ContributionError",
    "AlreadyInstalledError",
    "ToolUnavailableError",
    "ToolNotFoundError",
    "ScriptExecutionError",
    "IndexUpdateError",
]

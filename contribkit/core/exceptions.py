"""
Centralized exception hierarchy for contribkit.

This module defines the custom exceptions shared across the codebase so that
callers can tell fatal conditions apart from recoverable ones.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class ContribKitError(Exception):
    """Base exception for all contribkit errors."""

    pass


# ============================================================================
# Contribution Exceptions
# ============================================================================


class ContributionError(ContribKitError):
    """Base exception for contribution install/remove errors."""

    pass


class AlreadyInstalledError(ContributionError):
    """Raised when installing a platform that is already installed."""

    def __init__(self, contribution_id: str):
        self.contribution_id = contribution_id
        super().__init__(f"Platform is already installed: {contribution_id}")


class ToolUnavailableError(ContributionError):
    """Raised when a required tool has no archive for the running host."""

    def __init__(self, tool_name: str, host: str = ""):
        self.tool_name = tool_name
        self.host = host
        super().__init__(
            f"Tool {tool_name} is not available for your operating system."
        )


class ToolNotFoundError(ContributionError):
    """Raised when a platform references a tool missing from the index."""

    def __init__(self, tool_name: str, version: str = ""):
        self.tool_name = tool_name
        self.version = version
        msg = f"Tool not found in index: {tool_name}"
        if version:
            msg += f" version {version}"
        super().__init__(msg)


class ScriptExecutionError(ContributionError):
    """Raised when a lifecycle script exits with a failure status."""

    def __init__(self, script: str, returncode: int = -1, stderr: str = ""):
        self.script = script
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Script {script} failed with exit code {returncode}")


# ============================================================================
# Index Exceptions
# ============================================================================


class IndexUpdateError(ContribKitError):
    """Raised when the default package index cannot be refreshed."""

    pass


__all__ = [
    "ContribKitError",
    "ContributionError",
    "AlreadyInstalledError",
    "ToolUnavailableError",
    "ToolNotFoundError",
    "ScriptExecutionError",
    "IndexUpdateError",
]

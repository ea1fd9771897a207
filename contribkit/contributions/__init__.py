"""
Contribution management for contribkit.

This module provides:
- The contribution data model and tool arena
- Platform installation and removal
- Trust-gated lifecycle script execution
- Package index synchronization
"""

from contribkit.contributions.models import (
    DownloadableContribution,
    HostDownloadable,
    ToolKey,
    Tool,
    Platform,
    Package,
    ContributionsIndex,
)
from contribkit.contributions.downloader import ContributionDownloader
from contribkit.contributions.scripts import ScriptRunner
from contribkit.contributions.installer import ContributionInstaller, pending_tools
from contribkit.contributions.remover import ContributionRemover
from contribkit.contributions.index_sync import (
    IndexSynchronizer,
    DEFAULT_INDEX_FILE_NAME,
)
from contribkit.contributions.manager import ContributionManager

__all__ = [
    "DownloadableContribution",
    "HostDownloadable",
    "ToolKey",
    "Tool",
    "Platform",
    "Package",
    "ContributionsIndex",
    "ContributionDownloader",
    "ScriptRunner",
    "ContributionInstaller",
    "pending_tools",
    "ContributionRemover",
    "IndexSynchronizer",
    "DEFAULT_INDEX_FILE_NAME",
    "ContributionManager",
]

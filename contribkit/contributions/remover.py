"""
Platform removal with reference-counted tool cleanup.

Removing a platform runs its pre-uninstall script, deletes its folder and
then deletes every tool it required that no other installed platform still
needs.
"""

import logging
from typing import List, Optional

from contribkit.core.directory import ContentStore
from contribkit.core.exceptions import ScriptExecutionError
from contribkit.core.filesystem import remove_empty_directory, safe_rmtree
from contribkit.core.platform import PlatformInfo, detect_platform
from contribkit.contributions.models import ContributionsIndex, Platform
from contribkit.contributions.scripts import ScriptRunner

logger = logging.getLogger(__name__)


class ContributionRemover:
    """
    Uninstalls platforms.

    Example:
        >>> remover = ContributionRemover(index, ContentStore.default())
        >>> errors = remover.remove(platform)
    """

    def __init__(
        self,
        index: ContributionsIndex,
        store: ContentStore,
        script_runner: Optional[ScriptRunner] = None,
        host: Optional[PlatformInfo] = None,
    ):
        self.index = index
        self.store = store
        self.script_runner = script_runner or ScriptRunner()
        self.host = host or detect_platform()

    def remove(
        self, platform: Optional[Platform], trust_all: bool = False
    ) -> List[str]:
        """
        Remove a platform and the tools nobody else uses.

        Read-only platforms are never removed; this is not an error.

        Args:
            platform: Platform to remove (None is a no-op)
            trust_all: Run lifecycle scripts even for untrusted packages

        Returns:
            Non-fatal errors (empty on full success)
        """
        errors: List[str] = []
        if platform is None or platform.read_only:
            return errors

        installed_folder = platform.installed_folder
        try:
            self.script_runner.run_pre_uninstall(
                installed_folder, platform.package.trusted, trust_all
            )
        except ScriptExecutionError as e:
            logger.warning(f"Error running pre uninstall script for {platform}: {e}")
            errors.append("Error running pre uninstall script")

        if installed_folder is not None:
            safe_rmtree(installed_folder, require_prefix=self.store.packages_dir)
        platform.archive.mark_removed()
        logger.info(f"Removed {platform.id}")

        for tool in self.index.resolve_tools(platform):
            if self.index.is_tool_used(tool):
                logger.debug(f"Keeping {tool}: still used by an installed platform")
                continue

            downloadable = tool.downloadable_for(self.host)
            if downloadable is None or downloadable.installed_folder is None:
                continue

            dest_folder = downloadable.installed_folder
            safe_rmtree(dest_folder, require_prefix=self.store.packages_dir)
            downloadable.mark_removed()
            logger.info(f"Removed unused tool {tool}")

            # The tool name folder stays while other versions live in it
            remove_empty_directory(dest_folder.parent)

        return errors


__all__ = ["ContributionRemover"]

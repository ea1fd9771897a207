"""
Platform installation pipeline.

Installing a platform stages its archive and the archives of every required
tool not yet on disk, then unpacks the tools followed by the platform into
the content store, running each artifact's post-install script on the way.

Failing scripts do not stop the pipeline; they are reported in the returned
error list. Preconditions (platform already installed, tool unavailable for
the host) and transport failures raise before anything is unpacked.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from contribkit.core.directory import ContentStore
from contribkit.core.download import DownloadInterrupted
from contribkit.core.exceptions import (
    AlreadyInstalledError,
    ScriptExecutionError,
    ToolUnavailableError,
)
from contribkit.core.filesystem import ensure_directory, extract_archive
from contribkit.core.platform import PlatformInfo, detect_platform
from contribkit.core.progress import MultiStepProgress, ProgressCallback
from contribkit.contributions.downloader import ContributionDownloader
from contribkit.contributions.models import (
    ContributionsIndex,
    DownloadableContribution,
    Platform,
    Tool,
)
from contribkit.contributions.scripts import ScriptRunner

logger = logging.getLogger(__name__)

Extractor = Callable[[Path, Path, int], None]


class ContributionInstaller:
    """
    Installs platforms together with their tools.

    Example:
        >>> installer = ContributionInstaller(index, ContentStore.default())
        >>> errors = installer.install(platform, trust_all=False)
        >>> if errors:
        ...     print("Installed with warnings:", errors)
    """

    def __init__(
        self,
        index: ContributionsIndex,
        store: ContentStore,
        downloader: Optional[ContributionDownloader] = None,
        script_runner: Optional[ScriptRunner] = None,
        host: Optional[PlatformInfo] = None,
        extractor: Optional[Extractor] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize installer.

        Args:
            index: Arena resolving tool keys
            store: Content store layout
            downloader: Archive downloader (stages into store.staging_dir if None)
            script_runner: Lifecycle script runner
            host: Host platform used to pick tool archives (detected if None)
            extractor: Callable(archive, destination, strip_components)
            on_progress: Progress sink called after every status change
        """
        self.index = index
        self.store = store
        self.on_progress = on_progress
        self.downloader = downloader or ContributionDownloader(
            store.staging_dir, on_progress=on_progress
        )
        self.script_runner = script_runner or ScriptRunner()
        self.host = host or detect_platform()
        self.extractor = extractor or _extract

    def cancel(self) -> None:
        """Stop before the next download starts."""
        self.downloader.cancel()

    def install(self, platform: Platform, trust_all: bool = False) -> List[str]:
        """
        Install a platform and the tools it needs.

        Args:
            platform: Platform to install
            trust_all: Run lifecycle scripts even for untrusted packages

        Returns:
            Non-fatal errors (empty on full success). When the download
            phase is cancelled, the errors collected so far are returned and
            nothing is installed.

        Raises:
            AlreadyInstalledError: If the platform is already installed
            ToolUnavailableError: If a tool has no archive for this host
            DownloadError: If an archive cannot be downloaded
            ArchiveExtractionError: If an archive cannot be unpacked
        """
        errors: List[str] = []
        if platform.installed:
            raise AlreadyInstalledError(platform.id)

        tools = pending_tools(self.index, platform, self.host)

        progress = MultiStepProgress((len(tools) + 1) * 2)
        logger.info(
            f"Installing {platform.id} with {len(tools)} tool(s) to download"
        )

        try:
            self.downloader.download(
                platform.archive, progress, "Downloading boards definitions."
            )
            progress.step_done()

            for i, (tool, downloadable) in enumerate(tools, 1):
                msg = f"Downloading tools ({i}/{len(tools)})."
                self.downloader.download(downloadable, progress, msg)
                progress.step_done()
        except DownloadInterrupted:
            logger.info(f"Installation of {platform.id} cancelled during download")
            return errors

        package = platform.package
        trusted = package.trusted

        for i, (tool, downloadable) in enumerate(tools, 1):
            self._set_status(progress, f"Installing tools ({i}/{len(tools)})...")
            dest_folder = self.store.tool_folder(package.name, tool.name, tool.version)
            self._install_artifact(
                downloadable,
                dest_folder,
                trusted,
                trust_all,
                errors,
                f"Error running post install script for tool {tool}",
            )
            progress.step_done()

        self._set_status(progress, "Installing boards...")
        dest_folder = self.store.platform_folder(
            package.name, platform.architecture, platform.version
        )
        self._install_artifact(
            platform.archive,
            dest_folder,
            trusted,
            trust_all,
            errors,
            "Error running post install script",
        )
        progress.step_done()

        self._set_status(progress, "Installation completed!")
        logger.info(f"Installed {platform.id} into {dest_folder}")
        return errors

    def _install_artifact(
        self,
        contribution: DownloadableContribution,
        dest_folder: Path,
        trusted: bool,
        trust_all: bool,
        errors: List[str],
        script_error: str,
    ) -> None:
        """Unpack, run the post-install hook, then flag as installed."""
        if contribution.downloaded_file is None:
            raise ValueError(f"Archive not downloaded: {contribution.url}")

        ensure_directory(dest_folder)
        logger.debug(f"Extracting {contribution.downloaded_file} to {dest_folder}")
        self.extractor(contribution.downloaded_file, dest_folder, 1)

        try:
            self.script_runner.run_post_install(dest_folder, trusted, trust_all)
        except ScriptExecutionError as e:
            logger.warning(f"{script_error}: {e}")
            errors.append(script_error)

        contribution.mark_installed(dest_folder)

    def _set_status(self, progress: MultiStepProgress, status: str) -> None:
        progress.set_status(status)
        if self.on_progress:
            self.on_progress(progress)


def _extract(archive: Path, destination: Path, strip_components: int) -> None:
    extract_archive(archive, destination, strip_components=strip_components)


def pending_tools(
    index: ContributionsIndex, platform: Platform, host: PlatformInfo
) -> List[Tuple[Tool, DownloadableContribution]]:
    """
    Tools a platform install would download on host, with their archives.

    Tools whose archive is already installed are left out.

    Raises:
        ToolUnavailableError: If a tool has no archive for host
    """
    missing = []
    for tool in index.resolve_tools(platform):
        downloadable = tool.downloadable_for(host)
        if downloadable is None:
            raise ToolUnavailableError(tool.name, str(host))
        if not downloadable.installed:
            missing.append((tool, downloadable))
    return missing


__all__ = ["ContributionInstaller", "pending_tools"]

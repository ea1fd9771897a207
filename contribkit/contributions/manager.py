"""
High-level entry point tying configuration to the install, remove and index
pipelines.

Each operation holds the content store lock for its whole duration, so a GUI
worker and a command-line session pointed at the same store never interleave.

Usage:
    from contribkit.config import load_config
    from contribkit.contributions import ContributionManager

    manager = ContributionManager(load_config(Path("contribkit.yaml")), index)
    manager.update_index()
    errors = manager.install(platform)
"""

import logging
import threading
from typing import List, Optional

from contribkit.config.parser import ContribKitConfig
from contribkit.core.locking import StoreLock
from contribkit.core.platform import PlatformInfo, detect_platform
from contribkit.core.progress import ProgressCallback
from contribkit.core.verification import GPGSignatureVerifier
from contribkit.contributions.downloader import ContributionDownloader
from contribkit.contributions.index_sync import IndexSynchronizer
from contribkit.contributions.installer import ContributionInstaller
from contribkit.contributions.models import ContributionsIndex, Platform
from contribkit.contributions.remover import ContributionRemover
from contribkit.contributions.scripts import ScriptRunner

logger = logging.getLogger(__name__)


class ContributionManager:
    """
    Serialized install/remove/update operations against one content store.

    Attributes:
        config: Loaded configuration
        index: Arena of known packages and tools
        store: Content store layout derived from config
    """

    def __init__(
        self,
        config: ContribKitConfig,
        index: ContributionsIndex,
        host: Optional[PlatformInfo] = None,
        on_progress: Optional[ProgressCallback] = None,
        verifier=None,
        lock_timeout: int = 300,
    ):
        self.config = config
        self.index = index
        self.store = config.store.content_store().ensure_structure()
        self.host = host or detect_platform()
        self.lock = StoreLock(self.store.packages_dir)
        self.lock_timeout = lock_timeout
        self.cancel_event = threading.Event()
        logger.debug(f"Using content store: {self.store.packages_dir}")

        self.downloader = ContributionDownloader(
            self.store.staging_dir,
            cancel_event=self.cancel_event,
            on_progress=on_progress,
        )
        script_runner = ScriptRunner()
        self.installer = ContributionInstaller(
            index,
            self.store,
            downloader=self.downloader,
            script_runner=script_runner,
            host=self.host,
            on_progress=on_progress,
        )
        self.remover = ContributionRemover(
            index, self.store, script_runner=script_runner, host=self.host
        )
        self.synchronizer = IndexSynchronizer(
            self.store,
            self.downloader,
            verifier or GPGSignatureVerifier(config.index.keyring),
            default_url=config.index.default_url,
            additional_urls=config.contributions.additional_urls,
        )

    @property
    def trust_all(self) -> bool:
        return self.config.contributions.trust_all

    def cancel(self) -> None:
        """Cancel the running operation before its next download."""
        self.cancel_event.set()

    def install(self, platform: Platform) -> List[str]:
        """Install platform; see ContributionInstaller.install."""
        with self.lock.acquire(timeout=self.lock_timeout):
            self.cancel_event.clear()
            return self.installer.install(platform, trust_all=self.trust_all)

    def remove(self, platform: Optional[Platform]) -> List[str]:
        """Remove platform; see ContributionRemover.remove."""
        with self.lock.acquire(timeout=self.lock_timeout):
            return self.remover.remove(platform, trust_all=self.trust_all)

    def update_index(self) -> List[str]:
        """Refresh package indexes; see IndexSynchronizer.update_index."""
        with self.lock.acquire(timeout=self.lock_timeout):
            self.cancel_event.clear()
            return self.synchronizer.update_index()


__all__ = ["ContributionManager"]

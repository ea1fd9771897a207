"""
Staging of contribution archives.

This module fetches platform and tool archives into the staging folder and
feeds byte-level progress into the operation's MultiStepProgress. It owns the
cooperative cancellation flag: cancellation is honored before each artifact
starts, an artifact already in flight completes.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from contribkit.core.download import (
    ChecksumError,
    DownloadInterrupted,
    DownloadProgress,
    download_file,
)
from contribkit.core.progress import MultiStepProgress, ProgressCallback
from contribkit.core.verification import (
    HashFormatError,
    parse_checksum,
    verify_file_checksum,
)
from contribkit.contributions.models import DownloadableContribution

logger = logging.getLogger(__name__)


class ContributionDownloader:
    """
    Downloads contributions and index files.

    Example:
        >>> downloader = ContributionDownloader(Path("staging"))
        >>> progress = MultiStepProgress(2)
        >>> downloader.download(platform.archive, progress, "Downloading")
    """

    def __init__(
        self,
        staging_dir: Path,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
        timeout: int = 30,
    ):
        """
        Initialize contribution downloader.

        Args:
            staging_dir: Folder where archives are stored
            cancel_event: Shared cancellation flag (a new one if None)
            on_progress: Progress sink called after every progress change
            timeout: Per-request timeout in seconds
        """
        self.staging_dir = Path(staging_dir)
        self.cancel_event = cancel_event or threading.Event()
        self.on_progress = on_progress
        self.timeout = timeout

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next artifact."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def download(
        self,
        contribution: DownloadableContribution,
        progress: MultiStepProgress,
        status: str,
    ) -> Path:
        """
        Stage a contribution archive and record it as downloaded.

        An already-staged archive whose checksum matches is reused.

        Returns:
            Path of the staged archive

        Raises:
            DownloadInterrupted: If cancellation was requested
            DownloadError: If the transfer fails
            ChecksumError: If the archive does not match its checksum
        """
        self._check_cancelled()
        self._report(progress, status)

        destination = self.staging_dir / contribution.archive_file_name
        algorithm, expected = self._expected_checksum(contribution)

        if destination.exists() and expected is not None:
            if verify_file_checksum(destination, contribution.checksum):
                logger.info(f"Using staged archive: {destination}")
                contribution.downloaded_file = destination
                progress.set_step_progress(100.0)
                self._notify(progress)
                return destination
            logger.warning(f"Staged archive is corrupt, re-downloading: {destination}")
            destination.unlink()

        download_file(
            url=contribution.url,
            destination=destination,
            expected_sha256=expected if algorithm == "sha256" else None,
            progress_callback=self._byte_progress(progress),
            timeout=self.timeout,
        )

        # Digests other than SHA-256 are checked once the file is complete
        if expected is not None and algorithm != "sha256":
            if not verify_file_checksum(destination, contribution.checksum):
                destination.unlink()
                raise ChecksumError(
                    f"Checksum mismatch for {destination.name}: "
                    f"expected {contribution.checksum}"
                )

        contribution.downloaded_file = destination
        return destination

    def download_url(
        self,
        url: str,
        destination: Path,
        progress: MultiStepProgress,
        status: str,
    ) -> Path:
        """
        Fetch an arbitrary URL (index files and their signatures).

        Raises:
            DownloadInterrupted: If cancellation was requested
            DownloadError: If the transfer fails
        """
        self._check_cancelled()
        self._report(progress, status)
        return download_file(
            url=url,
            destination=destination,
            progress_callback=self._byte_progress(progress),
            timeout=self.timeout,
        )

    def _check_cancelled(self) -> None:
        if self.cancelled:
            raise DownloadInterrupted("Download cancelled")

    def _expected_checksum(self, contribution: DownloadableContribution):
        if not contribution.checksum:
            return None, None
        try:
            return parse_checksum(contribution.checksum)
        except HashFormatError as e:
            raise ChecksumError(
                f"Invalid checksum for {contribution.archive_file_name}: {e}"
            ) from e

    def _report(self, progress: MultiStepProgress, status: str) -> None:
        progress.set_status(status)
        self._notify(progress)

    def _notify(self, progress: MultiStepProgress) -> None:
        if self.on_progress:
            self.on_progress(progress)

    def _byte_progress(self, progress: MultiStepProgress):
        def callback(dp: DownloadProgress):
            logger.debug(f"Download progress: {dp}")
            progress.set_step_progress(dp.percentage)
            self._notify(progress)

        return callback


__all__ = ["ContributionDownloader"]

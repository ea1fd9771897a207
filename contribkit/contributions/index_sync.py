"""
Package index synchronization.

Index files are fetched from the default source and from any additional
sources the user configured. Each index must come with a valid detached
signature (``<url>.sig``); an index without one is discarded together with
its signature. Index files left behind by sources that are no longer
configured are deleted at the end of a pass.

Usage:
    synchronizer = IndexSynchronizer(store, downloader, GPGSignatureVerifier())
    kept = synchronizer.update_index()
"""

import logging
from pathlib import Path
from typing import Iterable, List, Union
from urllib.parse import urlparse

from contribkit.config.parser import DEFAULT_INDEX_URL, split_urls
from contribkit.core.directory import ContentStore
from contribkit.core.download import DownloadError
from contribkit.core.exceptions import IndexUpdateError
from contribkit.core.filesystem import replace_file
from contribkit.core.progress import MultiStepProgress
from contribkit.core.verification import SIGNATURE_SUFFIX, signature_path_for
from contribkit.contributions.downloader import ContributionDownloader

logger = logging.getLogger(__name__)

DEFAULT_INDEX_FILE_NAME = "package_index.json"


def is_additional_index_file(
    file_name: str, default_file_name: str = DEFAULT_INDEX_FILE_NAME
) -> bool:
    """
    Check whether a file name belongs to an additional package index.

    Matches 'package_<name>_index.json' and its '.sig', never the default
    index itself.
    """
    if file_name.endswith(SIGNATURE_SUFFIX):
        file_name = file_name[: -len(SIGNATURE_SUFFIX)]
    return (
        file_name != default_file_name
        and file_name.startswith("package_")
        and file_name.endswith("_index.json")
    )


def index_file_name(url: str) -> str:
    """
    Local file name of the index served at url (last path component).

    Raises:
        ValueError: If the URL path has no file name
    """
    name = urlparse(url).path.rstrip("/").split("/")[-1]
    if not name:
        raise ValueError(f"Index URL has no file name: {url}")
    return name


class IndexSynchronizer:
    """Refreshes the local copies of every configured package index."""

    def __init__(
        self,
        store: ContentStore,
        downloader: ContributionDownloader,
        verifier,
        default_url: str = DEFAULT_INDEX_URL,
        additional_urls: Union[str, Iterable[str]] = "",
    ):
        """
        Initialize synchronizer.

        Args:
            store: Content store (index files live in store.index_dir)
            downloader: Transport for index and signature files
            verifier: Object with is_signed(path) -> bool
            default_url: Always-synchronized index source
            additional_urls: Comma-separated string or list of extra sources
        """
        self.store = store
        self.downloader = downloader
        self.verifier = verifier
        self.default_url = default_url
        if isinstance(additional_urls, str):
            additional_urls = split_urls(additional_urls)
        self.additional_urls = [u.strip() for u in additional_urls if u.strip()]

    def source_urls(self) -> List[str]:
        """Default source first, then the distinct additional sources."""
        extra = set(self.additional_urls)
        extra.discard(self.default_url)
        return [self.default_url] + sorted(extra)

    def update_index(self) -> List[str]:
        """
        Download and verify every index, then drop stale index files.

        Returns:
            File names kept in the index folder

        Raises:
            IndexUpdateError: If the default index cannot be fetched
            DownloadInterrupted: If the operation is cancelled
        """
        self.store.index_dir.mkdir(parents=True, exist_ok=True)
        urls = self.source_urls()
        progress = MultiStepProgress(len(urls))
        kept: List[str] = []

        for url in urls:
            try:
                kept.extend(self._download_index_and_signature(url, progress))
            except (DownloadError, ValueError) as e:
                if url == self.default_url:
                    raise IndexUpdateError(
                        f"Failed to update package index from {url}: {e}"
                    ) from e
                logger.warning(f"Skipping package index {url}: {e}")
                self._discard(url)
            progress.step_done()

        self.delete_unknown_files(kept)
        logger.info(f"Package indexes up to date: {', '.join(kept) or 'none'}")
        return kept

    def delete_unknown_files(self, kept: List[str]) -> List[str]:
        """
        Delete additional index files that were not kept by this pass.

        Returns:
            Names of the deleted files
        """
        index_dir = self.store.index_dir
        if not index_dir.is_dir():
            return []

        default_name = index_file_name(self.default_url)
        deleted = []
        for path in sorted(index_dir.iterdir()):
            if not path.is_file() or path.name in kept:
                continue
            if is_additional_index_file(path.name, default_name):
                path.unlink()
                deleted.append(path.name)
                logger.info(f"Deleted stale package index: {path.name}")
        return deleted

    def _download_index_and_signature(
        self, url: str, progress: MultiStepProgress
    ) -> List[str]:
        index_file = self._download(
            url, self.store.index_file(index_file_name(url)), progress
        )
        signature_file = signature_path_for(index_file)
        verified = False

        try:
            self._download(url + SIGNATURE_SUFFIX, signature_file, progress)
            verified = self.verifier.is_signed(index_file)
        except DownloadError as e:
            logger.debug(f"No signature for {url}: {e}")
        finally:
            # Only verified indexes may stay on disk, even on cancellation
            if not verified:
                index_file.unlink(missing_ok=True)
                signature_file.unlink(missing_ok=True)

        if verified:
            return [index_file.name, signature_file.name]

        logger.warning(f"{url} file signature verification failed. File ignored.")
        return []

    def _download(
        self, url: str, destination: Path, progress: MultiStepProgress
    ) -> Path:
        """Fetch to '<name>.tmp' then replace destination."""
        tmp_file = destination.with_name(destination.name + ".tmp")
        self.downloader.download_url(
            url, tmp_file, progress, "Downloading platforms index..."
        )
        return replace_file(tmp_file, destination)

    def _discard(self, url: str) -> None:
        """Remove whatever an unreachable source left on disk."""
        try:
            name = index_file_name(url)
        except ValueError:
            return
        index_file = self.store.index_file(name)
        index_file.unlink(missing_ok=True)
        signature_path_for(index_file).unlink(missing_ok=True)


__all__ = [
    "IndexSynchronizer",
    "DEFAULT_INDEX_FILE_NAME",
    "is_additional_index_file",
    "index_file_name",
]

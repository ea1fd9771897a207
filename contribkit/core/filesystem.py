"""
Cross-platform file system utilities for contribkit.

This module provides the file operations the installer and the index
synchronizer build on:
- Archive extraction (zip, tar.gz, tar.bz2, tar.xz, tar) with leading
  path component stripping
- Safe deletion restricted to a required prefix
- Replacement of a file by a freshly downloaded temporary copy
- Best-effort removal of directories that may already be empty
"""

import os
import sys
import shutil
import tarfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Union

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Example:
        >>> is_relative_to(Path("/store/arduino/tools"), Path("/store"))
        True
    """
    if hasattr(Path, "is_relative_to"):
        return path.is_relative_to(parent)

    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def is_executable_file(path: Union[str, Path]) -> bool:
    """Check that path is a regular file the current user may execute."""
    path = Path(path)
    return path.is_file() and os.access(path, os.X_OK)


def list_subdirectories(path: Union[str, Path]) -> List[Path]:
    """
    List the immediate subdirectories of a directory.

    Returns:
        Sorted list of subdirectory paths (empty if path is not a directory)
    """
    path = Path(path)
    if not path.is_dir():
        return []
    return sorted(p for p in path.iterdir() if p.is_dir())


# ============================================================================
# Archive Extraction
# ============================================================================


def _strip_path(name: str, strip_components: int) -> Optional[str]:
    """
    Drop leading components from an archive member name.

    Returns:
        Remaining relative path, or None when nothing is left
    """
    parts = [p for p in PurePosixPath(name.replace("\\", "/")).parts if p != "."]
    if len(parts) <= strip_components:
        return None
    return str(PurePosixPath(*parts[strip_components:]))


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    strip_components: int = 0,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """
    Extract an archive to a destination directory.

    Automatically detects archive format and extracts safely.
    Validates all paths to prevent directory traversal attacks.

    Supported formats:
    - .zip
    - .tar.gz, .tgz
    - .tar.bz2, .tbz2
    - .tar.xz
    - .tar

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        strip_components: Number of leading path components to drop from
            every member (members with nothing left are skipped)
        progress_callback: Optional callback(current, total) for progress

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths

    Example:
        >>> extract_archive('avrdude-6.3.0.tar.bz2', 'tools/avrdude/6.3.0', 1)
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    if strip_components < 0:
        raise ValueError("strip_components cannot be negative")

    destination.mkdir(parents=True, exist_ok=True)

    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith(".zip"):
            _extract_zip(archive_path, destination, strip_components, progress_callback)
        elif archive_name.endswith((".tar.gz", ".tgz")):
            _extract_tar(
                archive_path, destination, "r:gz", strip_components, progress_callback
            )
        elif archive_name.endswith((".tar.bz2", ".tbz2")):
            _extract_tar(
                archive_path, destination, "r:bz2", strip_components, progress_callback
            )
        elif archive_name.endswith(".tar.xz"):
            _extract_tar(
                archive_path, destination, "r:xz", strip_components, progress_callback
            )
        elif archive_name.endswith(".tar"):
            _extract_tar(
                archive_path, destination, "r:", strip_components, progress_callback
            )
        else:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {archive_path.suffix}. "
                "Supported: .zip, .tar.gz, .tar.bz2, .tar.xz, .tar"
            )
    except (InsecureArchiveError, UnsupportedArchiveFormat):
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(
    archive_path: Path,
    destination: Path,
    strip_components: int,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a ZIP archive, keeping unix permission bits when present."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = []
        for info in zf.infolist():
            stripped = _strip_path(info.filename, strip_components)
            if stripped is None:
                continue
            _validate_archive_path(stripped, destination)
            members.append((info, stripped))

        total = len(members)
        for i, (info, stripped) in enumerate(members):
            target = destination / stripped
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                mode = (info.external_attr >> 16) & 0o777
                if mode:
                    os.chmod(target, mode)

            if progress_callback:
                progress_callback(i + 1, total)


def _extract_tar(
    archive_path: Path,
    destination: Path,
    mode: str,
    strip_components: int,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = []
        for member in tar.getmembers():
            stripped = _strip_path(member.name, strip_components)
            if stripped is None:
                continue
            _validate_archive_path(stripped, destination)
            member.name = stripped
            if member.islnk():
                # Hard link targets are archive paths and need the same stripping
                link_target = _strip_path(member.linkname, strip_components)
                if link_target is None:
                    continue
                member.linkname = link_target
            members.append(member)

        total = len(members)

        # Extract with filter for security (Python 3.12+)
        # For older Python, we've already validated paths above
        if sys.version_info >= (3, 12):
            tar.extractall(destination, members=members, filter="data")
        else:
            tar.extractall(destination, members=members)

        if progress_callback:
            progress_callback(total, total)


# ============================================================================
# Safe File Operations
# ============================================================================


def replace_file(source: Union[str, Path], target: Union[str, Path]) -> Path:
    """
    Replace target with source by deleting target then renaming source.

    The pair of operations is not crash-atomic, but target is never a mix of
    old and new content.

    Returns:
        Path of the replaced target
    """
    source = Path(source)
    target = Path(target)

    target.unlink(missing_ok=True)
    source.rename(target)
    return target


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/store/arduino/tools/avrdude/6.3.0', require_prefix='/store')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def remove_empty_directory(path: Union[str, Path]) -> Optional[OSError]:
    """
    Try to remove a directory that is expected to be empty.

    The failure is returned rather than raised so the caller decides whether
    it matters.

    Returns:
        None on success, the OSError otherwise (e.g. directory not empty)
    """
    try:
        Path(path).rmdir()
    except OSError as e:
        return e
    return None


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists (idempotent).

    Example:
        >>> ensure_directory('/store/arduino/hardware/avr/1.8.0')
        PosixPath('/store/arduino/hardware/avr/1.8.0')
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "is_relative_to",
    "is_executable_file",
    "list_subdirectories",
    "extract_archive",
    "replace_file",
    "safe_rmtree",
    "remove_empty_directory",
    "ensure_directory",
]

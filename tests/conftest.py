"""
Pytest configuration and shared fixtures for contribkit tests.
"""

import io
import os
import tarfile
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import pytest

from contribkit.core.directory import ContentStore
from contribkit.core.platform import PlatformInfo
from contribkit.contributions.models import ContributionsIndex, Package
from tests.mocks import MockDownloader, make_platform, make_tool


def pytest_collection_modifyitems(config, items):
    """Skip POSIX-only tests on Windows."""
    if os.name != "nt":
        return
    skip_posix = pytest.mark.skip(reason="requires POSIX shell scripts")
    for item in items:
        if "posix" in item.keywords:
            item.add_marker(skip_posix)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def linux_host() -> PlatformInfo:
    """Host used to pick tool archives in tests."""
    return PlatformInfo(os="linux", arch="x64")


@pytest.fixture
def store(tmp_path: Path) -> ContentStore:
    """Empty content store under tmp_path."""
    return ContentStore.default(tmp_path / "data").ensure_structure()


@pytest.fixture
def make_archive(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory building .tar.gz archives wrapped in one top-level directory.

    Example:
        archive = make_archive("avr-1.8.0.tar.gz", {"boards.txt": "uno.name=Uno"})
    """
    archives_dir = tmp_path / "archives"
    archives_dir.mkdir()

    def _make(
        name: str,
        files: Dict[str, str],
        executable: Iterable[str] = (),
        top: Optional[str] = "payload",
    ) -> Path:
        archive = archives_dir / name
        executable = set(executable)
        with tarfile.open(archive, "w:gz") as tar:
            for rel_path, content in files.items():
                data = content.encode("utf-8")
                info = tarfile.TarInfo(f"{top}/{rel_path}" if top else rel_path)
                info.size = len(data)
                info.mode = 0o755 if rel_path in executable else 0o644
                tar.addfile(info, io.BytesIO(data))
        return archive

    return _make


@pytest.fixture
def downloader(store: ContentStore) -> MockDownloader:
    """Mock downloader staging into the test store."""
    return MockDownloader(store.staging_dir)


@pytest.fixture
def avr_index(make_archive, downloader):
    """
    Index with the 'arduino' package: avr@1.8.0 and megaavr@1.8.7.

    Both platforms need avr-gcc@7.3.0 and avrdude@6.3.0. Every archive is
    registered with the mock downloader.
    """
    index = ContributionsIndex()
    avr_gcc = index.add_tool(make_tool("avr-gcc", "7.3.0"))
    avrdude = index.add_tool(make_tool("avrdude", "6.3.0"))

    package = Package("arduino", trusted=True)
    package.add_platform(make_platform("avr", "1.8.0", [avr_gcc, avrdude]))
    package.add_platform(make_platform("megaavr", "1.8.7", [avr_gcc, avrdude]))
    index.add_package(package)

    for tool in (avr_gcc, avrdude):
        contribution = tool.systems[0].downloadable
        downloader.add_archive(
            contribution.url,
            make_archive(
                contribution.archive_file_name,
                {f"bin/{tool.name}": "#!/bin/sh\n"},
                executable=[f"bin/{tool.name}"],
            ),
        )
    for platform in package.platforms:
        downloader.add_archive(
            platform.archive.url,
            make_archive(
                platform.archive.archive_file_name,
                {"boards.txt": f"{platform.architecture}.name=Board\n"},
            ),
        )

    return index

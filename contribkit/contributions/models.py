"""
Contribution data model.

Packages own platforms. Tools are shared: every tool lives exactly once in
the index arena, keyed by (name, version), and platforms refer to the tools
they need through those keys. Whether a tool may be deleted is therefore a
lookup over the installed platforms.

Classes:
    DownloadableContribution: An archive that can be staged and installed
    HostDownloadable: A tool archive built for one host triplet
    ToolKey: Handle of a tool in the index arena
    Tool: A shared build/upload utility
    Platform: A versioned board-support package
    Package: A vendor grouping platforms, carrying the trust flag
    ContributionsIndex: Arena of packages and tools
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional

from contribkit.core.exceptions import ToolNotFoundError
from contribkit.core.platform import PlatformInfo


@dataclass
class DownloadableContribution:
    """
    An archive that moves from remote, to staged, to installed.

    ``installed`` and ``installed_folder`` only change together, through
    ``mark_installed()`` and ``mark_removed()``.
    """

    url: str
    archive_file_name: str = ""
    checksum: Optional[str] = None
    size: Optional[int] = None
    downloaded_file: Optional[Path] = None
    installed: bool = False
    installed_folder: Optional[Path] = None

    def __post_init__(self):
        if not self.url:
            raise ValueError("Downloadable contribution URL cannot be empty")
        if not self.archive_file_name:
            self.archive_file_name = self.url.rstrip("/").split("/")[-1]

    @property
    def is_downloaded(self) -> bool:
        return self.downloaded_file is not None and self.downloaded_file.exists()

    def mark_installed(self, folder: Path) -> None:
        self.installed_folder = Path(folder)
        self.installed = True

    def mark_removed(self) -> None:
        self.installed = False
        self.installed_folder = None


@dataclass
class HostDownloadable:
    """Tool archive for one host triplet (e.g. 'x86_64-linux-gnu')."""

    host: str
    downloadable: DownloadableContribution


class ToolKey(NamedTuple):
    """Arena key of a tool."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass
class Tool:
    """A shared tool, installed once however many platforms need it."""

    name: str
    version: str
    systems: List[HostDownloadable] = field(default_factory=list)

    @property
    def key(self) -> ToolKey:
        return ToolKey(self.name, self.version)

    def downloadable_for(
        self, host: PlatformInfo
    ) -> Optional[DownloadableContribution]:
        """First archive whose host triplet runs on host, or None."""
        for system in self.systems:
            if host.is_compatible(system.host):
                return system.downloadable
        return None

    def __str__(self) -> str:
        return str(self.key)


@dataclass(eq=False)
class Platform:
    """
    A board-support package of one architecture and version.

    Installed state is the state of ``archive``.
    """

    architecture: str
    version: str
    archive: DownloadableContribution
    package: Optional["Package"] = None
    name: str = ""
    tool_keys: List[ToolKey] = field(default_factory=list)
    read_only: bool = False

    @property
    def installed(self) -> bool:
        return self.archive.installed

    @property
    def installed_folder(self) -> Optional[Path]:
        return self.archive.installed_folder

    @property
    def downloaded_file(self) -> Optional[Path]:
        return self.archive.downloaded_file

    @property
    def id(self) -> str:
        package_name = self.package.name if self.package else "?"
        return f"{package_name}:{self.architecture}@{self.version}"

    def __str__(self) -> str:
        return self.id


@dataclass(eq=False)
class Package:
    """A vendor package. ``trusted`` gates lifecycle script execution."""

    name: str
    trusted: bool = False
    platforms: List[Platform] = field(default_factory=list)

    def add_platform(self, platform: Platform) -> Platform:
        platform.package = self
        self.platforms.append(platform)
        return platform


class ContributionsIndex:
    """
    Arena of packages and tools.

    Example:
        >>> index = ContributionsIndex()
        >>> index.add_tool(Tool("avrdude", "6.3.0", [...]))
        >>> index.add_package(Package("arduino", trusted=True))
        >>> index.is_tool_used(index.tool(ToolKey("avrdude", "6.3.0")))
        False
    """

    def __init__(self):
        self.packages: Dict[str, Package] = {}
        self.tools: Dict[ToolKey, Tool] = {}

    def add_package(self, package: Package) -> Package:
        self.packages[package.name] = package
        for platform in package.platforms:
            platform.package = package
        return package

    def add_tool(self, tool: Tool) -> Tool:
        """Register a tool; an existing record with the same key is kept."""
        return self.tools.setdefault(tool.key, tool)

    def tool(self, key: ToolKey) -> Tool:
        try:
            return self.tools[key]
        except KeyError:
            raise ToolNotFoundError(key.name, key.version) from None

    def resolve_tools(self, platform: Platform) -> List[Tool]:
        """
        Tool records required by a platform, in declaration order.

        Raises:
            ToolNotFoundError: If a key is missing from the arena
        """
        return [self.tool(key) for key in platform.tool_keys]

    def platforms(self) -> Iterator[Platform]:
        for package in self.packages.values():
            yield from package.platforms

    def installed_platforms(self) -> List[Platform]:
        return [p for p in self.platforms() if p.installed]

    def is_tool_used(self, tool: Tool) -> bool:
        """True if any installed platform still requires tool."""
        return any(tool.key in p.tool_keys for p in self.installed_platforms())


__all__ = [
    "DownloadableContribution",
    "HostDownloadable",
    "ToolKey",
    "Tool",
    "Platform",
    "Package",
    "ContributionsIndex",
]

"""
Host platform detection for contribkit.

This module answers two host-specific questions for the installer:
- Which of a tool's per-host archives can run here. Index files describe
  hosts with GNU-style triplets ('x86_64-linux-gnu', 'i686-mingw32',
  'arm64-apple-darwin'), matched against the detected OS and architecture.
- Which lifecycle scripts a package folder offers (post-install and
  pre-uninstall hooks use '.sh' on Unix and '.bat' on Windows).

Usage:
    from contribkit.core.platform import detect_platform

    host = detect_platform()
    host.is_compatible("x86_64-linux-gnu")
"""

import functools
import platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

# Host triplet patterns accepted on each (os, arch) pair
_HOST_PATTERNS = {
    ("linux", "x64"): [r"x86_64-.*linux-gnu"],
    ("linux", "x86"): [r"i[3456]86-.*linux-gnu"],
    ("linux", "arm64"): [r"aarch64-.*linux-gnu.*"],
    ("linux", "arm"): [r"arm.*-linux-gnueabihf"],
    ("windows", "x64"): [
        r"x86_64-.*mingw32",
        r"i[3456]86-.*mingw32",
        r"i[3456]86-.*cygwin",
    ],
    ("windows", "x86"): [r"i[3456]86-.*mingw32", r"i[3456]86-.*cygwin"],
    ("macos", "x64"): [r"x86_64-apple-darwin.*", r"i[3456]86-apple-darwin.*"],
    ("macos", "arm64"): [
        r"arm64-apple-darwin.*",
        r"x86_64-apple-darwin.*",
        r"i[3456]86-apple-darwin.*",
    ],
    ("freebsd", "x64"): [r"amd64-.*freebsd.*"],
    ("freebsd", "arm"): [r"arm.*-freebsd.*"],
}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos', 'freebsd')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm')
    """

    os: str
    arch: str

    def is_compatible(self, host: str) -> bool:
        """
        Check whether an index host triplet can run on this platform.

        Example:
            >>> PlatformInfo('linux', 'x64').is_compatible('x86_64-pc-linux-gnu')
            True
        """
        patterns = _HOST_PATTERNS.get((self.os, self.arch), [])
        return any(re.fullmatch(pattern, host) for pattern in patterns)

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def __str__(self) -> str:
        """Canonical platform string (e.g., 'linux-x64')."""
        return f"{self.os}-{self.arch}"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """
    Detect operating system.

    Raises:
        RuntimeError: If OS is not supported
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    elif system == "freebsd":
        return "freebsd"
    else:
        raise RuntimeError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    """Detect CPU architecture, normalized to 'x64', 'arm64', 'x86' or 'arm'."""
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine


class ScriptDiscovery:
    """
    Locates lifecycle script candidates directly inside a folder.

    Only existence is checked here; callers filter on the executable bit.
    """

    def __init__(self, info: Optional[PlatformInfo] = None):
        self.info = info or detect_platform()

    @property
    def script_extension(self) -> str:
        return ".bat" if self.info.is_windows else ".sh"

    def post_install_scripts(self, folder: Path) -> List[Path]:
        """Candidate post-install scripts in folder."""
        return self._existing(folder, "post_install")

    def pre_uninstall_scripts(self, folder: Path) -> List[Path]:
        """Candidate pre-uninstall scripts in folder."""
        return self._existing(folder, "pre_uninstall")

    def _existing(self, folder: Path, stem: str) -> List[Path]:
        script = Path(folder) / f"{stem}{self.script_extension}"
        return [script] if script.is_file() else []


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "ScriptDiscovery",
]

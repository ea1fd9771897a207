"""
Tests for host platform detection and lifecycle script discovery.
"""

from unittest.mock import patch

import pytest

from contribkit.core.platform import (
    PlatformInfo,
    ScriptDiscovery,
    detect_platform,
)


@pytest.fixture(autouse=True)
def fresh_detection():
    detect_platform.cache_clear()
    yield
    detect_platform.cache_clear()


class TestPlatformInfo:
    """Test PlatformInfo dataclass."""

    def test_platform_string(self):
        assert str(PlatformInfo("linux", "x64")) == "linux-x64"
        assert str(PlatformInfo("macos", "arm64")) == "macos-arm64"

    @pytest.mark.parametrize(
        "info, host",
        [
            (PlatformInfo("linux", "x64"), "x86_64-linux-gnu"),
            (PlatformInfo("linux", "x64"), "x86_64-pc-linux-gnu"),
            (PlatformInfo("linux", "x86"), "i686-pc-linux-gnu"),
            (PlatformInfo("linux", "arm64"), "aarch64-linux-gnu"),
            (PlatformInfo("linux", "arm"), "arm-linux-gnueabihf"),
            (PlatformInfo("windows", "x64"), "i686-mingw32"),
            (PlatformInfo("macos", "x64"), "x86_64-apple-darwin12"),
            (PlatformInfo("macos", "arm64"), "x86_64-apple-darwin14"),
            (PlatformInfo("freebsd", "x64"), "amd64-portbld-freebsd11"),
        ],
    )
    def test_compatible_hosts(self, info, host):
        """Test host triplets that run on each platform."""
        assert info.is_compatible(host)

    @pytest.mark.parametrize(
        "info, host",
        [
            (PlatformInfo("linux", "x64"), "i686-mingw32"),
            (PlatformInfo("linux", "x64"), "arm64-apple-darwin"),
            (PlatformInfo("windows", "x86"), "x86_64-mingw32"),
            (PlatformInfo("linux", "riscv64"), "x86_64-linux-gnu"),
        ],
    )
    def test_incompatible_hosts(self, info, host):
        assert not info.is_compatible(host)

    def test_is_windows(self):
        assert PlatformInfo("windows", "x64").is_windows
        assert not PlatformInfo("linux", "x64").is_windows


class TestDetectPlatform:
    """Test detect_platform function."""

    @pytest.mark.parametrize(
        "system, machine, expected",
        [
            ("Linux", "x86_64", PlatformInfo("linux", "x64")),
            ("Darwin", "arm64", PlatformInfo("macos", "arm64")),
            ("Windows", "AMD64", PlatformInfo("windows", "x64")),
            ("Linux", "armv7l", PlatformInfo("linux", "arm")),
            ("Linux", "i686", PlatformInfo("linux", "x86")),
        ],
    )
    def test_detection(self, system, machine, expected):
        with patch("platform.system", return_value=system), patch(
            "platform.machine", return_value=machine
        ):
            assert detect_platform() == expected

    def test_unsupported_os(self):
        with patch("platform.system", return_value="Plan9"):
            with pytest.raises(RuntimeError, match="Unsupported operating system"):
                detect_platform()

    def test_detection_is_cached(self):
        """Test detection only runs once per process."""
        with patch("platform.system", return_value="Linux") as system, patch(
            "platform.machine", return_value="x86_64"
        ):
            detect_platform()
            detect_platform()

        assert system.call_count == 1


class TestScriptDiscovery:
    """Test ScriptDiscovery class."""

    def test_unix_post_install(self, tmp_path):
        script = tmp_path / "post_install.sh"
        script.write_text("#!/bin/sh\n")
        discovery = ScriptDiscovery(PlatformInfo("linux", "x64"))

        assert discovery.post_install_scripts(tmp_path) == [script]

    def test_windows_uses_bat(self, tmp_path):
        """Test Windows hosts look for .bat scripts only."""
        (tmp_path / "post_install.sh").write_text("#!/bin/sh\n")
        bat = tmp_path / "pre_uninstall.bat"
        bat.write_text("@echo off\n")
        discovery = ScriptDiscovery(PlatformInfo("windows", "x64"))

        assert discovery.post_install_scripts(tmp_path) == []
        assert discovery.pre_uninstall_scripts(tmp_path) == [bat]

    def test_no_script(self, tmp_path):
        discovery = ScriptDiscovery(PlatformInfo("linux", "x64"))

        assert discovery.pre_uninstall_scripts(tmp_path) == []

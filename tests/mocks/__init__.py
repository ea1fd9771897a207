"""
Mock objects for testing contribkit without network access.
"""

from tests.mocks.contributions import LINUX_HOST, make_platform, make_tool
from tests.mocks.network import MockDownloader

__all__ = ["MockDownloader", "LINUX_HOST", "make_platform", "make_tool"]

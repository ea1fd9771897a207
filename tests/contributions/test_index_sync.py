"""
Tests for package index synchronization.
"""

import logging
from unittest.mock import MagicMock

import pytest

from contribkit.core.download import DownloadInterrupted
from contribkit.core.exceptions import IndexUpdateError
from contribkit.contributions.index_sync import (
    IndexSynchronizer,
    index_file_name,
    is_additional_index_file,
)

DEFAULT_URL = "https://downloads.example.com/packages/package_index.json"
ESP_URL = "https://espressif.example.com/package_esp32_index.json"
STM_URL = "https://stm.example.com/package_stm_index.json"


class FakeVerifier:
    """Accepts files whose signature content is b'good'."""

    def __init__(self):
        self.checked = []

    def is_signed(self, file_path):
        self.checked.append(file_path.name)
        signature = file_path.with_name(file_path.name + ".sig")
        return signature.exists() and signature.read_bytes() == b"good"


def serve(downloader, url, signature=b"good", content=b'{"packages": []}'):
    downloader.add_file(url, content)
    if signature is not None:
        downloader.add_file(url + ".sig", signature)


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def make_synchronizer(store, downloader, verifier):
    def _make(additional_urls=""):
        return IndexSynchronizer(
            store,
            downloader,
            verifier,
            default_url=DEFAULT_URL,
            additional_urls=additional_urls,
        )

    return _make


class TestFileNames:
    """Test index file name helpers."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("package_esp32_index.json", True),
            ("package_esp32_index.json.sig", True),
            ("package_index.json", False),
            ("package_index.json.sig", False),
            ("library_index.json", False),
            ("package_esp32_index.json.tmp", False),
        ],
    )
    def test_is_additional_index_file(self, name, expected):
        assert is_additional_index_file(name) is expected

    def test_index_file_name(self):
        assert index_file_name(ESP_URL) == "package_esp32_index.json"

    def test_index_file_name_requires_file(self):
        with pytest.raises(ValueError):
            index_file_name("https://example.com/")


class TestSourceUrls:
    """Test source URL ordering."""

    def test_default_first_then_sorted_extras(self, make_synchronizer):
        synchronizer = make_synchronizer(f"{STM_URL}, {ESP_URL},,{STM_URL}")

        assert synchronizer.source_urls() == [DEFAULT_URL, ESP_URL, STM_URL]

    def test_list_of_urls(self, make_synchronizer):
        synchronizer = make_synchronizer([ESP_URL, " ", DEFAULT_URL])

        assert synchronizer.source_urls() == [DEFAULT_URL, ESP_URL]


class TestUpdateIndex:
    """Test IndexSynchronizer.update_index."""

    def test_signed_indexes_kept(self, make_synchronizer, downloader, store):
        serve(downloader, DEFAULT_URL)
        serve(downloader, ESP_URL)

        kept = make_synchronizer(ESP_URL).update_index()

        assert kept == [
            "package_index.json",
            "package_index.json.sig",
            "package_esp32_index.json",
            "package_esp32_index.json.sig",
        ]
        assert store.index_file("package_esp32_index.json").exists()
        assert not store.index_file("package_esp32_index.json.tmp").exists()

    def test_bad_signature_discards_index(
        self, make_synchronizer, downloader, store, caplog
    ):
        """Test an index failing verification is deleted with its signature."""
        serve(downloader, DEFAULT_URL)
        serve(downloader, ESP_URL, signature=b"forged")

        with caplog.at_level(logging.WARNING):
            kept = make_synchronizer(ESP_URL).update_index()

        assert "package_esp32_index.json" not in kept
        assert not store.index_file("package_esp32_index.json").exists()
        assert not store.index_file("package_esp32_index.json.sig").exists()
        assert f"{ESP_URL} file signature verification failed" in caplog.text

    def test_missing_signature_treated_as_invalid(
        self, make_synchronizer, downloader, store
    ):
        serve(downloader, DEFAULT_URL)
        serve(downloader, ESP_URL, signature=None)

        kept = make_synchronizer(ESP_URL).update_index()

        assert kept == ["package_index.json", "package_index.json.sig"]
        assert not store.index_file("package_esp32_index.json").exists()

    def test_unsigned_default_index_discarded(
        self, make_synchronizer, downloader, store
    ):
        serve(downloader, DEFAULT_URL, signature=b"forged")

        assert make_synchronizer().update_index() == []
        assert not store.index_file("package_index.json").exists()

    def test_existing_index_replaced(self, make_synchronizer, downloader, store):
        store.index_file("package_index.json").write_text("stale")
        serve(downloader, DEFAULT_URL, content=b"fresh")

        make_synchronizer().update_index()

        assert store.index_file("package_index.json").read_bytes() == b"fresh"

    def test_default_source_failure_is_fatal(self, make_synchronizer, downloader):
        downloader.fail(DEFAULT_URL)

        with pytest.raises(IndexUpdateError, match="package_index.json"):
            make_synchronizer().update_index()

    def test_additional_source_failure_skipped(
        self, make_synchronizer, downloader, store
    ):
        """Test an unreachable extra source only drops its own files."""
        serve(downloader, DEFAULT_URL)
        downloader.fail(ESP_URL)
        store.index_file("package_esp32_index.json").write_text("old")
        store.index_file("package_esp32_index.json.sig").write_bytes(b"good")

        kept = make_synchronizer(ESP_URL).update_index()

        assert kept == ["package_index.json", "package_index.json.sig"]
        assert not store.index_file("package_esp32_index.json").exists()
        assert not store.index_file("package_esp32_index.json.sig").exists()

    def test_stale_indexes_deleted(self, make_synchronizer, downloader, store):
        """Test indexes from sources no longer configured are removed."""
        serve(downloader, DEFAULT_URL)
        serve(downloader, ESP_URL)
        store.index_file("package_stm_index.json").write_text("{}")
        store.index_file("package_stm_index.json.sig").write_bytes(b"good")
        store.index_file("package_orphan_index.json.sig").write_bytes(b"good")
        store.index_file("library_index.json").write_text("{}")

        make_synchronizer(ESP_URL).update_index()

        remaining = sorted(p.name for p in store.index_dir.iterdir() if p.is_file())
        assert remaining == [
            "library_index.json",
            "package_esp32_index.json",
            "package_esp32_index.json.sig",
            "package_index.json",
            "package_index.json.sig",
        ]

    def test_cancelled(self, make_synchronizer, downloader):
        serve(downloader, DEFAULT_URL)
        downloader.cancel()

        with pytest.raises(DownloadInterrupted):
            make_synchronizer().update_index()

    def test_cancelled_before_signature_discards_index(
        self, make_synchronizer, downloader, store
    ):
        """Test an index fetched without its signature is not left behind."""
        store.index_dir.mkdir(parents=True, exist_ok=True)
        store.index_file("package_index.json.sig").write_bytes(b"good")
        serve(downloader, DEFAULT_URL)
        downloader.cancel_on = DEFAULT_URL + ".sig"

        with pytest.raises(DownloadInterrupted):
            make_synchronizer().update_index()

        assert DEFAULT_URL in downloader.request_history
        assert not store.index_file("package_index.json").exists()
        assert not store.index_file("package_index.json.sig").exists()

    def test_status(self, make_synchronizer, downloader):
        serve(downloader, DEFAULT_URL)

        make_synchronizer().update_index()

        assert set(downloader.statuses) == {"Downloading platforms index..."}


class TestDeleteUnknownFiles:
    """Test IndexSynchronizer.delete_unknown_files."""

    def test_returns_deleted_names(self, make_synchronizer, store):
        store.index_file("package_old_index.json").write_text("{}")
        store.index_file("package_index.json").write_text("{}")

        deleted = make_synchronizer().delete_unknown_files([])

        assert deleted == ["package_old_index.json"]
        assert store.index_file("package_index.json").exists()

    def test_missing_index_dir(self, store, downloader):
        store.index_dir = store.index_dir / "missing"
        synchronizer = IndexSynchronizer(store, downloader, MagicMock())

        assert synchronizer.delete_unknown_files([]) == []

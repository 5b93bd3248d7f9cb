"""
Tests for export delivery — native write, download fallback, hook, failures.
"""

from unittest.mock import MagicMock, patch

import pytest

from finsight.exceptions import ExportFailedError
from finsight.services.report_generator_service import deliver_export
from finsight.services.report_generator_service.delivery import write_atomic


class TestWriteAtomic:

    def test_writes_and_creates_parent(self, tmp_path):
        target = tmp_path / "nested" / "out.csv"
        write_atomic(target, b"a,b\r\n")
        assert target.read_bytes() == b"a,b\r\n"
        assert list(target.parent.iterdir()) == [target]

    def test_failed_rename_leaves_no_files(self, tmp_path):
        target = tmp_path / "out.pdf"
        with patch("finsight.services.report_generator_service.delivery.os.replace",
                   side_effect=OSError("read-only")):
            with pytest.raises(OSError):
                write_atomic(target, b"%PDF")
        assert list(tmp_path.iterdir()) == []


class TestDeliverExport:

    def test_native_write(self, tmp_path):
        docs = tmp_path / "Documents"
        result = deliver_export("r.csv", "x,y", native=True, documents_dir=docs, downloads_dir=tmp_path / "dl")
        assert result.method == "native"
        assert result.path == docs / "r.csv"
        assert (docs / "r.csv").read_text(encoding="utf-8") == "x,y"
        assert not (tmp_path / "dl").exists()

    def test_native_failure_falls_back_to_download(self, tmp_path, caplog):
        blocker = tmp_path / "Documents"
        blocker.write_text("a file where a directory should be")
        downloads = tmp_path / "dl"
        result = deliver_export(
            "r.pdf", b"%PDF-1.4", native=True, documents_dir=blocker, downloads_dir=downloads,
        )
        assert result.method == "download"
        assert (downloads / "r.pdf").read_bytes() == b"%PDF-1.4"
        assert "falling back to download" in caplog.text

    def test_download_to_directory_when_native_off(self, tmp_path):
        downloads = tmp_path / "dl"
        result = deliver_export("r.csv", "é", native=False, downloads_dir=downloads)
        assert result.method == "download"
        assert result.path == downloads / "r.csv"
        assert (downloads / "r.csv").read_bytes() == "é".encode("utf-8")

    def test_download_hook_receives_bytes(self, tmp_path):
        hook = MagicMock()
        result = deliver_export("r.csv", "a,b", native=False, downloads_dir=tmp_path, download=hook)
        hook.assert_called_once_with("r.csv", b"a,b")
        assert result.method == "download"
        assert result.path is None
        assert list(tmp_path.iterdir()) == []

    def test_hook_used_after_native_failure(self, tmp_path):
        blocker = tmp_path / "Documents"
        blocker.write_text("")
        hook = MagicMock()
        result = deliver_export("r.pdf", b"%PDF", native=True, documents_dir=blocker, download=hook)
        assert result.method == "download"
        hook.assert_called_once_with("r.pdf", b"%PDF")

    def test_failing_download_raises(self, tmp_path):
        hook = MagicMock(side_effect=RuntimeError("browser closed"))
        with pytest.raises(ExportFailedError) as exc:
            deliver_export("r.csv", "a", native=False, download=hook)
        assert "r.csv" in exc.value.message
        assert isinstance(exc.value.cause, RuntimeError)

    def test_failing_download_directory_raises(self, tmp_path):
        blocker = tmp_path / "dl"
        blocker.write_text("")
        with pytest.raises(ExportFailedError):
            deliver_export("r.csv", "a", native=False, downloads_dir=blocker)

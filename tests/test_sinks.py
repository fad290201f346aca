"""Tests for sinks."""

import json
import logging
from pathlib import Path

import pytest

from emi_engine.sinks.json_file import JsonFileSink


class TestJsonFileSink:
    """Tests for JsonFileSink."""

    def test_init_creates_directory(self, tmp_path: Path) -> None:
        output_dir = tmp_path / "nested" / "out"
        sink = JsonFileSink(output_dir)

        assert output_dir.is_dir()
        assert sink.pretty is False
        assert sink.counts == {}

    def test_write_batch_invoices(self, tmp_path: Path, make_invoice) -> None:
        sink = JsonFileSink(tmp_path)
        path = sink.write_batch("invoices", [make_invoice("inv-1"), make_invoice("inv-2")])

        data = json.loads(path.read_text(encoding="utf-8"))

        assert path == tmp_path / "invoices.json"
        assert [d["invoiceId"] for d in data] == ["inv-1", "inv-2"]
        assert data[0]["emiDetails"]["schedule"][2]["dueDate"] == "2024-03-15"
        assert sink.counts == {"invoices": 2}

    def test_write_batch_dicts(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path)
        sink.write_batch("raw", [{"id": 1}])

        assert json.loads((tmp_path / "raw.json").read_text()) == [{"id": 1}]

    def test_pretty_output(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path, pretty=True)
        sink.write_batch("raw", [{"id": 1}])

        assert "\n" in (tmp_path / "raw.json").read_text()

    def test_unicode_preserved(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path)
        sink.write_batch("raw", [{"message": "₹1,000.00"}])

        assert "₹1,000.00" in (tmp_path / "raw.json").read_text(encoding="utf-8")

    def test_close_logs_summary(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        sink = JsonFileSink(tmp_path)
        sink.write_batch("notifications", [])

        with caplog.at_level(logging.INFO, logger="emi_engine"):
            sink.close()

        assert "notifications: 0 records" in caplog.text

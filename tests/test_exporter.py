"""Tests for the tabular exporter."""

import csv

import pytest
from openpyxl import load_workbook

from linkharvest.crawler.models import ExportRow
from linkharvest.errors import ExportError
from linkharvest.storage.exporter import COLUMNS, ExportManager
from linkharvest.utils.config import ExportConfig

ROWS = (
    ExportRow("https://a.test/A", "Alpha", "https://a.test/x1"),
    ExportRow("https://a.test/A", "Alpha", "https://a.test/x2"),
    ExportRow("https://a.test/C", "unknown title", "https://a.test/z"),
)


class TestExcelExport:
    """Tests for xlsx output."""

    def test_header_and_rows(self, tmp_path):
        path = ExportManager(ExportConfig(path=str(tmp_path / "out.xlsx"))).export(ROWS)

        sheet = load_workbook(path).active
        values = list(sheet.iter_rows(values_only=True))
        assert sheet.title == "Results"
        assert values[0] == COLUMNS
        assert values[1:] == [tuple(row) for row in ROWS]
        assert len(values) == 1 + len(ROWS)

    def test_empty_export_has_header_only(self, tmp_path):
        path = ExportManager(ExportConfig(path=str(tmp_path / "empty.xlsx"))).export(())
        values = list(load_workbook(path).active.iter_rows(values_only=True))
        assert values == [COLUMNS]

    def test_control_characters_are_dropped(self, tmp_path):
        rows = (ExportRow("https://a.test/A", "Bad\x01Title\x1f", "https://a.test/x\x07"),)
        path = ExportManager(ExportConfig(path=str(tmp_path / "out.xlsx"))).export(rows)

        values = list(load_workbook(path).active.iter_rows(values_only=True))
        assert values[1] == ("https://a.test/A", "BadTitle", "https://a.test/x")

    def test_custom_sheet_name_and_nested_dir(self, tmp_path):
        config = ExportConfig(path=str(tmp_path / "nested" / "out.xlsx"), sheet_name="Links")
        path = ExportManager(config).export(ROWS)
        assert load_workbook(path).active.title == "Links"


class TestCsvExport:
    """Tests for csv output."""

    def test_suffix_selects_csv(self, tmp_path):
        manager = ExportManager(ExportConfig())
        path = manager.export(ROWS, str(tmp_path / "out.csv"))

        with open(path, newline="", encoding="utf-8") as file:
            rows = list(csv.reader(file))
        assert rows[0] == list(COLUMNS)
        assert len(rows) == 1 + len(ROWS)

    def test_explicit_format_wins_over_suffix(self, tmp_path):
        manager = ExportManager(ExportConfig(format="csv"))
        assert manager.resolve_format(tmp_path / "out.xlsx") == "csv"

    def test_default_format_is_xlsx(self, tmp_path):
        manager = ExportManager(ExportConfig())
        assert manager.resolve_format(tmp_path / "out.data") == "xlsx"


class TestExportFailures:
    """Write failures surface as ExportError."""

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        manager = ExportManager(ExportConfig(path=str(blocker / "out.xlsx")))
        with pytest.raises(ExportError):
            manager.export(ROWS)

    def test_unknown_format(self, tmp_path):
        manager = ExportManager(ExportConfig(format="parquet"))
        with pytest.raises(ExportError):
            manager.export(ROWS, str(tmp_path / "out.parquet"))

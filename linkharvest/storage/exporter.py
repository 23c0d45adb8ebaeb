"""
Tabular export of reconciled link records.
Supports xlsx (openpyxl) and csv output.
"""

import csv
import logging
from pathlib import Path
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import IllegalCharacterError

from ..crawler.models import ExportRow
from ..errors import ExportError
from ..utils.config import ExportConfig

COLUMNS = ("Page URL", "Page Title", "Link URL")


def worksheet_safe(value: str) -> str:
    """Drop control characters that xlsx cells cannot hold."""
    return ILLEGAL_CHARACTERS_RE.sub('', value)


class ExportBackend:
    """Abstract base class for export backends."""

    def write(self, path: Path, rows: Sequence[ExportRow]) -> int:
        """Write a header row plus one row per record. Returns rows written."""
        raise NotImplementedError


class ExcelExporter(ExportBackend):
    """Writes a single-sheet xlsx workbook."""

    def __init__(self, sheet_name: str = "Results"):
        self.sheet_name = sheet_name

    def write(self, path: Path, rows: Sequence[ExportRow]) -> int:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.sheet_name

        sheet.append(COLUMNS)
        for row in rows:
            sheet.append(tuple(worksheet_safe(value) for value in row))

        workbook.save(path)
        return len(rows) + 1


class CsvExporter(ExportBackend):
    """Writes a UTF-8 csv file."""

    def write(self, path: Path, rows: Sequence[ExportRow]) -> int:
        with open(path, 'w', newline='', encoding='utf-8') as file:
            writer = csv.writer(file)
            writer.writerow(COLUMNS)
            writer.writerows(rows)
        return len(rows) + 1


class ExportManager:
    """Picks an export backend from configuration and writes the results."""

    def __init__(self, config: ExportConfig):
        self.config = config
        self.logger = logging.getLogger(__name__)

    def resolve_format(self, path: Path) -> str:
        """Explicit format wins; otherwise use the file suffix, defaulting to xlsx."""
        if self.config.format:
            return self.config.format.lower()
        if path.suffix.lower() == '.csv':
            return 'csv'
        return 'xlsx'

    def get_backend(self, export_format: str) -> ExportBackend:
        if export_format == 'xlsx':
            return ExcelExporter(self.config.sheet_name)
        elif export_format == 'csv':
            return CsvExporter()
        raise ExportError(f"Unknown export format: {export_format}")

    def export(self, rows: Sequence[ExportRow], path: Optional[str] = None) -> Path:
        """
        Write the rows to disk.

        Raises:
            ExportError: if the file cannot be written
        """
        output_path = Path(path or self.config.path)
        export_format = self.resolve_format(output_path)
        backend = self.get_backend(export_format)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            written = backend.write(output_path, rows)
        except (OSError, ValueError, IllegalCharacterError) as e:
            raise ExportError(f"Could not write {output_path}: {e}") from e

        self.logger.debug(f"Wrote {written} rows ({export_format}) to {output_path}")
        return output_path

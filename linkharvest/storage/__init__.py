"""
Export layer for the link harvester.
"""

from .exporter import ExportManager, ExcelExporter, CsvExporter, COLUMNS

__all__ = ['ExportManager', 'ExcelExporter', 'CsvExporter', 'COLUMNS']

"""Export — histogram, response and cross-section data export (CSV, JSON)."""

from nuana.export.csv_export import CsvExporter
from nuana.export.json_export import JsonExporter

__all__ = [
    "CsvExporter",
    "JsonExporter",
]

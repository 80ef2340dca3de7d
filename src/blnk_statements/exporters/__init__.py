"""Statement exporters."""

from collections.abc import Callable
from enum import Enum
from pathlib import Path

from blnk_statements.exporters.common import statement_filename
from blnk_statements.exporters.csv_exporter import export_csv
from blnk_statements.exporters.pdf_exporter import export_pdf
from blnk_statements.models import Statement


class ExportFormat(str, Enum):
    CSV = "csv"
    PDF = "pdf"


EXPORTERS: dict[ExportFormat, Callable[[Statement, str | Path], Path]] = {
    ExportFormat.CSV: export_csv,
    ExportFormat.PDF: export_pdf,
}


def export_statement(
    statement: Statement, export_format: ExportFormat, output_dir: str | Path
) -> Path:
    """Render `statement` with the exporter for `export_format`."""
    return EXPORTERS[export_format](statement, output_dir)


__all__ = [
    "EXPORTERS",
    "ExportFormat",
    "export_csv",
    "export_pdf",
    "export_statement",
    "statement_filename",
]

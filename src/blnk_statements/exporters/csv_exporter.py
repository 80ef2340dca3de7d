"""CSV export of a statement.

CSV is the lossless format: every field is written in full, quoted only when
it contains a comma, a double quote or a line break.
"""

from collections.abc import Iterable
from pathlib import Path

import structlog

from blnk_statements.errors import ExportIOFailure
from blnk_statements.exporters.common import output_path
from blnk_statements.models import EXPORT_COLUMNS, Statement

logger = structlog.get_logger(__name__)

_NEEDS_QUOTES = (",", '"', "\n", "\r")


def escape_cell(value: object) -> str:
    text = "" if value is None else str(value)
    escaped = text.replace('"', '""')
    if any(char in text for char in _NEEDS_QUOTES):
        return f'"{escaped}"'
    return escaped


def format_line(fields: Iterable[object]) -> str:
    return ",".join(escape_cell(field) for field in fields)


def render_csv(statement: Statement) -> str:
    """Render the statement as CSV text with a trailing newline."""
    lines = [format_line(EXPORT_COLUMNS)]
    lines.extend(format_line(row.as_fields()) for row in statement.rows)
    return "\n".join(lines) + "\n"


def export_csv(statement: Statement, output_dir: str | Path) -> Path:
    """Write the statement to `<output_dir>/statement_....csv`."""
    path = output_path(statement, output_dir, "csv")
    content = render_csv(statement)
    try:
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as e:
        raise ExportIOFailure(f"Failed to write {path}: {e}") from e

    logger.info("statement_exported", format="csv", path=str(path), rows=len(statement.rows))
    return path

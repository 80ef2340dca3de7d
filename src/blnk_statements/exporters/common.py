"""File naming and output paths shared by the exporters."""

from pathlib import Path

from blnk_statements.errors import ExportIOFailure
from blnk_statements.models import Statement


def statement_filename(statement: Statement, extension: str) -> str:
    """Deterministic file name with `:` made filesystem safe.

    Example: statement_bln_123_2026-01-01T00-00-00Z_2026-02-01T00-00-00Z.csv
    """
    name = (
        f"statement_{statement.balance_id}_{statement.period.start}_"
        f"{statement.period.end}.{extension}"
    )
    return name.replace(":", "-")


def output_path(statement: Statement, output_dir: str | Path, extension: str) -> Path:
    """Create `output_dir` if needed and return the target file path."""
    directory = Path(output_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportIOFailure(f"Cannot create output directory {directory}: {e}") from e
    return directory / statement_filename(statement, extension)

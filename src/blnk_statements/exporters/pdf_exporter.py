"""Paginated PDF export of a statement.

Layout works in top-down page coordinates (y grows towards the bottom edge,
as on paper) and is converted to reportlab's bottom-up coordinates only when
drawing. The table layout is planned up front by `plan_table`, so pagination
can be checked without parsing PDF output.

Long text cells are clipped to fixed character budgets. This is display only;
the CSV export keeps full values.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import structlog
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from blnk_statements.errors import ExportIOFailure
from blnk_statements.exporters.common import output_path
from blnk_statements.models import Statement, StatementRow

logger = structlog.get_logger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = LETTER
MARGIN = 50.0
PAGE_TOP = MARGIN
PAGE_BOTTOM = PAGE_HEIGHT - MARGIN
HEADER_HEIGHT = 20.0
ROW_HEIGHT = 15.0
LINE_SPACING = 1.25

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
HEADER_FONT_SIZE = 10
ROW_FONT_SIZE = 9
# Gap kept between a cell's text and the next column
CELL_PADDING = 4.0


@dataclass(frozen=True)
class Column:
    title: str
    width: float
    max_chars: int | None = None


# Widths add up to the usable page width (612 - 2 * 50)
COLUMNS: tuple[Column, ...] = (
    Column("Timestamp", 55),
    Column("Reference", 100, max_chars=20),
    Column("Description", 100, max_chars=20),
    Column("Dir", 27),
    Column("Counterparty", 90, max_chars=15),
    Column("Amount", 90),
    Column("Currency", 50),
)


@dataclass(frozen=True)
class PlacedRow:
    y: float
    cells: tuple[str, ...]


@dataclass
class TablePage:
    """Table section on one page; `index` counts from the first page."""

    index: int
    header_y: float
    rows: list[PlacedRow] = field(default_factory=list)


def fit_width(text: str, width: float, font: str = FONT, size: float = ROW_FONT_SIZE) -> str:
    """Drop trailing characters until `text` fits in `width` points."""
    while text and stringWidth(text, font, size) > width:
        text = text[:-1]
    return text


def table_cells(row: StatementRow) -> tuple[str, ...]:
    """Row values as shown in the PDF table.

    Cells are cut to the column's character budget first, then to the
    rendered width of the column less `CELL_PADDING`.
    """
    values = (
        row.timestamp.split(" ")[0],  # date only
        row.reference,
        row.description,
        row.direction.value,
        row.counterparty,
        row.amount,
        row.currency,
    )
    return tuple(
        fit_width(
            value[: column.max_chars] if column.max_chars else value,
            column.width - CELL_PADDING,
        )
        for value, column in zip(values, COLUMNS)
    )


def plan_table(
    rows: Sequence[tuple[str, ...]],
    table_top: float,
    page_top: float = PAGE_TOP,
    page_bottom: float = PAGE_BOTTOM,
    header_height: float = HEADER_HEIGHT,
    row_height: float = ROW_HEIGHT,
) -> list[TablePage]:
    """Place table rows on pages.

    A row is placed only if its full height fits above `page_bottom`;
    otherwise a new page starts and the header is repeated first. The table
    moves to the next page outright when the header and one row do not fit
    below `table_top`.
    """
    index = 0
    top = table_top
    if top + header_height + row_height > page_bottom:
        index += 1
        top = page_top

    current = TablePage(index=index, header_y=top)
    pages = [current]
    y = top + header_height

    for cells in rows:
        if y + row_height > page_bottom:
            index += 1
            current = TablePage(index=index, header_y=page_top)
            pages.append(current)
            y = page_top + header_height
        current.rows.append(PlacedRow(y=y, cells=cells))
        y += row_height

    return pages


def _display_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value).date().isoformat()
    except ValueError:
        return value


class _PageWriter:
    """Draws flowing text lines from the top margin down."""

    def __init__(self, pdf: canvas.Canvas):
        self.pdf = pdf
        self.y = PAGE_TOP

    def _baseline(self, y: float, size: float) -> float:
        return PAGE_HEIGHT - (y + size)

    def line(
        self,
        text: str,
        size: float = 12,
        font: str = FONT,
        centered: bool = False,
        underline: bool = False,
    ) -> None:
        self.pdf.setFont(font, size)
        baseline = self._baseline(self.y, size)
        if centered:
            self.pdf.drawCentredString(PAGE_WIDTH / 2, baseline, text)
        else:
            self.pdf.drawString(MARGIN, baseline, text)
            if underline:
                width = self.pdf.stringWidth(text, font, size)
                self.pdf.line(MARGIN, baseline - 2, MARGIN + width, baseline - 2)
        self.y += size * LINE_SPACING

    def gap(self, lines: float = 1.0, size: float = 12) -> None:
        self.y += lines * size

    def cells(self, values: Sequence[str], y: float, font: str, size: float) -> None:
        self.pdf.setFont(font, size)
        x = MARGIN
        baseline = self._baseline(y, size)
        for value, column in zip(values, COLUMNS):
            self.pdf.drawString(x, baseline, value)
            x += column.width


def _draw_summary(writer: _PageWriter, statement: Statement) -> None:
    currency = statement.currency
    writer.line("Customer Statement", size=20, centered=True)
    writer.gap()

    writer.line(f"Balance ID: {statement.balance_id}")
    writer.line(f"Currency: {currency}")
    if statement.account_name:
        writer.line(f"Account Name: {statement.account_name}")
    writer.gap()

    writer.line(
        f"Period: {_display_date(statement.period.start)} to "
        f"{_display_date(statement.period.end)}"
    )
    writer.gap()

    writer.line("Summary", size=14, underline=True)
    writer.gap(0.5)
    writer.line(f"Opening Balance: {currency} {statement.opening_balance}")
    writer.line(f"Closing Balance: {currency} {statement.closing_balance}")
    writer.line(f"Total Credits: {currency} {statement.totals.credits}")
    writer.line(f"Total Debits: {currency} {statement.totals.debits}")
    writer.line(f"Transaction Count: {statement.totals.transaction_count}")
    writer.gap()

    writer.line("Transactions", size=14, underline=True)
    writer.gap(0.5)


def render_pdf(statement: Statement, path: Path) -> int:
    """Draw the statement into `path` and return the page count."""
    pdf = canvas.Canvas(str(path), pagesize=LETTER)
    pdf.setTitle(f"Statement {statement.balance_id}")

    writer = _PageWriter(pdf)
    _draw_summary(writer, statement)

    headers = tuple(column.title for column in COLUMNS)
    pages = plan_table([table_cells(row) for row in statement.rows], table_top=writer.y)

    current_index = 0
    for page in pages:
        while current_index < page.index:
            pdf.showPage()
            current_index += 1
        writer.cells(headers, page.header_y, FONT_BOLD, HEADER_FONT_SIZE)
        for placed in page.rows:
            writer.cells(placed.cells, placed.y, FONT, ROW_FONT_SIZE)

    pdf.save()
    return current_index + 1


def export_pdf(statement: Statement, output_dir: str | Path) -> Path:
    """Write the statement to `<output_dir>/statement_....pdf`."""
    path = output_path(statement, output_dir, "pdf")
    try:
        page_count = render_pdf(statement, path)
    except OSError as e:
        raise ExportIOFailure(f"Failed to write {path}: {e}") from e

    logger.info(
        "statement_exported",
        format="pdf",
        path=str(path),
        rows=len(statement.rows),
        pages=page_count,
    )
    return path

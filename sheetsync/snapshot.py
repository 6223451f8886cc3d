import logging
from dataclasses import dataclass

from sheetsync import deadline as deadlines
from sheetsync.clients.sheets_client import BACKEND_ERRORS, REQUEST_TIMEOUT, is_missing_range
from sheetsync.errors import SnapshotReadFailure

logger = logging.getLogger(__name__)

# Row 1 is the header; the data region runs from row 2 to the last used row.
DATA_RANGE = 'A2:D'
HEADER_RANGE = 'A1:D1'
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class SheetRow:
    index: int
    id: str
    title: str = ""
    description: str = ""
    price: str = ""

    @property
    def row_number(self):
        return self.index + FIRST_DATA_ROW


def _cell(values, position):
    # Sheets drops trailing empty cells from each row.
    if position >= len(values) or values[position] is None:
        return ""
    return str(values[position])


def parse_rows(values) -> dict:
    rows = {}
    for index, values_row in enumerate(values):
        identifier = _cell(values_row, 0)
        if not identifier:
            continue
        if identifier in rows:
            logger.warning(
                "Duplicate id %s at sheet row %d, keeping row %d",
                identifier, index + FIRST_DATA_ROW, rows[identifier].row_number,
            )
            continue
        rows[identifier] = SheetRow(
            index=index,
            id=identifier,
            title=_cell(values_row, 1),
            description=_cell(values_row, 2),
            price=_cell(values_row, 3),
        )
    return rows


def _read(backend, spreadsheet_id, range_spec, deadline):
    deadlines.check(deadline, f"read of {range_spec}")
    try:
        return backend.read_values(
            spreadsheet_id, range_spec,
            timeout=deadlines.timeout(deadline, REQUEST_TIMEOUT),
        )
    except BACKEND_ERRORS as exc:
        if is_missing_range(exc):
            logger.info("Range %s missing in %s", range_spec, spreadsheet_id)
            return []
        raise SnapshotReadFailure(f"Could not read {spreadsheet_id}!{range_spec}: {exc}") from exc


def read_snapshot(backend, spreadsheet_id, deadline=None) -> dict:
    """Load the spreadsheet's data rows keyed by item id; empty on first sync."""
    rows = parse_rows(_read(backend, spreadsheet_id, DATA_RANGE, deadline))
    logger.info("Read %d rows from spreadsheet %s", len(rows), spreadsheet_id)
    return rows


def has_header(backend, spreadsheet_id, deadline=None) -> bool:
    """True when row 1 already holds something."""
    values = _read(backend, spreadsheet_id, HEADER_RANGE, deadline)
    return any(str(cell).strip() for row in values for cell in row if cell is not None)

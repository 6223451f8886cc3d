"""Turn a diff into spreadsheet operations and send them as one batch.

Every operation translates into Sheets ``batchUpdate`` requests and the whole
plan goes out in a single ``spreadsheets.batchUpdate`` call, which the API
applies atomically: either every request succeeds or none is persisted.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from sheetsync import deadline as deadlines
from sheetsync.clients.sheets_client import BACKEND_ERRORS, REQUEST_TIMEOUT
from sheetsync.errors import MutationFailure

logger = logging.getLogger(__name__)

INCREMENTAL = 'incremental'
OVERWRITE = 'overwrite'
MODES = (INCREMENTAL, OVERWRITE)

HEADER = ('ID', 'Title', 'Description', 'Price')
COLUMN_COUNT = len(HEADER)
HEADER_BACKGROUND = {'red': 0.9, 'green': 0.9, 'blue': 0.9}
DEFAULT_SHEET_ID = 0
USER_ENTERED_VALUE = 'userEnteredValue'


@dataclass(frozen=True)
class FormatHeader:
    pass


@dataclass(frozen=True)
class UpdateRow:
    row_index: int  # position in the data region, 0 is sheet row 2
    item: object


@dataclass(frozen=True)
class AppendRows:
    items: list = field(default_factory=list)


@dataclass(frozen=True)
class ReplaceAll:
    items: list = field(default_factory=list)


def plan(diff_result, first_sync=False) -> List[object]:
    """Header (first sync only), one update per changed row, then one append."""
    operations = []
    if first_sync:
        operations.append(FormatHeader())
    for item, row_index in diff_result.changed:
        operations.append(UpdateRow(row_index=row_index, item=item))
    if diff_result.new:
        operations.append(AppendRows(items=list(diff_result.new)))
    return operations


def plan_overwrite(items, first_sync=False) -> List[object]:
    operations = [FormatHeader()] if first_sync else []
    operations.append(ReplaceAll(items=list(items)))
    return operations


def _row_data(values):
    return {'values': [{USER_ENTERED_VALUE: {'stringValue': str(value)}} for value in values]}


def _header_requests(sheet_id):
    return [
        {
            'updateCells': {
                'rows': [_row_data(HEADER)],
                'fields': USER_ENTERED_VALUE,
                'start': {'sheetId': sheet_id, 'rowIndex': 0, 'columnIndex': 0},
            }
        },
        {
            'repeatCell': {
                'range': {'sheetId': sheet_id, 'startRowIndex': 0, 'endRowIndex': 1},
                'cell': {
                    'userEnteredFormat': {
                        'textFormat': {'bold': True},
                        'backgroundColor': HEADER_BACKGROUND,
                    }
                },
                'fields': 'userEnteredFormat(textFormat,backgroundColor)',
            }
        },
    ]


def _auto_resize_request(sheet_id):
    return {
        'autoResizeDimensions': {
            'dimensions': {
                'sheetId': sheet_id,
                'dimension': 'COLUMNS',
                'startIndex': 0,
                'endIndex': COLUMN_COUNT,
            }
        }
    }


def _update_row_request(operation, sheet_id):
    sheet_row = operation.row_index + 1  # skip the header
    return {
        'updateCells': {
            'rows': [_row_data(operation.item.as_row())],
            'fields': USER_ENTERED_VALUE,
            'range': {
                'sheetId': sheet_id,
                'startRowIndex': sheet_row,
                'endRowIndex': sheet_row + 1,
                'startColumnIndex': 0,
                'endColumnIndex': COLUMN_COUNT,
            },
        }
    }


def _append_request(operation, sheet_id):
    return {
        'appendCells': {
            'sheetId': sheet_id,
            'rows': [_row_data(item.as_row()) for item in operation.items],
            'fields': USER_ENTERED_VALUE,
        }
    }


def _replace_all_requests(operation, sheet_id):
    # An updateCells without rows clears the range for the listed fields.
    requests = [{
        'updateCells': {
            'range': {'sheetId': sheet_id, 'startRowIndex': 1},
            'fields': USER_ENTERED_VALUE,
        }
    }]
    if operation.items:
        requests.append({
            'updateCells': {
                'rows': [_row_data(item.as_row()) for item in operation.items],
                'fields': USER_ENTERED_VALUE,
                'start': {'sheetId': sheet_id, 'rowIndex': 1, 'columnIndex': 0},
            }
        })
    return requests


def build_requests(operations, sheet_id=DEFAULT_SHEET_ID) -> list:
    requests = []
    resize = False
    for operation in operations:
        if isinstance(operation, FormatHeader):
            requests.extend(_header_requests(sheet_id))
            resize = True
        elif isinstance(operation, UpdateRow):
            requests.append(_update_row_request(operation, sheet_id))
        elif isinstance(operation, AppendRows):
            requests.append(_append_request(operation, sheet_id))
        elif isinstance(operation, ReplaceAll):
            requests.extend(_replace_all_requests(operation, sheet_id))
        else:
            raise TypeError(f"Unknown spreadsheet operation: {operation!r}")

    # Column sizing runs last so it measures the rows written in this batch.
    if resize:
        requests.append(_auto_resize_request(sheet_id))
    return requests


def execute(backend, spreadsheet_id, operations, deadline=None, sheet_id=DEFAULT_SHEET_ID):
    if not operations:
        logger.info("Spreadsheet %s already up to date, nothing to write", spreadsheet_id)
        return None

    requests = build_requests(operations, sheet_id=sheet_id)
    deadlines.check(deadline, "batch update")
    try:
        response = backend.batch_update(
            spreadsheet_id, requests, timeout=deadlines.timeout(deadline, REQUEST_TIMEOUT),
        )
    except BACKEND_ERRORS as exc:
        raise MutationFailure(f"Batch update of {spreadsheet_id} failed: {exc}") from exc

    logger.info("Applied %d requests to spreadsheet %s", len(requests), spreadsheet_id)
    return response

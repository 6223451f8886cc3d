"""Google Sheets / Drive backend used by the sync engine.

Only the handful of calls the engine needs are exposed: create a spreadsheet,
share it by link, read a value range and send one ``batchUpdate``. Diffing and
request construction live in :mod:`sheetsync.differ` and
:mod:`sheetsync.planner`; this layer does no data shaping.
"""

import logging
import re

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

SPREADSHEET_URL = 'https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit'
REQUEST_TIMEOUT = 60.0

# Everything a Sheets/Drive call can raise: API errors, socket timeouts,
# httplib2 transport failures and credential errors.
BACKEND_ERRORS = (HttpError, OSError, httplib2.HttpLib2Error, GoogleAuthError)

_SPREADSHEET_ID_RE = re.compile(r'/spreadsheets/d/([a-zA-Z0-9_-]+)')
_BARE_ID_RE = re.compile(r'^[a-zA-Z0-9_-]+$')


def spreadsheet_url(spreadsheet_id: str) -> str:
    return SPREADSHEET_URL.format(spreadsheet_id=spreadsheet_id)


def parse_spreadsheet_id(locator: str) -> str:
    """Extract the spreadsheet id from a stored URL (a bare id is accepted too)."""
    locator = (locator or '').strip()
    match = _SPREADSHEET_ID_RE.search(locator)
    if match:
        return match.group(1)
    if _BARE_ID_RE.match(locator):
        return locator
    raise ValueError(f"Cannot parse spreadsheet id from {locator!r}")


def is_missing_range(exc: Exception) -> bool:
    """True when Sheets reports that the requested range does not exist."""
    if not isinstance(exc, HttpError):
        return False
    status = getattr(exc.resp, 'status', None)
    return int(status or 0) == 400 and 'Unable to parse range' in str(exc)


class GoogleSheetsBackend:
    def __init__(self, sheets_service, drive_service=None, credentials=None):
        self.sheets = sheets_service
        self.drive = drive_service
        self.credentials = credentials

    @classmethod
    def from_connector(cls, connector):
        credentials = Credentials(token=connector.access_token)
        return cls(
            build('sheets', 'v4', credentials=credentials, cache_discovery=False),
            build('drive', 'v3', credentials=credentials, cache_discovery=False),
            credentials=credentials,
        )

    def _http(self, timeout):
        # A fresh transport per call so its socket timeout follows the run's deadline.
        if timeout is None or self.credentials is None:
            return None
        return AuthorizedHttp(self.credentials, http=httplib2.Http(timeout=timeout))

    def create_spreadsheet(self, title, timeout=None):
        """Returns ``(spreadsheet_id, url)`` for a new spreadsheet."""
        result = (
            self.sheets.spreadsheets()
            .create(body={'properties': {'title': title}}, fields='spreadsheetId')
            .execute(http=self._http(timeout))
        )
        spreadsheet_id = result['spreadsheetId']
        logger.info("Created spreadsheet %s (%r)", spreadsheet_id, title)
        return spreadsheet_id, spreadsheet_url(spreadsheet_id)

    def grant_link_access(self, spreadsheet_id, role='writer', timeout=None):
        """Let anyone with the link open the spreadsheet; returns its share link."""
        if self.drive is None:
            raise RuntimeError("Drive service is required to share a spreadsheet")
        self.drive.permissions().create(
            fileId=spreadsheet_id,
            body={'role': role, 'type': 'anyone'},
        ).execute(http=self._http(timeout))
        file_info = (
            self.drive.files()
            .get(fileId=spreadsheet_id, fields='webViewLink')
            .execute(http=self._http(timeout))
        )
        return file_info.get('webViewLink')

    def read_values(self, spreadsheet_id, range_spec, timeout=None):
        result = (
            self.sheets.spreadsheets()
            .values()
            .get(spreadsheetId=spreadsheet_id, range=range_spec)
            .execute(http=self._http(timeout))
        )
        return result.get('values', []) if isinstance(result, dict) else []

    def batch_update(self, spreadsheet_id, requests, timeout=None):
        return (
            self.sheets.spreadsheets()
            .batchUpdate(spreadsheetId=spreadsheet_id, body={'requests': list(requests)})
            .execute(http=self._http(timeout))
        )

import logging
import math
from dataclasses import asdict, dataclass

from django.conf import settings
from django.db import DatabaseError

from sheetsync import deadline as deadlines
from sheetsync.catalog import extract_all
from sheetsync.clients.sheets_client import (
    BACKEND_ERRORS,
    REQUEST_TIMEOUT,
    GoogleSheetsBackend,
    parse_spreadsheet_id,
    spreadsheet_url,
)
from sheetsync.deadline import Deadline
from sheetsync.differ import diff
from sheetsync.errors import LocatorPersistFailure, NotConnected, SpreadsheetCreationFailure, SyncError
from sheetsync.models import ProviderType
from sheetsync.planner import INCREMENTAL, MODES, OVERWRITE, execute, plan, plan_overwrite
from sheetsync.snapshot import has_header, read_snapshot
from sheetsync.store import LEASE_SECONDS, ConnectorStore

logger = logging.getLogger(__name__)

PAGE_SIZE = getattr(settings, 'SHEETSYNC_PAGE_SIZE', 100)
SYNC_MODE = getattr(settings, 'SHEETSYNC_MODE', INCREMENTAL)
SPREADSHEET_TITLE = getattr(settings, 'SHEETSYNC_SPREADSHEET_TITLE', 'Shopify Products')
RUN_TIMEOUT = getattr(settings, 'SHEETSYNC_RUN_TIMEOUT', 600)
TOKEN_TIMEOUT = 30.0
LEASE_MARGIN = 60


def lease_ttl(deadline):
    """Lease lifetime that outlasts the run's remaining budget."""
    remaining = deadline.remaining() if deadline is not None else None
    if remaining is None:
        return LEASE_SECONDS
    return max(LEASE_SECONDS, math.ceil(remaining) + LEASE_MARGIN)


@dataclass(frozen=True)
class SyncSummary:
    added: int
    updated: int
    unchanged: int
    spreadsheet_id: str
    url: str
    first_sync: bool = False

    def as_dict(self):
        return asdict(self)


class SyncOrchestrator:
    def __init__(self, source, oauth_client, store=None, backend_factory=None,
                 page_size=None, mode=None, spreadsheet_title=None):
        self.source = source
        self.oauth_client = oauth_client
        self.store = store or ConnectorStore()
        self.backend_factory = backend_factory or GoogleSheetsBackend.from_connector
        self.page_size = page_size or PAGE_SIZE
        self.mode = mode or SYNC_MODE
        self.spreadsheet_title = spreadsheet_title or SPREADSHEET_TITLE
        if self.mode not in MODES:
            raise ValueError(f"Unknown sync mode {self.mode!r}, expected one of {MODES}")

    def run(self, shop_id, deadline=None) -> SyncSummary:
        logger.info("Starting catalog sync for shop %s (%s mode)", shop_id, self.mode)
        if deadline is None:
            deadline = Deadline(seconds=RUN_TIMEOUT)

        connector = self.store.get(shop_id, ProviderType.GOOGLE)
        if connector is None:
            raise NotConnected(shop_id, ProviderType.GOOGLE)

        with self.store.lease(connector, ttl=lease_ttl(deadline)):
            deadlines.check(deadline, "token refresh")
            connector = self.store.fresh_connector(
                shop_id, self.oauth_client,
                timeout=deadlines.timeout(deadline, TOKEN_TIMEOUT),
            )
            backend = self.backend_factory(connector)
            spreadsheet_id, created = self._ensure_spreadsheet(connector, backend, deadline)

            items = extract_all(self.source, page_size=self.page_size, deadline=deadline)
            if created:
                snapshot, first_sync = {}, True
            else:
                snapshot = read_snapshot(backend, spreadsheet_id, deadline=deadline)
                # An empty data region under an existing header is not a first sync.
                first_sync = not snapshot and not has_header(
                    backend, spreadsheet_id, deadline=deadline,
                )

            result = diff(items, snapshot)
            if self.mode == OVERWRITE:
                operations = plan_overwrite(items, first_sync=first_sync)
            else:
                operations = plan(result, first_sync=first_sync)
            execute(backend, spreadsheet_id, operations, deadline=deadline)

        summary = SyncSummary(
            added=len(result.new),
            updated=len(result.changed),
            unchanged=result.unchanged,
            spreadsheet_id=spreadsheet_id,
            url=spreadsheet_url(spreadsheet_id),
            first_sync=first_sync,
        )
        logger.info("Sync complete for shop %s: %s", shop_id, summary)
        return summary

    def _ensure_spreadsheet(self, connector, backend, deadline):
        """Returns ``(spreadsheet_id, created)``; creates at most one per run."""
        if connector.resource_url:
            try:
                return parse_spreadsheet_id(connector.resource_url), False
            except ValueError as exc:
                raise SyncError(f"Stored spreadsheet locator for {connector} is invalid: {exc}") from exc

        deadlines.check(deadline, "spreadsheet creation")
        try:
            spreadsheet_id, url = backend.create_spreadsheet(
                self.spreadsheet_title, timeout=deadlines.timeout(deadline, REQUEST_TIMEOUT),
            )
        except BACKEND_ERRORS as exc:
            raise SpreadsheetCreationFailure(f"Could not create spreadsheet: {exc}") from exc

        # The locator is recorded before anything else can fail.
        try:
            self.store.upsert(connector.shop_id, connector.provider_type, resource_url=url)
        except DatabaseError as exc:
            logger.error("Spreadsheet %s created but not recorded for %s", spreadsheet_id, connector)
            raise LocatorPersistFailure(spreadsheet_id, url, cause=exc) from exc

        try:
            link = backend.grant_link_access(
                spreadsheet_id, timeout=deadlines.timeout(deadline, REQUEST_TIMEOUT),
            )
        except BACKEND_ERRORS as exc:
            logger.warning("Could not share spreadsheet %s by link: %s", spreadsheet_id, exc)
        else:
            logger.info("Spreadsheet %s is shared by link at %s", spreadsheet_id, link or url)

        return spreadsheet_id, True

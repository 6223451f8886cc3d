class SyncError(Exception):
    """Base class for every failure surfaced by a sync run."""


class NotConnected(SyncError):
    def __init__(self, shop_id, provider_type):
        super().__init__(f"No {provider_type} connector for shop {shop_id}")
        self.shop_id = shop_id
        self.provider_type = provider_type


class SyncInProgress(SyncError):
    """Another run holds the shop's sync lease."""


class SyncCancelled(SyncError):
    """The caller's deadline passed or cancellation was requested."""


class AuthorizationError(SyncError):
    """The authorization provider rejected a code exchange or refresh."""


class TokenRefreshFailure(SyncError):
    pass


class CatalogSourceError(SyncError):
    """The catalog source returned an unusable page."""


class ExtractionFailure(SyncError):
    pass


class SnapshotReadFailure(SyncError):
    pass


class SpreadsheetCreationFailure(SyncError):
    """No spreadsheet was created; retrying the run is safe."""


class LocatorPersistFailure(SyncError):
    """A spreadsheet was created but its locator could not be saved.

    Retrying blindly would create a second spreadsheet, so the created id and
    URL travel with the error for manual recovery.
    """

    def __init__(self, spreadsheet_id, url, cause=None):
        super().__init__(
            f"Spreadsheet {spreadsheet_id} was created but not recorded: {cause}"
        )
        self.spreadsheet_id = spreadsheet_id
        self.url = url


class MutationFailure(SyncError):
    pass

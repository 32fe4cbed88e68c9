"""Error taxonomy shared by the record store, remote client and sync engine."""


class QuoteSyncError(Exception):
    """Base error for quotesync."""


class InvalidInput(QuoteSyncError):
    """User-supplied data failed validation. No state was changed."""


class DuplicateRecord(QuoteSyncError):
    """A record with the same (text, category) pair already exists."""


class CorruptData(QuoteSyncError):
    """Persisted payload is not a well-formed record array."""


class StorageUnavailable(QuoteSyncError):
    """The local storage medium rejected a write."""


class RemoteError(QuoteSyncError):
    """Base for remote store failures."""


class NetworkError(RemoteError):
    """Remote store unreachable, timed out, or connection dropped."""


class ServerError(RemoteError):
    """Remote store answered with a non-success status or a malformed body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SyncInProgress(QuoteSyncError):
    """A sync cycle holds the state lock and the caller gave up waiting."""


class UnknownConflict(QuoteSyncError):
    """No pending conflict at the given index."""

"""Exception types raised below the HTTP layer."""


class LibraryError(Exception):
    """Base exception for all knowledge library errors."""

    pass


class StorageError(LibraryError):
    """Error talking to the document store, or a missing parent document."""

    pass


class AdminAuthError(LibraryError):
    """The admin secret header is missing or does not match."""

    pass

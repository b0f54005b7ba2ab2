class NoticeboardError(Exception):
    """
    Root of all errors raised by noticeboard; the CLI and TUI show the message
    of any of these directly to the user.
    """


class RemoteFileNotFound(NoticeboardError):
    """
    The requested path does not exist in the store.
    """


class VersionConflict(NoticeboardError):
    """
    Exception for when the version you said you wanted to overwrite isn't the
    one the store currently has. Re-fetch, re-apply and commit again.
    """


class TransportError(NoticeboardError):
    """
    Network, authentication or API failure talking to the store.
    """


class CorruptRemoteState(NoticeboardError):
    """
    A data file was fetched but its collection could not be parsed.
    """


class FormValidationError(NoticeboardError):
    """
    Required form fields are missing. Raised before any store call.
    """


class OperationInProgress(NoticeboardError):
    """
    Another mutating operation is still running on the same manager.
    """


class ConfigError(NoticeboardError):
    pass

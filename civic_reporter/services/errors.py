"""
Domain errors raised by the service layer and translated to HTTP errors by routes.
"""


class IssueNotFoundError(LookupError):
    pass


class ProfileNotFoundError(LookupError):
    pass


class PermissionDeniedError(PermissionError):
    pass


class NoIssuesToExportError(ValueError):
    pass


class StorageUnavailableError(RuntimeError):
    pass

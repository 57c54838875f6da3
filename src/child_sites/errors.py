"""
Child Sites Toolkit error types.
"""

from typing import Any, Optional


class ChildSitesError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(ChildSitesError):
    """The caller's statement or plan arguments were rejected before any remote call."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("validation_error", message, details)


class NoResultsError(ChildSitesError):
    def __init__(self, message: str = "No sites found"):
        super().__init__("no_results", message)


class TransientRemoteFault(ChildSitesError):
    """A recoverable server fault. Only the data handler retries it."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("server_fault", message, details)


class FetchFailure(ChildSitesError):
    """A page could not be fetched or written; fatal for the whole import."""

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__("fetch_failure", message, {"offset": offset} if offset is not None else None)
        self.offset = offset


class DestinationNotFound(ChildSitesError):
    def __init__(self, name: str):
        super().__init__("destination_not_found", f"Sheet {name} not found.", {"name": name})


class UnknownCommandError(ChildSitesError):
    def __init__(self, name: str):
        super().__init__("unknown_command", f"Unknown command: {name}", {"name": name})


class SettingsError(ChildSitesError):
    def __init__(self, message: str):
        super().__init__("settings_error", message)

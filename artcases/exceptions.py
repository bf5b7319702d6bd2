from __future__ import annotations

from typing import Optional


class ArtCasesError(Exception):
    """Base error for the inventory checker."""


class ValidationError(ArtCasesError):
    """Input rejected before any store or network access."""


class ConfigError(ArtCasesError):
    pass


class ServiceError(ArtCasesError):
    """An upstream call failed.

    ``transient`` is True when the request never produced a response
    (connection error, timeout) and False when the service answered with
    something unusable.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.transient = transient


class HistoryStoreError(ArtCasesError):
    pass


class NothingToReport(ArtCasesError):
    pass

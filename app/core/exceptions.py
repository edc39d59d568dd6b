"""
Domain Exceptions

Errors raised by the data-source layer.
"""

from typing import Optional


class DataSourceError(Exception):
    """
    A read or write against the hosted database failed.
    
    Raised for transport errors, non-2xx gateway responses and SQL errors.
    Read services map it to empty results; write services to HTTP 502.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return self.message

from typing import Any, Literal, Optional

ErrorKind = Literal["validation", "server", "network", "parse"]


class ApiError(Exception):
    """
    Base for every failure raised by the api package.
    `kind` tells callers how the request failed, `status` is the HTTP
    status when the backend answered at all.
    """

    kind: ErrorKind = "server"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class ServerError(ApiError):
    """backend answered with a non-success status"""

    kind = "server"

    def __init__(
        self, message: str, status: Optional[int] = None, payload: Any = None
    ) -> None:
        super().__init__(message, status)
        self.payload = payload

    @property
    def not_found(self) -> bool:
        return self.status == 404


class NetworkError(ApiError):
    """request never completed (connection refused, timeout, ...)"""

    kind = "network"

    def __init__(self, message: str = "Network error") -> None:
        super().__init__(message)


class ParseError(ApiError):
    """response body was not JSON, or not the shape we expect"""

    kind = "parse"

from english_auction.common.errors import AuctionError


class ApiError(Exception):
    """
    A request that cannot be served. `code` is stable and protocol-neutral;
    each server maps it to its own error representation.
    """
    code = "InternalError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestError(ApiError):
    code = "BadRequest"


class Unauthorized(ApiError):
    code = "Unauthorized"


class NotFound(ApiError):
    code = "NotFound"


class Rejected(ApiError):
    """The engine refused the command."""

    def __init__(self, error: AuctionError):
        super().__init__(error.value)
        self.error = error

    @property
    def code(self) -> str:
        return self.error.value

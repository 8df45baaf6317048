from enum import Enum


class AuctionError(str, Enum):
    """
    Domain errors returned (never raised) by the command handler.
    The value is the stable name reported to callers.
    """
    UNKNOWN_AUCTION = "UnknownAuction"
    AUCTION_ALREADY_EXISTS = "AuctionAlreadyExists"
    AUCTION_HAS_ENDED = "AuctionHasEnded"
    AUCTION_HAS_NOT_STARTED = "AuctionHasNotStarted"
    SELLER_CANNOT_PLACE_BIDS = "SellerCannotPlaceBids"
    INVALID_USER_DATA = "InvalidUserData"
    MUST_PLACE_BID_OVER_HIGHEST_BID = "MustPlaceBidOverHighestBid"
    # Reserved: no current rule produces it
    ALREADY_PLACED_BID = "AlreadyPlacedBid"


class BidRejected(Exception):
    """
    Raised by the state machine when a bid cannot be added.
    The command handler turns it back into an AuctionError value.
    """

    def __init__(self, error: AuctionError):
        super().__init__(error.value)
        self.error = error


class CorruptLogError(Exception):
    """An event log line could not be decoded."""

    def __init__(self, path: str, line_no: int, reason: str):
        super().__init__(f"{path}:{line_no}: {reason}")
        self.path = path
        self.line_no = line_no
        self.reason = reason


class ReplayError(Exception):
    """A persisted event could not be applied during replay."""

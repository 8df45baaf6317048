from dataclasses import dataclass
from typing import Dict, Union

from english_auction.common.models import Auction, Bid, as_int

TYPE_KEY = "$type"


@dataclass(frozen=True)
class AuctionAdded:
    at: int
    auction: Auction

    type = "auction_added"

    def to_dict(self) -> Dict:
        return {TYPE_KEY: self.type, "at": self.at, "auction": self.auction.to_dict()}

    @staticmethod
    def from_dict(d: Dict) -> 'AuctionAdded':
        return AuctionAdded(at=as_int(d["at"]), auction=Auction.from_dict(d["auction"]))


@dataclass(frozen=True)
class BidAccepted:
    at: int
    bid: Bid

    type = "bid_accepted"

    def to_dict(self) -> Dict:
        return {TYPE_KEY: self.type, "at": self.at, "bid": self.bid.to_dict()}

    @staticmethod
    def from_dict(d: Dict) -> 'BidAccepted':
        return BidAccepted(at=as_int(d["at"]), bid=Bid.from_dict(d["bid"]))


Event = Union[AuctionAdded, BidAccepted]

_ENTRY_TYPES = {
    AuctionAdded.type: AuctionAdded,
    BidAccepted.type: BidAccepted,
}


def entry_from_dict(d: Dict) -> Event:
    """
    Decode one persisted event.
    Raises KeyError for a missing field and ValueError for a bad value
    or an unknown $type.
    """
    if not isinstance(d, dict):
        raise ValueError(f"event must be a JSON object, got {type(d).__name__}")
    etype = d[TYPE_KEY]
    cls = _ENTRY_TYPES.get(etype)
    if cls is None:
        raise ValueError(f"unknown event type {etype!r}")
    return cls.from_dict(d)

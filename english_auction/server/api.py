"""
api.py: Protocol-neutral request handling shared by the gRPC and JSON-RPC servers

Turns request bodies into commands, stamps them with the current time and
renders results as plain JSON-ready dicts.
"""
import time
from typing import Any, Callable, Dict, List, Optional

from english_auction.auction.service import AuctionServiceCore
from english_auction.common.errors import AuctionError
from english_auction.common.models import (
    Bid,
    Currency,
    PlaceBid,
    TimedAscendingOptions,
    as_int,
    parse_auction_type,
)
from english_auction.server.auth import decode_user
from english_auction.server.errors import NotFound, Rejected, RequestError
from english_auction.server.timestamps import format_timestamp, parse_timestamp

DEFAULT_AUCTION_TYPE = TimedAscendingOptions()


def _field(body: Dict, name: str, parse: Callable[[Any], Any], required: bool = True):
    if not isinstance(body, dict):
        raise RequestError("request body must be a JSON object")
    if name not in body or body[name] is None:
        if required:
            raise RequestError(f"Missing {name}")
        return None
    try:
        return parse(body[name])
    except (TypeError, ValueError, OverflowError) as e:
        raise RequestError(f"Invalid {name}: {e}") from e


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {value!r}")
    return value


class AuctionApi:
    def __init__(self, service: AuctionServiceCore, clock: Callable[[], float] = time.time):
        """
        service: the engine every request is routed to
        clock: wall-clock source in Unix seconds; the engine itself never reads time
        """
        self.service = service
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock())

    def list_auctions(self) -> List[Dict]:
        return [
            {
                "id": a.id,
                "startsAt": format_timestamp(a.starts_at),
                "title": a.title,
                "expiry": format_timestamp(a.expiry),
                "currency": a.currency.value,
            }
            for a in self.service.list_auctions()
        ]

    def get_auction(self, auction_id: Any) -> Dict:
        auction_id = _field({"auction_id": auction_id}, "auction_id", as_int)
        view = self.service.get_auction(auction_id, now=self._now())
        if view is None:
            raise NotFound("Auction not found")
        a = view.auction
        return {
            "id": a.id,
            "startsAt": format_timestamp(a.starts_at),
            "title": a.title,
            "expiry": format_timestamp(a.expiry),
            "currency": a.currency.value,
            "bids": [{"amount": b.amount, "bidder": b.bidder.encode()} for b in view.bids],
            "winner": view.winner,
            "winnerPrice": view.winner_price,
        }

    def add_auction(self, jwt_payload: Optional[str], body: Dict) -> Dict:
        """
        body: {"id"?, "startsAt", "endsAt", "title", "currency", "type"?}
        The authenticated caller becomes the seller.
        """
        seller = decode_user(jwt_payload)
        auction_id = _field(body, "id", as_int, required=False)
        starts_at = _field(body, "startsAt", parse_timestamp)
        expiry = _field(body, "endsAt", parse_timestamp)
        title = _field(body, "title", _string)
        currency = _field(body, "currency", Currency.parse)
        typ = _field(body, "type", parse_auction_type, required=False) or DEFAULT_AUCTION_TYPE

        now = self._now()
        result = self.service.add_auction(
            at=now,
            seller=seller,
            title=title,
            starts_at=starts_at,
            expiry=expiry,
            currency=currency,
            typ=typ,
            auction_id=auction_id,
        )
        if isinstance(result, AuctionError):
            raise Rejected(result)
        a = result.auction
        return {
            "$type": "AuctionAdded",
            "at": format_timestamp(result.at),
            "auction": {
                "id": a.id,
                "startsAt": format_timestamp(a.starts_at),
                "title": a.title,
                "expiry": format_timestamp(a.expiry),
                "user": a.seller.id,
                "type": a.typ.encode(),
                "currency": a.currency.value,
            },
        }

    def place_bid(self, jwt_payload: Optional[str], auction_id: Any, body: Dict) -> Dict:
        """
        body: {"amount"}
        """
        bidder = decode_user(jwt_payload)
        auction_id = _field({"auction_id": auction_id}, "auction_id", as_int)
        amount = _field(body, "amount", as_int)

        now = self._now()
        bid = Bid(auction_id=auction_id, bidder=bidder, at=now, amount=amount)
        result = self.service.submit(PlaceBid(at=now, bid=bid))
        if isinstance(result, AuctionError):
            raise Rejected(result)
        return {
            "$type": "BidAccepted",
            "at": format_timestamp(result.at),
            "bid": {
                "auction": result.bid.auction_id,
                "user": result.bid.bidder.id,
                "amount": result.bid.amount,
                "at": format_timestamp(result.bid.at),
            },
        }

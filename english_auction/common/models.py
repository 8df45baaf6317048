"""
models.py: Auction domain records (users, auctions, bids, commands)
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union


def as_int(value: Any) -> int:
    """
    Accept an integer, or a float truncated to one; reject anything else.
    """
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    raise ValueError(f"expected an integer, got {value!r}")


class Currency(str, Enum):
    VAC = "VAC"  # Virtual Auction Currency
    SEK = "SEK"
    DKK = "DKK"

    @staticmethod
    def parse(value: str) -> 'Currency':
        try:
            return Currency(value)
        except ValueError:
            raise ValueError(f"unknown currency {value!r}") from None


@dataclass(frozen=True)
class BuyerOrSeller:
    id: str
    name: str

    def encode(self) -> str:
        return f"BuyerOrSeller|{self.id}|{self.name}"


@dataclass(frozen=True)
class Support:
    id: str

    def encode(self) -> str:
        return f"Support|{self.id}"


User = Union[BuyerOrSeller, Support]


def parse_user(value: str) -> User:
    """
    Decode the tagged user string, e.g. "BuyerOrSeller|a1|Test" or "Support|s1".
    """
    if not isinstance(value, str):
        raise ValueError(f"user must be a string, got {value!r}")
    tag, _, rest = value.partition("|")
    if tag == "BuyerOrSeller":
        user_id, sep, name = rest.partition("|")
        if not sep or not user_id:
            raise ValueError(f"invalid user {value!r}")
        return BuyerOrSeller(id=user_id, name=name)
    if tag == "Support":
        if not rest:
            raise ValueError(f"invalid user {value!r}")
        return Support(id=rest)
    raise ValueError(f"invalid user {value!r}")


@dataclass(frozen=True)
class TimedAscendingOptions:
    """English auction: open ascending bids until expiry."""
    reserve_price: int = 0
    min_raise: int = 0
    time_frame_seconds: int = 0

    def encode(self) -> str:
        return f"English|{self.reserve_price}|{self.min_raise}|{self.time_frame_seconds}"


class SealedBidType(str, Enum):
    BLIND = "Blind"
    VICKREY = "Vickrey"


@dataclass(frozen=True)
class SingleSealedBidOptions:
    """Sealed bids, concealed until the auction ends."""
    reserve_price: int = 0
    sealed_bid_type: SealedBidType = SealedBidType.BLIND

    def encode(self) -> str:
        return f"{self.sealed_bid_type.value}|{self.reserve_price}"


AuctionType = Union[TimedAscendingOptions, SingleSealedBidOptions]


def parse_auction_type(value: str) -> AuctionType:
    """
    Decode "English|<reserve>|<min_raise>|<time_frame>", "Blind|<reserve>"
    or "Vickrey|<reserve>".
    """
    if not isinstance(value, str):
        raise ValueError(f"auction type must be a string, got {value!r}")
    parts = value.split("|")
    tag = parts[0]
    try:
        if tag == "English" and len(parts) == 4:
            return TimedAscendingOptions(
                reserve_price=int(parts[1]),
                min_raise=int(parts[2]),
                time_frame_seconds=int(parts[3]),
            )
        if tag in (SealedBidType.BLIND.value, SealedBidType.VICKREY.value) and len(parts) == 2:
            return SingleSealedBidOptions(
                reserve_price=int(parts[1]),
                sealed_bid_type=SealedBidType(tag),
            )
    except ValueError:
        raise ValueError(f"invalid auction type {value!r}") from None
    raise ValueError(f"invalid auction type {value!r}")


@dataclass(frozen=True)
class Auction:
    id: int
    starts_at: int
    title: str
    expiry: int
    seller: User
    typ: AuctionType
    currency: Currency

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "starts_at": self.starts_at,
            "title": self.title,
            "expiry": self.expiry,
            "seller": self.seller.encode(),
            "typ": self.typ.encode(),
            "currency": self.currency.value,
        }

    @staticmethod
    def from_dict(d: Dict) -> 'Auction':
        title = d["title"]
        if not isinstance(title, str):
            raise ValueError(f"title must be a string, got {title!r}")
        return Auction(
            id=as_int(d["id"]),
            starts_at=as_int(d["starts_at"]),
            title=title,
            expiry=as_int(d["expiry"]),
            seller=parse_user(d["seller"]),
            typ=parse_auction_type(d["typ"]),
            currency=Currency.parse(d["currency"]),
        )


@dataclass(frozen=True)
class Bid:
    auction_id: int
    bidder: User
    at: int
    amount: int

    def to_dict(self) -> Dict:
        return {
            "auction_id": self.auction_id,
            "bidder": self.bidder.encode(),
            "at": self.at,
            "amount": self.amount,
        }

    @staticmethod
    def from_dict(d: Dict) -> 'Bid':
        return Bid(
            auction_id=as_int(d["auction_id"]),
            bidder=parse_user(d["bidder"]),
            at=as_int(d["at"]),
            amount=as_int(d["amount"]),
        )


@dataclass(frozen=True)
class AddAuction:
    at: int
    auction: Auction


@dataclass(frozen=True)
class PlaceBid:
    at: int
    bid: Bid


Command = Union[AddAuction, PlaceBid]

import base64
import json

import pytest

from english_auction.auction.service import AuctionServiceCore
from english_auction.common.models import (
    Auction,
    Bid,
    BuyerOrSeller,
    Currency,
    TimedAscendingOptions,
)
from english_auction.storage.storage import EventLog

STARTS_AT = 1000
ENDS_AT = 2000

SELLER = BuyerOrSeller(id="seller1", name="Seller One")
BUYER1 = BuyerOrSeller(id="buyer1", name="Buyer One")
BUYER2 = BuyerOrSeller(id="buyer2", name="Buyer Two")
BUYER3 = BuyerOrSeller(id="buyer3", name="Buyer Three")


def make_auction(auction_id=1, typ=None, starts_at=STARTS_AT, expiry=ENDS_AT, seller=SELLER,
                 currency=Currency.VAC, title="Test Auction"):
    return Auction(
        id=auction_id,
        starts_at=starts_at,
        title=title,
        expiry=expiry,
        seller=seller,
        typ=typ if typ is not None else TimedAscendingOptions(),
        currency=currency,
    )


def make_bid(bidder, amount, at, auction_id=1):
    return Bid(auction_id=auction_id, bidder=bidder, at=at, amount=amount)


def jwt_payload(claims: dict) -> str:
    return base64.b64encode(json.dumps(claims).encode()).decode()


# {"sub":"a1", "name":"Test", "u_typ":"0"}
SELLER1_JWT = "eyJzdWIiOiJhMSIsICJuYW1lIjoiVGVzdCIsICJ1X3R5cCI6IjAifQo="
# {"sub":"a2", "name":"Buyer", "u_typ":"0"}
BUYER1_JWT = "eyJzdWIiOiJhMiIsICJuYW1lIjoiQnV5ZXIiLCAidV90eXAiOiIwIn0K"


@pytest.fixture
def log_path(tmp_path):
    return str(tmp_path / "data" / "events.jsonl")


@pytest.fixture
def event_log(log_path):
    return EventLog(log_path)


@pytest.fixture
def service(event_log):
    return AuctionServiceCore(event_log)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    # 2020-01-01T10:00:00Z
    return FakeClock(1577872800)

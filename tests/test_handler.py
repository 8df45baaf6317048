from english_auction.auction.handler import handle
from english_auction.auction.state_machine import AwaitingStart, get_bids, initial_state
from english_auction.common.entries import AuctionAdded, BidAccepted
from english_auction.common.errors import AuctionError
from english_auction.common.models import AddAuction, BuyerOrSeller, PlaceBid, Support

from conftest import BUYER1, BUYER2, SELLER, STARTS_AT, make_auction, make_bid


def repository_with(auction):
    repository = {}
    assert isinstance(handle(AddAuction(at=STARTS_AT, auction=auction), repository), AuctionAdded)
    return repository


def test_add_auction_creates_awaiting_entry():
    auction = make_auction()
    repository = {}
    event = handle(AddAuction(at=500, auction=auction), repository)
    assert event == AuctionAdded(at=500, auction=auction)
    assert repository[1].auction == auction
    assert isinstance(repository[1].state, AwaitingStart)


def test_add_auction_twice_fails_and_keeps_entry():
    repository = repository_with(make_auction(title="original"))
    handle(PlaceBid(at=STARTS_AT + 10, bid=make_bid(BUYER1, 100, STARTS_AT + 10)), repository)
    before = repository[1].state

    result = handle(AddAuction(at=STARTS_AT + 20, auction=make_auction(title="replacement")), repository)
    assert result is AuctionError.AUCTION_ALREADY_EXISTS
    assert repository[1].auction.title == "original"
    assert repository[1].state == before


def test_place_bid_on_unknown_auction():
    result = handle(PlaceBid(at=STARTS_AT + 10, bid=make_bid(BUYER1, 100, STARTS_AT + 10, auction_id=42)), {})
    assert result is AuctionError.UNKNOWN_AUCTION


def test_place_bid_returns_bid_accepted():
    repository = repository_with(make_auction())
    bid = make_bid(BUYER1, 100, STARTS_AT + 10)
    assert handle(PlaceBid(at=STARTS_AT + 10, bid=bid), repository) == BidAccepted(at=STARTS_AT + 10, bid=bid)
    assert get_bids(repository[1].state) == (bid,)


def test_seller_cannot_place_bids():
    repository = repository_with(make_auction())
    for amount, at in [(1, STARTS_AT - 5), (10_000, STARTS_AT + 10), (5, 10_000)]:
        result = handle(PlaceBid(at=at, bid=make_bid(SELLER, amount, at)), repository)
        assert result is AuctionError.SELLER_CANNOT_PLACE_BIDS
    assert repository[1].state == initial_state(repository[1].auction)


def test_seller_identity_is_the_user_id():
    repository = repository_with(make_auction())
    # same id, different name and kind
    for user in (BuyerOrSeller(id=SELLER.id, name="Someone Else"), Support(id=SELLER.id)):
        bid = make_bid(user, 100, STARTS_AT + 10)
        assert handle(PlaceBid(at=STARTS_AT + 10, bid=bid), repository) is AuctionError.SELLER_CANNOT_PLACE_BIDS


def test_state_machine_errors_propagate():
    repository = repository_with(make_auction())
    assert handle(PlaceBid(at=STARTS_AT, bid=make_bid(BUYER1, 100, STARTS_AT)), repository) \
        is AuctionError.AUCTION_HAS_NOT_STARTED
    handle(PlaceBid(at=STARTS_AT + 10, bid=make_bid(BUYER1, 100, STARTS_AT + 10)), repository)
    assert handle(PlaceBid(at=STARTS_AT + 20, bid=make_bid(BUYER2, 100, STARTS_AT + 20)), repository) \
        is AuctionError.MUST_PLACE_BID_OVER_HIGHEST_BID
    assert [b.amount for b in get_bids(repository[1].state)] == [100]

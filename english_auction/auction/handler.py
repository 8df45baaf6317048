"""
handler.py: Validate commands against the repository and produce events
"""
from dataclasses import dataclass
from typing import Dict, Union

from english_auction.auction.state_machine import AuctionState, add_bid_to_state, initial_state
from english_auction.common.entries import AuctionAdded, BidAccepted, Event
from english_auction.common.errors import AuctionError, BidRejected
from english_auction.common.models import AddAuction, Auction, Command, PlaceBid


@dataclass
class RepositoryEntry:
    auction: Auction
    state: AuctionState


# auction id -> entry; entries are only ever added
Repository = Dict[int, RepositoryEntry]


def handle(command: Command, repository: Repository) -> Union[Event, AuctionError]:
    """
    Apply `command` to `repository`.
    Returns the resulting event, or the AuctionError explaining why the
    command was rejected; a rejected command leaves the repository untouched.
    The caller holds the repository lock and persists the event.
    """
    if isinstance(command, AddAuction):
        auction = command.auction
        if auction.id in repository:
            return AuctionError.AUCTION_ALREADY_EXISTS
        repository[auction.id] = RepositoryEntry(auction=auction, state=initial_state(auction))
        return AuctionAdded(at=command.at, auction=auction)

    if isinstance(command, PlaceBid):
        bid = command.bid
        entry = repository.get(bid.auction_id)
        if entry is None:
            return AuctionError.UNKNOWN_AUCTION
        if bid.bidder.id == entry.auction.seller.id:
            return AuctionError.SELLER_CANNOT_PLACE_BIDS
        try:
            entry.state = add_bid_to_state(bid, entry.state)
        except BidRejected as e:
            return e.error
        return BidAccepted(at=command.at, bid=bid)

    raise TypeError(f"unknown command {command!r}")

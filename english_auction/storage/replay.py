"""
replay.py: Rebuild the repository by folding the event log
"""
import logging
from typing import Iterable

from english_auction.auction.handler import Repository, RepositoryEntry
from english_auction.auction.state_machine import add_bid_to_state, initial_state
from english_auction.common.entries import AuctionAdded, BidAccepted, Event
from english_auction.common.errors import BidRejected, ReplayError


def replay(events: Iterable[Event]) -> Repository:
    """
    Apply persisted events, in order, to a fresh repository.
    Bids are re-run through the state machine only; the seller check
    belongs to the command handler and is not repeated here.
    """
    repository: Repository = {}
    for event in events:
        if isinstance(event, AuctionAdded):
            auction = event.auction
            if auction.id in repository:
                logging.warning(f"Replay: ignoring duplicate auction_added for auction {auction.id}")
                continue
            repository[auction.id] = RepositoryEntry(auction=auction, state=initial_state(auction))
        elif isinstance(event, BidAccepted):
            entry = repository.get(event.bid.auction_id)
            if entry is None:
                logging.debug(f"Replay: skipping bid for unknown auction {event.bid.auction_id}")
                continue
            try:
                entry.state = add_bid_to_state(event.bid, entry.state)
            except BidRejected as e:
                raise ReplayError(
                    f"bid on auction {event.bid.auction_id} at {event.bid.at} rejected on replay: {e.error.value}"
                ) from e
        else:
            raise TypeError(f"unknown event {event!r}")
    return repository

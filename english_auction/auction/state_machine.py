"""
state_machine.py: Deterministic per-auction state machine

States are immutable; every transition returns a new state. Time only
moves forward when a caller passes a later `now` (there is no background
clock), so the same sequence of bids always produces the same state.
"""
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Tuple, Union

from english_auction.auction.allocation import allocate
from english_auction.common.errors import AuctionError, BidRejected
from english_auction.common.models import (
    Auction,
    AuctionType,
    Bid,
    SealedBidType,
    SingleSealedBidOptions,
    TimedAscendingOptions,
)


@dataclass(frozen=True)
class AwaitingStart:
    start_time: int
    expiry: int
    options: AuctionType


@dataclass(frozen=True)
class Ongoing:
    bids: Tuple[Bid, ...]
    expiry: int
    options: TimedAscendingOptions


@dataclass(frozen=True)
class HasEnded:
    bids: Tuple[Bid, ...]
    expiry: int
    options: TimedAscendingOptions


@dataclass(frozen=True)
class SealedBidOngoing:
    bids: Tuple[Bid, ...]
    expiry: int
    options: SingleSealedBidOptions


@dataclass(frozen=True)
class SealedBidDisclosing:
    bids: Tuple[Bid, ...]
    expiry: int
    options: SingleSealedBidOptions


AuctionState = Union[AwaitingStart, Ongoing, HasEnded, SealedBidOngoing, SealedBidDisclosing]


class Winner(NamedTuple):
    winner: str
    amount: int


def initial_state(auction: Auction) -> AwaitingStart:
    return AwaitingStart(start_time=auction.starts_at, expiry=auction.expiry, options=auction.typ)


def _open(state: AwaitingStart) -> AuctionState:
    if isinstance(state.options, TimedAscendingOptions):
        return Ongoing(bids=(), expiry=state.expiry, options=state.options)
    if isinstance(state.options, SingleSealedBidOptions):
        return SealedBidOngoing(bids=(), expiry=state.expiry, options=state.options)
    raise TypeError(f"unknown auction type {state.options!r}")


def _close(state: AwaitingStart) -> AuctionState:
    if isinstance(state.options, TimedAscendingOptions):
        return HasEnded(bids=(), expiry=state.expiry, options=state.options)
    if isinstance(state.options, SingleSealedBidOptions):
        return SealedBidDisclosing(bids=(), expiry=state.expiry, options=state.options)
    raise TypeError(f"unknown auction type {state.options!r}")


def advance_time(state: AuctionState, now: int) -> AuctionState:
    """
    Move `state` to the phase it is in at time `now`.
    Idempotent, and never moves a state backwards.
    """
    if isinstance(state, AwaitingStart):
        if state.start_time < now < state.expiry:
            return _open(state)
        if now >= state.expiry:
            # Closed without ever opening for bids
            return _close(state)
        return state
    if isinstance(state, Ongoing):
        if now >= state.expiry:
            return HasEnded(bids=state.bids, expiry=state.expiry, options=state.options)
        return state
    if isinstance(state, SealedBidOngoing):
        if now >= state.expiry:
            return SealedBidDisclosing(bids=state.bids, expiry=state.expiry, options=state.options)
        return state
    if isinstance(state, (HasEnded, SealedBidDisclosing)):
        return state
    raise TypeError(f"unknown auction state {state!r}")


def add_bid_to_state(bid: Bid, state: AuctionState) -> AuctionState:
    """
    Advance `state` to `bid.at` and add the bid.
    Returns the new state, or raises BidRejected.
    """
    state = advance_time(state, bid.at)

    if isinstance(state, AwaitingStart):
        raise BidRejected(AuctionError.AUCTION_HAS_NOT_STARTED)
    if isinstance(state, (HasEnded, SealedBidDisclosing)):
        raise BidRejected(AuctionError.AUCTION_HAS_ENDED)
    if isinstance(state, Ongoing):
        if state.bids:
            highest = state.bids[-1]
            if bid.amount <= highest.amount + state.options.min_raise:
                raise BidRejected(AuctionError.MUST_PLACE_BID_OVER_HIGHEST_BID)
        # Anti-sniping: a late bid keeps the auction open for time_frame_seconds
        expiry = max(state.expiry, bid.at + state.options.time_frame_seconds)
        return replace(state, bids=state.bids + (bid,), expiry=expiry)
    if isinstance(state, SealedBidOngoing):
        return replace(state, bids=state.bids + (bid,))
    raise TypeError(f"unknown auction state {state!r}")


def get_bids(state: AuctionState) -> Tuple[Bid, ...]:
    """Bids visible in `state`, oldest first. Sealed bids stay hidden until disclosed."""
    if isinstance(state, (AwaitingStart, SealedBidOngoing)):
        return ()
    if isinstance(state, (Ongoing, HasEnded, SealedBidDisclosing)):
        return state.bids
    raise TypeError(f"unknown auction state {state!r}")


def get_winner_and_price(state: AuctionState) -> Optional[Winner]:
    if isinstance(state, HasEnded):
        result = allocate(state.bids, state.options.reserve_price)
    elif isinstance(state, SealedBidDisclosing):
        result = allocate(
            state.bids,
            state.options.reserve_price,
            second_price=state.options.sealed_bid_type is SealedBidType.VICKREY,
        )
    elif isinstance(state, (AwaitingStart, Ongoing, SealedBidOngoing)):
        return None
    else:
        raise TypeError(f"unknown auction state {state!r}")
    if result is None:
        return None
    return Winner(*result)

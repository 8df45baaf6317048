"""
service.py: The auction engine as seen by request handlers

AuctionServiceCore owns the repository and the event log for the process
lifetime. A single lock serializes every command and every query, and a
command's event is appended to the log before the lock is released, so the
log order is the order in which commands took effect.
"""
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from english_auction.auction.handler import Repository, handle
from english_auction.auction.state_machine import advance_time, get_bids, get_winner_and_price
from english_auction.common.entries import Event
from english_auction.common.errors import AuctionError
from english_auction.common.models import (
    AddAuction,
    Auction,
    AuctionType,
    Bid,
    Command,
    Currency,
    PlaceBid,
    User,
)
from english_auction.storage.replay import replay
from english_auction.storage.storage import EventLog


@dataclass(frozen=True)
class AuctionView:
    auction: Auction
    bids: Tuple[Bid, ...]
    winner: Optional[str]
    winner_price: Optional[int]


class AuctionServiceCore:
    def __init__(self, event_log: EventLog, repository: Optional[Repository] = None):
        """
        event_log: EventLog that accepted events are appended to
        repository: state rebuilt from that log (empty if omitted)
        """
        self.event_log = event_log
        self.repository = repository if repository is not None else {}
        self._lock = threading.Lock()

    @classmethod
    def initialize(cls, log_path: str) -> 'AuctionServiceCore':
        """
        Read the whole event log at `log_path` and replay it.
        A corrupt log raises and the service is not created.
        """
        event_log = EventLog(log_path)
        events = event_log.read_all()
        repository = replay(events)
        logging.info(f"Replayed {len(events)} event(s) from {log_path}: {len(repository)} auction(s)")
        return cls(event_log, repository)

    def submit(self, command: Command) -> Union[Event, AuctionError]:
        """
        Run `command` and persist the resulting event.
        Returns the event, or the AuctionError that rejected the command.
        If the log write fails the repository change is undone and the
        error propagates.
        """
        with self._lock:
            return self._submit(command)

    def _submit(self, command: Command) -> Union[Event, AuctionError]:
        if isinstance(command, AddAuction):
            auction_id = command.auction.id
        else:
            auction_id = command.bid.auction_id
        entry = self.repository.get(auction_id)
        previous_state = entry.state if entry is not None else None

        result = handle(command, self.repository)
        if isinstance(result, AuctionError):
            logging.debug(f"Rejected {type(command).__name__} on auction {auction_id}: {result.value}")
            return result

        try:
            self.event_log.append([result])
        except Exception:
            if entry is None:
                del self.repository[auction_id]
            else:
                entry.state = previous_state
            raise
        logging.debug(f"Accepted {type(command).__name__} on auction {auction_id}")
        return result

    def add_auction(self, at: int, seller: User, title: str, starts_at: int, expiry: int,
                    currency: Currency, typ: AuctionType,
                    auction_id: Optional[int] = None) -> Union[Event, AuctionError]:
        """
        Submit an AddAuction command.
        Without `auction_id` the next free id (highest existing id + 1) is
        used, chosen under the same lock as the command itself.
        """
        with self._lock:
            if auction_id is None:
                auction_id = max(self.repository, default=0) + 1
            auction = Auction(
                id=auction_id,
                starts_at=starts_at,
                title=title,
                expiry=expiry,
                seller=seller,
                typ=typ,
                currency=currency,
            )
            return self._submit(AddAuction(at=at, auction=auction))

    def list_auctions(self) -> List[Auction]:
        """All auctions, ordered by id."""
        with self._lock:
            return [self.repository[k].auction for k in sorted(self.repository)]

    def get_auction(self, auction_id: int, now: Optional[int] = None) -> Optional[AuctionView]:
        """
        Current view of one auction, or None if it does not exist.
        With `now` the view reflects the phase at that time; the stored
        state is not advanced, only bids move it forward.
        """
        with self._lock:
            entry = self.repository.get(auction_id)
            if entry is None:
                return None
            state = entry.state if now is None else advance_time(entry.state, now)
            result = get_winner_and_price(state)
            return AuctionView(
                auction=entry.auction,
                bids=get_bids(state),
                winner=result.winner if result else None,
                winner_price=result.amount if result else None,
            )

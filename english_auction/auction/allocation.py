"""
allocation.py: Winner determination for ended auctions
"""
from typing import Optional, Sequence, Tuple

from english_auction.common.models import Bid


def allocate(bids: Sequence[Bid], reserve_price: int,
             second_price: bool = False) -> Optional[Tuple[str, int]]:
    """
    Pick the winner of a single-item auction.
    bids: accepted bids in insertion order
    Returns (winner_user_id, price), or None when there are no bids or the
    highest bid is below the reserve price. The earliest of equal bids wins.
    With second_price the winner pays the second-highest amount (Vickrey)
    but never less than the reserve price, or their own amount when they
    are the only bidder.
    """
    if not bids:
        return None
    # Sort bids by amount descending; sorted() keeps insertion order on ties
    sorted_bids = sorted(bids, key=lambda b: b.amount, reverse=True)
    highest = sorted_bids[0]
    if highest.amount < reserve_price:
        return None
    price = highest.amount
    if second_price and len(sorted_bids) > 1:
        price = max(sorted_bids[1].amount, reserve_price)
    return highest.bidder.id, price

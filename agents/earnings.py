"""
Courier payout calculation and a running ledger of payouts.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta

from config.config import EarningsConfig
from models.delivery import Order
from models.errors import MalformedInputError

logger = logging.getLogger(__name__)

DEFAULT_RATES = EarningsConfig()


def _non_negative(name: str, value: float) -> float:
    if not isinstance(value, int | float) or isinstance(value, bool) or not math.isfinite(value) or value < 0:
        raise MalformedInputError(f"{name} must be a non-negative number, got {value!r}")
    return float(value)


def calculate_earnings(
    distance_miles: float,
    item_count: int,
    tip: float,
    rates: EarningsConfig = DEFAULT_RATES,
) -> float:
    """
    Payout for one delivery: base + per mile + per item + tip share, in dollars.

    Raises:
        MalformedInputError: If any input is negative or not a number.
    """
    distance_miles = _non_negative("distance_miles", distance_miles)
    if isinstance(item_count, bool) or not isinstance(item_count, int) or item_count < 0:
        raise MalformedInputError(f"item_count must be a non-negative integer, got {item_count!r}")
    tip = _non_negative("tip", tip)
    amount = (
        rates.base_rate
        + distance_miles * rates.per_mile_rate
        + item_count * rates.per_item_rate
        + tip * rates.tip_percentage
    )
    return round(amount, 2)


def estimate_order_earnings(order: Order, distance_miles: float, rates: EarningsConfig = DEFAULT_RATES) -> float:
    return calculate_earnings(distance_miles, order.item_count, order.tip, rates)


@dataclass
class PayoutRecord:
    courier_id: str
    order_id: str
    amount: float
    earned_at: datetime


class EarningsLedger:
    """Keeps payouts per courier and answers today / week-to-date totals."""

    def __init__(self):
        self.records: dict[str, list[PayoutRecord]] = defaultdict(list)

    def record(self, courier_id: str, order_id: str, amount: float, earned_at: datetime | None = None) -> PayoutRecord:
        entry = PayoutRecord(
            courier_id=courier_id,
            order_id=order_id,
            amount=_non_negative("amount", amount),
            earned_at=earned_at or datetime.now(),
        )
        self.records[courier_id].append(entry)
        logger.info(f"Recorded payout of ${entry.amount:.2f} to courier {courier_id} for order {order_id}")
        return entry

    def _total_since(self, courier_id: str, start: datetime, now: datetime) -> float:
        return round(
            math.fsum(r.amount for r in self.records.get(courier_id, []) if start <= r.earned_at <= now),
            2,
        )

    def daily_total(self, courier_id: str, now: datetime | None = None) -> float:
        now = now or datetime.now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return self._total_since(courier_id, start_of_day, now)

    def week_to_date(self, courier_id: str, now: datetime | None = None) -> float:
        """Total since Monday 00:00 of the week containing ``now``."""
        now = now or datetime.now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_week = start_of_day - timedelta(days=now.weekday())
        return self._total_since(courier_id, start_of_week, now)

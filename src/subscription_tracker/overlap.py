from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Iterator, Optional, Union

from subscription_tracker.months import months_inclusive


@dataclass(frozen=True)
class Bounded:
    """Active from ``start`` through ``end``, both months included."""
    start: date
    end: date


@dataclass(frozen=True)
class OpenEnded:
    """Active from ``start`` with no end month."""
    start: date

    @property
    def end(self) -> None:
        return None


ActiveInterval = Union[Bounded, OpenEnded]


@dataclass(frozen=True)
class Period:
    """Query window, both months included. Callers guarantee start <= end."""
    start: date
    end: date


@dataclass(frozen=True)
class Contribution:
    subscription: Any
    months: int
    amount: int


def active_interval(start_date: date, end_date: Optional[date]) -> ActiveInterval:
    if end_date is None:
        return OpenEnded(start_date)
    return Bounded(start_date, end_date)


def overlap_months(interval: ActiveInterval, period: Period) -> int:
    """
    Inclusive number of months the interval shares with the period.

    :return: 0 when the interval lies entirely before or after the period.
    """
    effective_start = max(interval.start, period.start)
    if isinstance(interval, OpenEnded):
        effective_end = period.end
    else:
        effective_end = min(interval.end, period.end)
    # months_inclusive goes negative past this point, it has no floor
    if effective_start > effective_end:
        return 0
    return months_inclusive(effective_start, effective_end)


def contributions(subscriptions: Iterable[Any], period: Period) -> Iterator[Contribution]:
    """
    Yield the cost each subscription contributes to the period.

    Subscriptions are any objects exposing ``start_date``, ``end_date`` and
    ``price``. Ones that do not overlap the period are skipped.
    """
    for subscription in subscriptions:
        interval = active_interval(subscription.start_date, subscription.end_date)
        months = overlap_months(interval, period)
        if months == 0:
            continue
        yield Contribution(subscription, months, subscription.price * months)


def total_cost(subscriptions: Iterable[Any], period: Period) -> int:
    return sum(c.amount for c in contributions(subscriptions, period))

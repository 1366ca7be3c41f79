"""Order fraud rules.

Each rule is a pure function over the new order's amount and the user's
recent history (as read from the order ledger, excluding the new order).
Rules are independent: all of them run for every order and each may
produce one flag, so an order carries between zero and three flags.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Any

from app.models.fraud import FlagType, Severity

VELOCITY_WINDOW = timedelta(hours=1)
VELOCITY_MAX_PRIOR_ORDERS = 3
HIGH_VALUE_THRESHOLD = Decimal("500")
DAILY_WINDOW = timedelta(hours=24)
DAILY_LIMIT = Decimal("1000")


@dataclass(frozen=True)
class OrderHistory:
    """User's ledger history at the time the new order is evaluated."""

    orders_last_hour: int
    total_last_24h: Decimal


@dataclass(frozen=True)
class FlagDraft:
    flag_type: FlagType
    severity: Severity
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def requires_approval(self) -> bool:
        return self.severity == Severity.high


def check_velocity(amount: Decimal, history: OrderHistory) -> FlagDraft | None:
    """Fourth or later order within one hour."""
    if history.orders_last_hour >= VELOCITY_MAX_PRIOR_ORDERS:
        return FlagDraft(
            flag_type=FlagType.velocity,
            severity=Severity.high,
            description="Multiple orders placed within 1 hour",
            metadata={"order_count": history.orders_last_hour + 1},
        )
    return None


def check_high_value(amount: Decimal, history: OrderHistory) -> FlagDraft | None:
    if amount > HIGH_VALUE_THRESHOLD:
        return FlagDraft(
            flag_type=FlagType.high_value,
            severity=Severity.medium,
            description="Order amount exceeds threshold",
            metadata={"amount": str(amount)},
        )
    return None


def check_daily_limit(amount: Decimal, history: OrderHistory) -> FlagDraft | None:
    daily_total = history.total_last_24h + amount
    if daily_total > DAILY_LIMIT:
        return FlagDraft(
            flag_type=FlagType.daily_limit,
            severity=Severity.high,
            description="Daily spending limit exceeded",
            metadata={"daily_total": str(daily_total)},
        )
    return None


RULES = (check_velocity, check_high_value, check_daily_limit)


def evaluate(amount: Decimal, history: OrderHistory) -> list[FlagDraft]:
    """Run every rule and collect the flags they raise, in rule order."""
    drafts = []
    for rule in RULES:
        draft = rule(amount, history)
        if draft is not None:
            drafts.append(draft)
    return drafts

"""
Cash Pool Module

Summarizes the shared cash pool the group carried on the trip.

Money leaves the pool in two ways:
    - "expense": spent directly from the pool
    - "cash": handed to a member to spend on their own

Functions:
    summarize_cash_pool: Totals, remaining amount and per-member cash.
    pool_health: Label for how much of the pool is left.
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP


def _round_decimal(value: Decimal) -> float:
    """Round a Decimal to 2 decimal places and convert to float."""
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _field(record, name: str):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def summarize_cash_pool(transactions, total_cash: float) -> dict:
    """
    Summarize pool transactions against the pool size.

    Args:
        transactions: CashTransaction objects or dicts with type, amount
            and to_member.
        total_cash: Size of the pool.

    Returns:
        dict: Contains:
            - total: float (pool size)
            - spent: float (sum of expense transactions)
            - distributed: float (sum of cash handed out)
            - remaining: float (total - spent - distributed, may be negative)
            - percent_remaining: float (clamped to 0..100)
            - cash_by_member: dict of member -> cash received
    """
    total = Decimal(str(total_cash))
    spent = Decimal("0")
    distributed = Decimal("0")
    cash_by_member = defaultdict(Decimal)

    for transaction in transactions:
        amount = Decimal(str(_field(transaction, "amount")))
        kind = _field(transaction, "type")
        if kind == "expense":
            spent += amount
        elif kind == "cash":
            distributed += amount
            cash_by_member[_field(transaction, "to_member")] += amount

    remaining = total - spent - distributed
    if total > 0:
        percent = remaining / total * 100
        percent = max(Decimal("0"), min(Decimal("100"), percent))
    else:
        percent = Decimal("0")

    return {
        "total": _round_decimal(total),
        "spent": _round_decimal(spent),
        "distributed": _round_decimal(distributed),
        "remaining": _round_decimal(remaining),
        "percent_remaining": _round_decimal(percent),
        "cash_by_member": {
            member: _round_decimal(amount)
            for member, amount in cash_by_member.items()
        }
    }


def pool_health(percent_remaining: float) -> str:
    if percent_remaining > 40:
        return "healthy"
    if percent_remaining > 20:
        return "low"
    return "critical"

"""
Splitter Module

This module turns shared expenses and recorded settlements into a net
balance per trip member.

Features:
    - Equal splitting among the members of each expense
    - Settlements offset computed balances
    - Every configured member appears, even with no activity
    - Exact Decimal arithmetic, no currency rounding

Data Model:
    Input - expenses (dicts or objects with the same attributes):
        - amount: positive number
        - paid_by: member name
        - split_among: non-empty list of member names

    Input - settlements (dicts or objects with the same attributes):
        - from_member: member name (who paid)
        - to_member: member name (who received)
        - amount: positive number

    Output - balances (dict keyed by member name):
        - float, positive = the group owes this member,
          negative = this member owes the group

Functions:
    compute_balances: Calculate the net balance of every member.
    split_members: Normalize an expense's split list.
"""

from decimal import Decimal
from typing import Iterable, Optional

from config.settings import get_members
from errors import InvalidExpense, UnknownMember


def _field(record, name: str):
    """Read a field from a dict or an object with that attribute."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _to_decimal(value) -> Decimal:
    # str() first so floats like 0.1 don't drag binary noise into Decimal
    return Decimal(str(value))


def split_members(split_among) -> list[str]:
    """
    Return the split list with duplicates removed, preserving first-seen order.

    Args:
        split_among: Iterable of member names (or None).

    Returns:
        list[str]: Unique member names.
    """
    unique = []
    for member in split_among or []:
        if member not in unique:
            unique.append(member)
    return unique


def compute_balances(
    expenses: Iterable,
    settlements: Iterable,
    members: Optional[Iterable[str]] = None
) -> dict[str, float]:
    """
    Calculate every member's net balance from expenses and settlements.

    For each expense:
        1. The payer is credited with the full amount
        2. Each split member is debited amount / len(split_among)

    For each settlement:
        1. from_member is credited with the amount
        2. to_member is debited with the amount

    Args:
        expenses: Shared expense records.
        settlements: Settlement records.
        members: Member universe; defaults to the configured members.

    Returns:
        dict: Member name -> signed balance. Sums to zero within float
            tolerance.

    Raises:
        InvalidExpense: If an expense has an empty split or a non-positive
            or non-finite amount.
        ValueError: If a settlement amount is not positive and finite.
        UnknownMember: If any payer, split member or settlement party is not
            in the member universe.

    Notes:
        - Shares are not rounded; rounding belongs to display and settlement
        - Pure function: inputs are not modified, nothing is stored
    """
    universe = list(members) if members is not None else list(get_members())
    balances = {member: Decimal("0") for member in universe}

    for expense in expenses:
        amount = _to_decimal(_field(expense, "amount"))
        if not amount.is_finite() or amount <= 0:
            raise InvalidExpense(f"expense amount must be positive, got: {amount}")

        split = split_members(_field(expense, "split_among"))
        if not split:
            raise InvalidExpense("expense must be split among at least one member")

        paid_by = _field(expense, "paid_by")
        if paid_by not in balances:
            raise UnknownMember(paid_by, "paid_by")
        for member in split:
            if member not in balances:
                raise UnknownMember(member, "split_among")

        share = amount / Decimal(len(split))
        balances[paid_by] += amount
        for member in split:
            balances[member] -= share

    for settlement in settlements:
        from_member = _field(settlement, "from_member")
        to_member = _field(settlement, "to_member")
        if from_member not in balances:
            raise UnknownMember(from_member, "from_member")
        if to_member not in balances:
            raise UnknownMember(to_member, "to_member")

        amount = _to_decimal(_field(settlement, "amount"))
        if not amount.is_finite() or amount <= 0:
            raise ValueError(f"settlement amount must be positive, got: {amount}")

        balances[from_member] += amount
        balances[to_member] -= amount

    return {member: float(balance) for member, balance in balances.items()}

"""
Utilities Module

This module provides transparency helpers and display formatting for the
group trip planner.

Features:
    - Per-member breakdown of how a balance was reached
    - Currency formatting in baht
    - Member colour and initial lookups

Data Model:
    Input - expenses: SplitExpense objects or dicts with:
        - expense_id: string (optional)
        - description, category: string
        - amount: float
        - paid_by: member name
        - split_among: list of member names

    Input - settlements: Settlement objects or dicts with:
        - from_member, to_member: member names
        - amount: float

    Input - balances: dict from compute_balances()

Functions:
    explain_member_balance: Get detailed breakdown for one member.
    explain_all_members: Get detailed breakdown for every member.
    format_baht: Format an amount as whole baht.
    member_color: Display colour for a member.
    member_initial: Avatar initial for a member.
"""

from decimal import Decimal, ROUND_HALF_UP

from splitter import split_members
from trip_data import DEFAULT_MEMBER_COLOR, MEMBER_COLORS


def _round_decimal(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _field(record, name: str, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def explain_member_balance(
    member: str,
    expenses: list,
    settlements: list,
    balances: dict
) -> dict:
    """
    Generate a detailed explanation of how a member's balance was reached.

    For each expense the member shared in:
        - Shows expense details (id, description, category, total amount)
        - Shows who paid and how many people split it
        - Shows the member's share (amount / split size)

    Settlements the member sent or received are listed separately.

    Args:
        member: Member to explain.
        expenses: Split expenses.
        settlements: Recorded settlements.
        balances: Output from compute_balances().

    Returns:
        dict: Explanation containing:
            - member: string
            - expense_contributions: list of dicts with expense breakdown
            - total_paid: float (expenses this member paid for)
            - total_share: float (sum of this member's shares)
            - settlements_paid: float
            - settlements_received: float
            - net_balance: float (from balances)
    """
    contributions = []
    total_paid = Decimal("0")
    total_share = Decimal("0")

    for expense in expenses:
        amount = Decimal(str(_field(expense, "amount")))
        if _field(expense, "paid_by") == member:
            total_paid += amount

        split = split_members(_field(expense, "split_among"))
        if member not in split:
            continue

        share = amount / Decimal(len(split))
        total_share += share
        contributions.append({
            "expense_id": _field(expense, "expense_id", "N/A"),
            "description": _field(expense, "description") or _field(expense, "category", "misc"),
            "category": _field(expense, "category", "misc"),
            "paid_by": _field(expense, "paid_by"),
            "total_expense_amount": _round_decimal(amount),
            "num_sharing": len(split),
            "member_share": _round_decimal(share)
        })

    paid_out = Decimal("0")
    received = Decimal("0")
    for settlement in settlements:
        amount = Decimal(str(_field(settlement, "amount")))
        if _field(settlement, "from_member") == member:
            paid_out += amount
        if _field(settlement, "to_member") == member:
            received += amount

    return {
        "member": member,
        "expense_contributions": contributions,
        "total_paid": _round_decimal(total_paid),
        "total_share": _round_decimal(total_share),
        "settlements_paid": _round_decimal(paid_out),
        "settlements_received": _round_decimal(received),
        "net_balance": _round_decimal(Decimal(str(balances.get(member, 0.0))))
    }


def explain_all_members(
    members: list[str],
    expenses: list,
    settlements: list,
    balances: dict
) -> list[dict]:
    """
    Generate detailed explanations for every member, in member order.

    Includes members with no expenses.
    """
    return [
        explain_member_balance(member, expenses, settlements, balances)
        for member in members
    ]


def format_baht(amount: float) -> str:
    """
    Format an amount as whole baht with thousands separators.

    The sign is dropped; callers show direction (owes / is owed) separately.

    Args:
        amount: The amount to format.

    Returns:
        str: Formatted string like "฿1,234".
    """
    whole = Decimal(str(abs(amount))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"฿{int(whole):,}"


def member_color(name: str) -> str:
    return MEMBER_COLORS.get(name, DEFAULT_MEMBER_COLOR)


def member_initial(name: str) -> str:
    return name[0].upper() if name else "?"

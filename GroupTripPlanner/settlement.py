"""
Settlement Module

This module reduces a balance map to a short list of pairwise transfers
that settle the whole group.

Features:
    - Greedy largest-creditor / largest-debtor matching
    - Transfers rounded to whole currency units at emission
    - Running balances kept unrounded to avoid drift
    - Epsilon tolerance for rounding noise
    - Iteration cap with an explicit overflow signal

Data Model:
    Input - balances (dict keyed by member name):
        - float, positive = owed money, negative = owes money

    Output - list of transfers:
        - from: string (debtor who pays)
        - to: string (creditor who receives)
        - amount: float (whole currency units)

Functions:
    simplify_debts: Convert balances into settle-up transfers.
    settle_up: simplify_debts that degrades gracefully on overflow.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from errors import SimplificationOverflow


logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 0.5
DEFAULT_MAX_ITERATIONS = 100


def _round_currency(value: Decimal) -> float:
    """
    Round a Decimal to the nearest whole currency unit, halves away from zero.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def simplify_debts(
    balances: dict,
    epsilon: float = DEFAULT_EPSILON,
    max_iterations: int = DEFAULT_MAX_ITERATIONS
) -> list[dict]:
    """
    Convert net balances into settle-up transfers.

    Uses a greedy algorithm, one transfer per pass:
        1. Creditors are members with balance > epsilon, sorted largest first
        2. Debtors are members with balance < -epsilon, most negative first
        3. The top debtor pays the top creditor min(credit, -debt)
        4. Both balances move toward zero by the unrounded amount
        5. Repeat until no creditor or no debtor is left

    Args:
        balances: Dict keyed by member name with signed balances.
        epsilon: Balances within epsilon of zero count as settled.
        max_iterations: Maximum number of passes.

    Returns:
        list[dict]: Transfers with from, to and amount, in non-increasing
            order of amount.

    Raises:
        SimplificationOverflow: If max_iterations passes run and both
            creditors and debtors remain. Carries the partial transfers
            and the residual balances.

    Notes:
        - Ties keep input order (stable sort)
        - Residuals within epsilon at the end are dropped silently
        - Does NOT modify input balances
    """
    eps = Decimal(str(epsilon))
    remaining = {member: Decimal(str(value)) for member, value in balances.items()}
    transfers = []

    for _ in range(max_iterations):
        creditors = sorted(
            (m for m, v in remaining.items() if v > eps),
            key=lambda m: remaining[m],
            reverse=True
        )
        debtors = sorted(
            (m for m, v in remaining.items() if v < -eps),
            key=lambda m: remaining[m]
        )
        if not creditors or not debtors:
            return transfers

        creditor = creditors[0]
        debtor = debtors[0]
        pay = min(remaining[creditor], -remaining[debtor])

        transfers.append({
            "from": debtor,
            "to": creditor,
            "amount": _round_currency(pay)
        })

        remaining[creditor] -= pay
        remaining[debtor] += pay

    residual = {m: float(v) for m, v in remaining.items() if abs(v) > eps}
    has_creditor = any(v > 0 for v in residual.values())
    has_debtor = any(v < 0 for v in residual.values())
    if has_creditor and has_debtor:
        raise SimplificationOverflow(transfers, residual)

    return transfers


def settle_up(
    balances: dict,
    epsilon: float = DEFAULT_EPSILON,
    max_iterations: int = DEFAULT_MAX_ITERATIONS
) -> dict:
    """
    Run simplify_debts and report whether the group is fully settled.

    Returns:
        dict: Contains:
            - transfers: list of transfers (partial on overflow)
            - residual: dict of balances left unsettled (empty when complete)
            - complete: bool
    """
    try:
        transfers = simplify_debts(balances, epsilon, max_iterations)
    except SimplificationOverflow as exc:
        logger.warning("%s; residual balances: %s", exc, exc.residual)
        return {
            "transfers": exc.transfers,
            "residual": exc.residual,
            "complete": False
        }

    return {
        "transfers": transfers,
        "residual": {},
        "complete": True
    }

"""
Analytics Module

This module provides analytics and the dashboard snapshot for the group
trip planner.

Features:
    - Category-wise split expense breakdown
    - Per-member payer totals
    - Smart warnings for spending imbalances
    - Dashboard: trip phase, today's plan, next flight, pool and split totals

Data Model:
    Input - expenses: SplitExpense objects or dicts with:
        - paid_by: member name
        - amount: float
        - category: string

    Output - dict containing:
        - analytics: dict with category_breakdown, payer_totals, total_spent
        - warnings: list of warning strings

Functions:
    generate_analytics: Generate analytics and warnings from split expenses.
    build_dashboard: Assemble the home-screen snapshot.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from cash_pool import summarize_cash_pool
from trip_data import (
    countdown,
    get_itinerary_day,
    get_trip_day,
    next_flight,
    trip_phase,
    weather_location,
    BANGKOK_TZ,
)


def _round_decimal(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _field(record, name: str):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def generate_analytics(expenses: Iterable, members: Optional[Iterable[str]] = None) -> dict:
    """
    Generate analytics and smart warnings from split expenses.

    Analytics computed:
        - category_breakdown: Total amount spent per category
        - payer_totals: Total amount paid by each member (every member listed
          when members is given)
        - total_spent: Sum of all split expenses

    Warnings generated (rule-based):
        - If one member paid > 40% of total split spend
        - If one category > 50% of total split spend

    Args:
        expenses: Split expenses with paid_by, amount, category.
        members: Optional member universe so idle members show up with 0.

    Returns:
        dict: Contains two keys:
            - analytics: dict with category_breakdown, payer_totals, total_spent
            - warnings: list of warning strings
    """
    category_totals = defaultdict(Decimal)
    payer_totals = defaultdict(Decimal)
    for member in members or []:
        payer_totals[member] = Decimal("0")
    total_spent = Decimal("0")

    for expense in expenses:
        amount = Decimal(str(_field(expense, "amount")))
        category_totals[_field(expense, "category") or "misc"] += amount
        payer_totals[_field(expense, "paid_by")] += amount
        total_spent += amount

    analytics = {
        "category_breakdown": {
            category: _round_decimal(amount)
            for category, amount in category_totals.items()
        },
        "payer_totals": {
            member: _round_decimal(amount)
            for member, amount in payer_totals.items()
        },
        "total_spent": _round_decimal(total_spent)
    }

    warnings = []
    if total_spent > 0:
        # Rule 1: one member is fronting most of the money
        for member, amount in payer_totals.items():
            percentage = (amount / total_spent) * 100
            if percentage > 40:
                warnings.append(
                    f"Warning: {member} paid {_round_decimal(percentage)}% of split expenses "
                    f"(฿{_round_decimal(amount)} of ฿{_round_decimal(total_spent)})"
                )

        # Rule 2: one category dominates
        for category, amount in category_totals.items():
            percentage = (amount / total_spent) * 100
            if percentage > 50:
                warnings.append(
                    f"Warning: '{category}' accounts for {_round_decimal(percentage)}% of split spend "
                    f"(฿{_round_decimal(amount)} of ฿{_round_decimal(total_spent)})"
                )

    return {
        "analytics": analytics,
        "warnings": warnings
    }


def build_dashboard(
    now: datetime,
    cash_transactions: Iterable,
    expenses: Iterable,
    total_cash: float
) -> dict:
    """
    Assemble the home-screen snapshot.

    Args:
        now: Current timezone-aware datetime.
        cash_transactions: Cash-pool transactions.
        expenses: Split expenses.
        total_cash: Size of the cash pool.

    Returns:
        dict: phase, trip_day, today (itinerary entry or None), next_flight,
            countdown, weather_location, pool_remaining, pool_spent,
            split_total.
    """
    local_today = now.astimezone(BANGKOK_TZ).date()
    day = get_trip_day(local_today)
    pool = summarize_cash_pool(cash_transactions, total_cash)
    split_total = sum(Decimal(str(_field(e, "amount"))) for e in expenses)

    return {
        "phase": trip_phase(now),
        "trip_day": day,
        "today": get_itinerary_day(day) if day else None,
        "next_flight": next_flight(now),
        "countdown": countdown(now),
        "weather_location": weather_location(local_today),
        "pool_remaining": pool["remaining"],
        "pool_spent": pool["spent"],
        "split_total": _round_decimal(Decimal(split_total))
    }

"""
Ledger Module

This module is the Firestore-backed store for the group's money records.

Features:
    - Add/delete split expenses
    - Record settlements between members
    - Add/delete cash-pool transactions
    - Validate members and categories at ingestion
    - Subscribe to changes for real-time refresh

Data Model:
    SplitExpense stored at: split_expenses/{expense_id}
        - expense_id: string (E001, E002, ... format)
        - description: string
        - amount: float (must be > 0)
        - category: string (see trip_data.EXPENSE_CATEGORIES)
        - paid_by: member name
        - split_among: list of member names (non-empty, unique)
        - created_at: ISO timestamp

    Settlement stored at: settlements/{settlement_id}
        - settlement_id: string (S001, S002, ... format)
        - from_member: member name (who paid)
        - to_member: member name (who received)
        - amount: float (must be > 0)
        - note: string or None
        - created_at: ISO timestamp

    CashTransaction stored at: cash_transactions/{transaction_id}
        - transaction_id: string (C001, C002, ... format)
        - type: "cash" (handed to a member) or "expense" (paid from the pool)
        - amount: float (must be > 0)
        - to_member: member name for cash, None for expense
        - category: string for expense, None for cash
        - note, day_tag: string or None
        - expense_source: "pool" or "personal"
        - split_among: list of member names or None
        - created_at: ISO timestamp

Functions:
    add_split_expense: Add a new split expense.
    list_expenses: Get all split expenses, newest first.
    delete_expense: Delete a split expense.
    record_settlement: Record a payment between two members.
    list_settlements: Get all settlements, oldest first.
    add_cash_transaction: Add a cash-pool transaction.
    list_cash_transactions: Get all pool transactions, newest first.
    delete_cash_transaction: Delete a pool transaction.
    watch_ledger: Subscribe to ledger changes.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from google.api_core.exceptions import AlreadyExists

from config.firebase_config import get_db
from config.settings import get_members
from errors import InvalidExpense, UnknownMember
from splitter import split_members
from trip_data import EXPENSE_CATEGORIES


logger = logging.getLogger(__name__)

EXPENSES_COLLECTION = "split_expenses"
SETTLEMENTS_COLLECTION = "settlements"
CASH_COLLECTION = "cash_transactions"
LEDGER_COLLECTIONS = (EXPENSES_COLLECTION, SETTLEMENTS_COLLECTION, CASH_COLLECTION)

CASH_TYPES = {"cash", "expense"}
EXPENSE_SOURCES = {"pool", "personal"}

# Retries when another writer claims the same sequential ID first
MAX_ID_ATTEMPTS = 20


class SplitExpense:
    """
    Represents one member fronting money for a subset of the group.

    Attributes:
        expense_id (str): Unique identifier in E### format.
        description (str): What the money was spent on.
        amount (float): Amount of the expense (must be > 0).
        category (str): One of trip_data.EXPENSE_CATEGORIES.
        paid_by (str): Member who paid.
        split_among (list[str]): Members sharing the cost.
        created_at (str): ISO timestamp.
    """

    def __init__(
        self,
        expense_id: str,
        description: str,
        amount: float,
        category: str,
        paid_by: str,
        split_among: list[str],
        created_at: str
    ):
        self.expense_id = expense_id
        self.description = description
        self.amount = amount
        self.category = category
        self.paid_by = paid_by
        self.split_among = split_among
        self.created_at = created_at

    def to_dict(self) -> dict:
        """Convert expense to dictionary for Firestore storage."""
        return {
            "expense_id": self.expense_id,
            "description": self.description,
            "amount": self.amount,
            "category": self.category,
            "paid_by": self.paid_by,
            "split_among": self.split_among,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SplitExpense":
        """Create a SplitExpense instance from a dictionary."""
        return cls(
            expense_id=data.get("expense_id"),
            description=data.get("description"),
            amount=data.get("amount"),
            category=data.get("category"),
            paid_by=data.get("paid_by"),
            split_among=data.get("split_among", []),
            created_at=data.get("created_at")
        )

    def __repr__(self) -> str:
        return f"SplitExpense(id='{self.expense_id}', paid_by='{self.paid_by}', amount={self.amount})"


class Settlement:
    """
    Represents an out-of-band payment from one member to another.

    Attributes:
        settlement_id (str): Unique identifier in S### format.
        from_member (str): Member who paid.
        to_member (str): Member who received.
        amount (float): Amount paid (must be > 0).
        note (str | None): Optional note.
        created_at (str): ISO timestamp.
    """

    def __init__(
        self,
        settlement_id: str,
        from_member: str,
        to_member: str,
        amount: float,
        created_at: str,
        note: Optional[str] = None
    ):
        self.settlement_id = settlement_id
        self.from_member = from_member
        self.to_member = to_member
        self.amount = amount
        self.note = note
        self.created_at = created_at

    def to_dict(self) -> dict:
        """Convert settlement to dictionary for Firestore storage."""
        return {
            "settlement_id": self.settlement_id,
            "from_member": self.from_member,
            "to_member": self.to_member,
            "amount": self.amount,
            "note": self.note,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settlement":
        """Create a Settlement instance from a dictionary."""
        return cls(
            settlement_id=data.get("settlement_id"),
            from_member=data.get("from_member"),
            to_member=data.get("to_member"),
            amount=data.get("amount"),
            note=data.get("note"),
            created_at=data.get("created_at")
        )

    def __repr__(self) -> str:
        return f"Settlement(id='{self.settlement_id}', {self.from_member} -> {self.to_member}, amount={self.amount})"


class CashTransaction:
    """
    Represents money leaving the shared cash pool.

    Attributes:
        transaction_id (str): Unique identifier in C### format.
        type (str): "cash" when handed to a member, "expense" when spent.
        amount (float): Amount (must be > 0).
        to_member (str | None): Receiving member for cash transactions.
        category (str | None): Category for expense transactions.
        note (str | None): Optional note.
        day_tag (str | None): Optional trip-day tag.
        expense_source (str): "pool" or "personal".
        split_among (list[str] | None): Optional members the spend covered.
        created_at (str): ISO timestamp.
    """

    def __init__(
        self,
        transaction_id: str,
        type: str,
        amount: float,
        created_at: str,
        to_member: Optional[str] = None,
        category: Optional[str] = None,
        note: Optional[str] = None,
        day_tag: Optional[str] = None,
        expense_source: str = "pool",
        split_among: Optional[list[str]] = None
    ):
        self.transaction_id = transaction_id
        self.type = type
        self.amount = amount
        self.to_member = to_member
        self.category = category
        self.note = note
        self.day_tag = day_tag
        self.expense_source = expense_source
        self.split_among = split_among
        self.created_at = created_at

    def to_dict(self) -> dict:
        """Convert transaction to dictionary for Firestore storage."""
        return {
            "transaction_id": self.transaction_id,
            "type": self.type,
            "amount": self.amount,
            "to_member": self.to_member,
            "category": self.category,
            "note": self.note,
            "day_tag": self.day_tag,
            "expense_source": self.expense_source,
            "split_among": self.split_among,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CashTransaction":
        """Create a CashTransaction instance from a dictionary."""
        return cls(
            transaction_id=data.get("transaction_id"),
            type=data.get("type"),
            amount=data.get("amount"),
            to_member=data.get("to_member"),
            category=data.get("category"),
            note=data.get("note"),
            day_tag=data.get("day_tag"),
            expense_source=data.get("expense_source", "pool"),
            split_among=data.get("split_among"),
            created_at=data.get("created_at")
        )

    def __repr__(self) -> str:
        return f"CashTransaction(id='{self.transaction_id}', type='{self.type}', amount={self.amount})"


def _get_timestamp() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def _require_db():
    db = get_db()
    if db is None:
        raise RuntimeError("Firestore is not available")
    return db


def _generate_next_id(collection: str, prefix: str) -> str:
    """
    Generate the next sequential document ID in a collection.

    Format: {prefix}001, {prefix}002, ...

    Logic:
        1. Fetch all existing document IDs in the collection
        2. Extract numeric suffix from IDs matching {prefix}### format
        3. Find the highest existing number
        4. Generate next ID with zero-padded 3-digit suffix

    Args:
        collection: Firestore collection name.
        prefix: One-letter ID prefix (E, S, C, ...).

    Returns:
        str: Next ID, e.g. E004.
    """
    db = _require_db()

    max_num = 0
    pattern = re.compile(rf"^{prefix}(\d+)$")

    for doc in db.collection(collection).stream():
        match = pattern.match(doc.id)
        if match:
            max_num = max(max_num, int(match.group(1)))

    return f"{prefix}{max_num + 1:03d}"


def _create_with_next_id(collection: str, prefix: str, build: Callable):
    """
    Store a new record under the next free sequential ID.

    The write uses create(), which fails instead of overwriting when a
    concurrent writer stored the same ID first; the ID is then recomputed.

    Args:
        collection: Firestore collection name.
        prefix: One-letter ID prefix.
        build: Called with the candidate ID; returns the record to store.

    Returns:
        The stored record.

    Raises:
        RuntimeError: If Firestore is not available or no free ID was found.
    """
    db = _require_db()

    for _ in range(MAX_ID_ATTEMPTS):
        record_id = _generate_next_id(collection, prefix)
        record = build(record_id)
        try:
            db.collection(collection).document(record_id).create(record.to_dict())
        except AlreadyExists:
            logger.info("ID %s in %s was taken concurrently, retrying", record_id, collection)
            continue
        return record

    raise RuntimeError(f"Could not allocate a new {prefix} ID in {collection}")


def _validate_amount(amount, field_name: str = "amount") -> float:
    """
    Validate that amount is a positive, finite number.

    Raises:
        ValueError: If amount is not a positive finite int/float.
    """
    if (
        isinstance(amount, bool)
        or not isinstance(amount, (int, float))
        or not math.isfinite(amount)
        or amount <= 0
    ):
        raise ValueError(f"{field_name} must be a positive number, got: {amount}")
    return float(amount)


def _validate_member(member, members: Iterable[str], field_name: str) -> str:
    """
    Validate that member belongs to the member universe.

    Raises:
        UnknownMember: If member is not known.
    """
    if member not in members:
        raise UnknownMember(member, field_name)
    return member


def _validate_category(category: str) -> str:
    if category not in EXPENSE_CATEGORIES:
        raise ValueError(f"category must be one of {sorted(EXPENSE_CATEGORIES)}, got: {category}")
    return category


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _delete_document(collection: str, document_id: str) -> None:
    db = _require_db()
    doc_ref = db.collection(collection).document(document_id)
    if not doc_ref.get().exists:
        raise KeyError(f"{document_id} not found in {collection}")
    doc_ref.delete()


# =============================================================================
# Split expenses
# =============================================================================

def add_split_expense(
    amount: float,
    paid_by: str,
    split_among: Optional[list[str]] = None,
    category: str = "misc",
    description: Optional[str] = None,
    members: Optional[Iterable[str]] = None
) -> SplitExpense:
    """
    Add a new split expense.

    Args:
        amount: Amount paid (must be > 0).
        paid_by: Member who paid.
        split_among: Members sharing the cost; empty or None means everyone.
        category: Expense category (see trip_data.EXPENSE_CATEGORIES).
        description: Optional description; defaults to the category.
        members: Member universe; defaults to the configured members.

    Returns:
        SplitExpense: The stored expense.

    Raises:
        InvalidExpense: If amount is not positive.
        UnknownMember: If payer or a split member is not known.
        ValueError: If category is invalid.
        RuntimeError: If Firestore is not available.
    """
    universe = list(members) if members is not None else list(get_members())

    try:
        amount = _validate_amount(amount)
    except ValueError as exc:
        raise InvalidExpense(str(exc)) from exc

    _validate_member(paid_by, universe, "paid_by")
    _validate_category(category)

    split = split_members(split_among) or list(universe)
    for member in split:
        _validate_member(member, universe, "split_among")

    expense = _create_with_next_id(
        EXPENSES_COLLECTION, "E",
        lambda expense_id: SplitExpense(
            expense_id=expense_id,
            description=_clean_text(description) or category,
            amount=amount,
            category=category,
            paid_by=paid_by,
            split_among=split,
            created_at=_get_timestamp()
        )
    )
    logger.info(
        "Added expense %s: %s paid %.2f split %d ways",
        expense.expense_id, paid_by, amount, len(split)
    )
    return expense


def list_expenses() -> list[SplitExpense]:
    """
    Get all split expenses, newest first.

    Raises:
        RuntimeError: If Firestore is not available.
    """
    db = _require_db()
    expenses = [
        SplitExpense.from_dict(doc.to_dict())
        for doc in db.collection(EXPENSES_COLLECTION).stream()
    ]
    expenses.sort(key=lambda e: e.created_at or "", reverse=True)
    return expenses


def delete_expense(expense_id: str) -> None:
    """
    Delete a split expense.

    Raises:
        KeyError: If the expense does not exist.
        RuntimeError: If Firestore is not available.
    """
    _delete_document(EXPENSES_COLLECTION, expense_id)
    logger.info("Deleted expense %s", expense_id)


# =============================================================================
# Settlements
# =============================================================================

def record_settlement(
    from_member: str,
    to_member: str,
    amount: float,
    note: Optional[str] = None,
    members: Optional[Iterable[str]] = None
) -> Settlement:
    """
    Record a payment from one member to another.

    Settlements are never edited or deleted; a mistake is corrected by
    recording a compensating settlement in the other direction.

    Args:
        from_member: Member who paid.
        to_member: Member who received.
        amount: Amount paid (must be > 0).
        note: Optional note.
        members: Member universe; defaults to the configured members.

    Returns:
        Settlement: The stored settlement.

    Raises:
        UnknownMember: If either party is not known.
        ValueError: If amount is not positive or both parties are the same.
        RuntimeError: If Firestore is not available.
    """
    universe = list(members) if members is not None else list(get_members())

    _validate_member(from_member, universe, "from_member")
    _validate_member(to_member, universe, "to_member")
    if from_member == to_member:
        raise ValueError("from_member and to_member must be different members")
    amount = _validate_amount(amount)

    settlement = _create_with_next_id(
        SETTLEMENTS_COLLECTION, "S",
        lambda settlement_id: Settlement(
            settlement_id=settlement_id,
            from_member=from_member,
            to_member=to_member,
            amount=amount,
            note=_clean_text(note),
            created_at=_get_timestamp()
        )
    )
    logger.info(
        "Recorded settlement %s: %s paid %s %.2f",
        settlement.settlement_id, from_member, to_member, amount
    )
    return settlement


def list_settlements() -> list[Settlement]:
    """Get all settlements, oldest first."""
    db = _require_db()
    settlements = [
        Settlement.from_dict(doc.to_dict())
        for doc in db.collection(SETTLEMENTS_COLLECTION).stream()
    ]
    settlements.sort(key=lambda s: s.created_at or "")
    return settlements


# =============================================================================
# Cash pool
# =============================================================================

def add_cash_transaction(
    type: str,
    amount: float,
    to_member: Optional[str] = None,
    category: Optional[str] = None,
    note: Optional[str] = None,
    day_tag: Optional[str] = None,
    expense_source: str = "pool",
    split_among: Optional[list[str]] = None,
    members: Optional[Iterable[str]] = None
) -> CashTransaction:
    """
    Add a cash-pool transaction.

    Args:
        type: "cash" (money handed to a member) or "expense" (spent from pool).
        amount: Amount (must be > 0).
        to_member: Receiving member; required for cash, ignored for expense.
        category: Expense category; defaults to "misc" for expense, ignored for cash.
        note: Optional note.
        day_tag: Optional trip-day tag (e.g. "day-2").
        expense_source: "pool" or "personal".
        split_among: Optional members the spend covered.
        members: Member universe; defaults to the configured members.

    Returns:
        CashTransaction: The stored transaction.

    Raises:
        ValueError: If type, amount, category or expense_source is invalid.
        UnknownMember: If to_member or a split member is not known.
        RuntimeError: If Firestore is not available.
    """
    universe = list(members) if members is not None else list(get_members())

    if type not in CASH_TYPES:
        raise ValueError(f"type must be one of {sorted(CASH_TYPES)}, got: {type}")
    if expense_source not in EXPENSE_SOURCES:
        raise ValueError(f"expense_source must be one of {sorted(EXPENSE_SOURCES)}, got: {expense_source}")
    amount = _validate_amount(amount)

    if type == "cash":
        if to_member is None:
            raise ValueError("to_member is required for cash transactions")
        _validate_member(to_member, universe, "to_member")
        category = None
    else:
        to_member = None
        category = _validate_category(category or "misc")

    split = split_members(split_among) or None
    for member in split or []:
        _validate_member(member, universe, "split_among")

    transaction = _create_with_next_id(
        CASH_COLLECTION, "C",
        lambda transaction_id: CashTransaction(
            transaction_id=transaction_id,
            type=type,
            amount=amount,
            to_member=to_member,
            category=category,
            note=_clean_text(note),
            day_tag=_clean_text(day_tag),
            expense_source=expense_source,
            split_among=split,
            created_at=_get_timestamp()
        )
    )
    logger.info("Added pool %s %s: %.2f", type, transaction.transaction_id, amount)
    return transaction


def list_cash_transactions() -> list[CashTransaction]:
    """Get all cash-pool transactions, newest first."""
    db = _require_db()
    transactions = [
        CashTransaction.from_dict(doc.to_dict())
        for doc in db.collection(CASH_COLLECTION).stream()
    ]
    transactions.sort(key=lambda t: t.created_at or "", reverse=True)
    return transactions


def delete_cash_transaction(transaction_id: str) -> None:
    """
    Delete a cash-pool transaction.

    Raises:
        KeyError: If the transaction does not exist.
        RuntimeError: If Firestore is not available.
    """
    _delete_document(CASH_COLLECTION, transaction_id)
    logger.info("Deleted pool transaction %s", transaction_id)


# =============================================================================
# Change notifications
# =============================================================================

def watch_ledger(
    callback: Callable[[str], None],
    collections: Iterable[str] = LEDGER_COLLECTIONS
) -> list:
    """
    Subscribe to changes in the ledger collections.

    The callback receives the name of the collection that changed; clients
    re-fetch and recompute on every call. Firestore fires once immediately
    with the current snapshot.

    Args:
        callback: Called with the collection name on every change.
        collections: Collections to watch (default: all ledger collections).

    Returns:
        list: Firestore watch handles; call .unsubscribe() on each to stop.

    Raises:
        RuntimeError: If Firestore is not available.
    """
    db = _require_db()
    collections = tuple(collections)
    watches = []

    for name in collections:
        def on_snapshot(snapshot, changes, read_time, collection=name):
            logger.debug("Ledger change in %s (%d documents)", collection, len(changes))
            callback(collection)

        watches.append(db.collection(name).on_snapshot(on_snapshot))

    logger.info("Watching ledger collections: %s", ", ".join(collections))
    return watches

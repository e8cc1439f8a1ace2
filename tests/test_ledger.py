import itertools

import pytest

import ledger
from errors import InvalidExpense, UnknownMember
from settlement import simplify_debts
from splitter import compute_balances


@pytest.fixture(autouse=True)
def ordered_timestamps(monkeypatch):
    """Strictly increasing timestamps so ordering assertions are stable."""
    counter = itertools.count(1)
    monkeypatch.setattr(
        ledger, "_get_timestamp", lambda: f"2026-03-01T00:00:{next(counter):02d}+00:00"
    )


def test_add_split_expense_assigns_sequential_ids(fake_db, members):
    first = ledger.add_split_expense(700, "Mahendra", members, category="food", description="Dinner")
    second = ledger.add_split_expense(300, "Namrata", ["Namrata", "Harish"], category="transport")

    assert first.expense_id == "E001"
    assert second.expense_id == "E002"
    assert fake_db.documents("split_expenses")["E001"]["description"] == "Dinner"
    assert second.description == "transport"


def test_add_split_expense_defaults_to_everyone(fake_db, members):
    expense = ledger.add_split_expense(700, "Ishmeet")

    assert expense.split_among == members
    assert expense.category == "misc"


def test_add_split_expense_dedupes_split(fake_db):
    expense = ledger.add_split_expense(100, "Harish", ["Harish", "Unmesh", "Harish"])

    assert expense.split_among == ["Harish", "Unmesh"]


def test_add_split_expense_rejects_unknown_member(fake_db):
    with pytest.raises(UnknownMember):
        ledger.add_split_expense(100, "Stranger")
    with pytest.raises(UnknownMember):
        ledger.add_split_expense(100, "Harish", ["Harish", "Stranger"])

    assert fake_db.documents("split_expenses") == {}


def test_add_split_expense_rejects_bad_amount_and_category(fake_db):
    with pytest.raises(InvalidExpense):
        ledger.add_split_expense(0, "Harish")
    with pytest.raises(InvalidExpense):
        ledger.add_split_expense("100", "Harish")
    with pytest.raises(ValueError):
        ledger.add_split_expense(100, "Harish", category="gambling")


def test_list_expenses_newest_first(fake_db):
    ledger.add_split_expense(100, "Harish")
    ledger.add_split_expense(200, "Unmesh")

    assert [e.expense_id for e in ledger.list_expenses()] == ["E002", "E001"]


def test_delete_expense(fake_db):
    ledger.add_split_expense(100, "Harish")

    ledger.delete_expense("E001")

    assert ledger.list_expenses() == []
    with pytest.raises(KeyError):
        ledger.delete_expense("E001")


def test_deleted_id_is_not_reused_while_later_ids_exist(fake_db):
    ledger.add_split_expense(100, "Harish")
    ledger.add_split_expense(200, "Harish")
    ledger.delete_expense("E001")

    assert ledger.add_split_expense(300, "Harish").expense_id == "E003"


def test_record_settlement(fake_db):
    settlement = ledger.record_settlement("Namrata", "Mahendra", 143, note=" cash ")

    assert settlement.settlement_id == "S001"
    assert settlement.note == "cash"
    assert fake_db.documents("settlements")["S001"]["amount"] == 143.0


def test_record_settlement_validation(fake_db):
    with pytest.raises(ValueError):
        ledger.record_settlement("Namrata", "Namrata", 10)
    with pytest.raises(UnknownMember):
        ledger.record_settlement("Namrata", "Stranger", 10)
    with pytest.raises(ValueError):
        ledger.record_settlement("Namrata", "Harish", -5)


def test_concurrent_settlements_are_both_kept(fake_db, monkeypatch):
    # Another device records a settlement after this call picked its ID
    # but before it wrote, so the first choice of S001 is already taken.
    fired = []

    def racing_timestamp():
        if not fired:
            fired.append(True)
            ledger.record_settlement("Harish", "Mahendra", 50)
        return f"2026-03-01T00:00:{len(fired) + 10:02d}+00:00"

    monkeypatch.setattr(ledger, "_get_timestamp", racing_timestamp)

    settlement = ledger.record_settlement("Namrata", "Mahendra", 100)

    assert settlement.settlement_id == "S002"
    stored = fake_db.documents("settlements")
    assert sorted(stored) == ["S001", "S002"]
    assert stored["S001"]["amount"] == 50.0
    assert stored["S002"]["amount"] == 100.0


def test_concurrent_expense_gets_next_id(fake_db, monkeypatch):
    fired = []

    def racing_timestamp():
        if not fired:
            fired.append(True)
            ledger.add_split_expense(300, "Harish", ["Harish", "Namrata"])
        return f"2026-03-01T00:00:{len(fired) + 10:02d}+00:00"

    monkeypatch.setattr(ledger, "_get_timestamp", racing_timestamp)

    expense = ledger.add_split_expense(700, "Mahendra", ["Mahendra", "Namrata"])

    assert expense.expense_id == "E002"
    assert sorted(e.amount for e in ledger.list_expenses()) == [300.0, 700.0]


@pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_amounts_rejected(fake_db, amount):
    with pytest.raises(InvalidExpense):
        ledger.add_split_expense(amount, "Harish")
    with pytest.raises(ValueError):
        ledger.record_settlement("Namrata", "Harish", amount)
    with pytest.raises(ValueError):
        ledger.add_cash_transaction("expense", amount)

    assert fake_db.documents("split_expenses") == {}
    assert fake_db.documents("settlements") == {}
    assert fake_db.documents("cash_transactions") == {}


def test_list_settlements_oldest_first(fake_db):
    ledger.record_settlement("Namrata", "Mahendra", 10)
    ledger.record_settlement("Harish", "Mahendra", 20)

    assert [s.settlement_id for s in ledger.list_settlements()] == ["S001", "S002"]


def test_mark_settled_round_trip(fake_db, members):
    ledger.add_split_expense(1000, "Mahendra", members)
    balances = compute_balances(ledger.list_expenses(), ledger.list_settlements(), members)

    for debt in simplify_debts(balances):
        ledger.record_settlement(debt["from"], debt["to"], debt["amount"])

    settled = compute_balances(ledger.list_expenses(), ledger.list_settlements(), members)
    assert simplify_debts(settled) == []
    assert sum(settled.values()) == pytest.approx(0, abs=1e-9)


def test_add_cash_transaction_cash(fake_db):
    transaction = ledger.add_cash_transaction("cash", 5000, to_member="Meghana", category="food")

    assert transaction.transaction_id == "C001"
    assert transaction.to_member == "Meghana"
    assert transaction.category is None


def test_add_cash_transaction_expense(fake_db):
    transaction = ledger.add_cash_transaction("expense", 800, to_member="Meghana", note="Taxi")

    assert transaction.to_member is None
    assert transaction.category == "misc"
    assert transaction.expense_source == "pool"


def test_add_cash_transaction_validation(fake_db):
    with pytest.raises(ValueError):
        ledger.add_cash_transaction("loan", 100)
    with pytest.raises(ValueError):
        ledger.add_cash_transaction("cash", 100)
    with pytest.raises(UnknownMember):
        ledger.add_cash_transaction("cash", 100, to_member="Stranger")
    with pytest.raises(ValueError):
        ledger.add_cash_transaction("expense", 100, expense_source="card")


def test_cash_transactions_list_and_delete(fake_db):
    ledger.add_cash_transaction("expense", 100)
    ledger.add_cash_transaction("cash", 200, to_member="Unmesh")

    assert [t.transaction_id for t in ledger.list_cash_transactions()] == ["C002", "C001"]

    ledger.delete_cash_transaction("C002")
    assert [t.transaction_id for t in ledger.list_cash_transactions()] == ["C001"]
    with pytest.raises(KeyError):
        ledger.delete_cash_transaction("C999")


def test_store_unavailable(no_db):
    with pytest.raises(RuntimeError):
        ledger.list_expenses()
    with pytest.raises(RuntimeError):
        ledger.add_split_expense(100, "Harish")


def test_watch_ledger_notifies_on_change(fake_db):
    changed = []

    watches = ledger.watch_ledger(changed.append)
    fake_db.collection("settlements").fire()
    fake_db.collection("split_expenses").fire()

    assert len(watches) == 3
    assert changed == ["settlements", "split_expenses"]

    for watch in watches:
        watch.unsubscribe()
    assert all(watch.unsubscribed for watch in watches)


def test_expense_dict_round_trip():
    expense = ledger.SplitExpense("E001", "Dinner", 700.0, "food", "Harish", ["Harish"], "t")

    assert ledger.SplitExpense.from_dict(expense.to_dict()).to_dict() == expense.to_dict()

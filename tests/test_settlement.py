import pytest

from errors import SimplificationOverflow
from settlement import settle_up, simplify_debts
from splitter import compute_balances


def _apply(balances, transfers):
    after = dict(balances)
    for t in transfers:
        after[t["from"]] += t["amount"]
        after[t["to"]] -= t["amount"]
    return after


def test_simple_two_debtors():
    balances = {"A": 500, "B": -300, "C": -200}

    transfers = simplify_debts(balances)

    assert transfers == [
        {"from": "B", "to": "A", "amount": 300.0},
        {"from": "C", "to": "A", "amount": 200.0},
    ]
    assert all(value == 0 for value in _apply(balances, transfers).values())


def test_largest_pairs_matched_first():
    balances = {"A": 400, "B": 250, "C": -100, "D": -150, "E": -400}

    transfers = simplify_debts(balances)

    assert transfers == [
        {"from": "E", "to": "A", "amount": 400.0},
        {"from": "D", "to": "B", "amount": 150.0},
        {"from": "C", "to": "B", "amount": 100.0},
    ]


def test_transfers_settle_everyone_within_epsilon():
    balances = {"A": 1200, "B": -450, "C": 300, "D": -700, "E": -350, "F": 0}

    transfers = simplify_debts(balances)

    for value in _apply(balances, transfers).values():
        assert abs(value) <= 0.5


def test_transfer_count_bound():
    balances = {"A": 1200, "B": -450, "C": 300, "D": -700, "E": -350, "F": 0}

    transfers = simplify_debts(balances)

    non_zero = sum(1 for value in balances.values() if abs(value) > 0.5)
    assert len(transfers) <= non_zero - 1


def test_amounts_non_increasing():
    balances = {"A": 1200, "B": -450, "C": 300, "D": -700, "E": -350}

    amounts = [t["amount"] for t in simplify_debts(balances)]

    assert amounts == sorted(amounts, reverse=True)


def test_seven_way_scenario(members):
    expenses = [{"amount": 1000, "paid_by": "Mahendra", "split_among": members}]
    balances = compute_balances(expenses, [], members)

    transfers = simplify_debts(balances)

    assert len(transfers) == 6
    assert [t["from"] for t in transfers] == members[1:]
    for t in transfers:
        assert t["to"] == "Mahendra"
        assert t["amount"] == 143


def test_balanced_group_is_noop():
    assert simplify_debts({"A": 0.2, "B": -0.3, "C": 0.1}) == []
    assert simplify_debts({}) == []


def test_ties_keep_input_order():
    transfers = simplify_debts({"A": 100, "B": 100, "C": -200})

    assert transfers == [
        {"from": "C", "to": "A", "amount": 100.0},
        {"from": "C", "to": "B", "amount": 100.0},
    ]


def test_amount_rounds_half_up():
    assert simplify_debts({"A": 2.5, "B": -2.5}) == [{"from": "B", "to": "A", "amount": 3.0}]


def test_custom_epsilon():
    balances = {"A": 3, "B": -3}

    assert simplify_debts(balances, epsilon=5) == []
    assert len(simplify_debts(balances, epsilon=0.01)) == 1


def test_input_not_modified():
    balances = {"A": 500, "B": -300, "C": -200}

    simplify_debts(balances)

    assert balances == {"A": 500, "B": -300, "C": -200}


def test_amounts_rounded_at_emission():
    balances = {"A": 201.4, "B": -100.7, "C": -100.7}

    transfers = simplify_debts(balances)

    assert transfers == [
        {"from": "B", "to": "A", "amount": 101.0},
        {"from": "C", "to": "A", "amount": 101.0},
    ]


def test_iteration_cap_raises_with_partial_result():
    balances = {"A": 300, "B": -100, "C": -100, "D": -100}

    with pytest.raises(SimplificationOverflow) as exc_info:
        simplify_debts(balances, max_iterations=1)

    assert exc_info.value.transfers == [{"from": "B", "to": "A", "amount": 100.0}]
    assert exc_info.value.residual == {"A": 200.0, "C": -100.0, "D": -100.0}


def test_iteration_cap_exactly_enough():
    transfers = simplify_debts({"A": 200, "B": -100, "C": -100}, max_iterations=2)

    assert len(transfers) == 2


def test_settle_up_complete():
    result = settle_up({"A": 500, "B": -500})

    assert result == {
        "transfers": [{"from": "B", "to": "A", "amount": 500.0}],
        "residual": {},
        "complete": True,
    }


def test_settle_up_reports_overflow():
    result = settle_up({"A": 300, "B": -100, "C": -100, "D": -100}, max_iterations=2)

    assert result["complete"] is False
    assert len(result["transfers"]) == 2
    assert result["residual"] == {"A": 100.0, "D": -100.0}


def test_duplicate_settlement_shows_overcorrection():
    expenses = [{"amount": 300, "paid_by": "A", "split_among": ["A", "B", "C"]}]
    settlements = [
        {"from_member": "B", "to_member": "A", "amount": 100},
        {"from_member": "B", "to_member": "A", "amount": 100},
    ]
    balances = compute_balances(expenses, settlements, ["A", "B", "C"])

    assert sum(balances.values()) == pytest.approx(0)
    assert simplify_debts(balances) == [{"from": "C", "to": "B", "amount": 100.0}]

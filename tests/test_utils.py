from splitter import compute_balances
from utils import explain_all_members, explain_member_balance, format_baht, member_color, member_initial


EXPENSES = [
    {"expense_id": "E001", "description": "Villa", "category": "accommodation",
     "amount": 300, "paid_by": "A", "split_among": ["A", "B", "C"]},
    {"expense_id": "E002", "description": "Taxi", "category": "transport",
     "amount": 90, "paid_by": "B", "split_among": ["B", "C"]},
]
SETTLEMENTS = [{"from_member": "C", "to_member": "A", "amount": 50}]


def test_explain_member_balance():
    balances = compute_balances(EXPENSES, SETTLEMENTS, ["A", "B", "C"])

    explanation = explain_member_balance("C", EXPENSES, SETTLEMENTS, balances)

    assert explanation["member"] == "C"
    assert [c["expense_id"] for c in explanation["expense_contributions"]] == ["E001", "E002"]
    assert explanation["expense_contributions"][1]["member_share"] == 45.0
    assert explanation["total_paid"] == 0.0
    assert explanation["total_share"] == 145.0
    assert explanation["settlements_paid"] == 50.0
    assert explanation["settlements_received"] == 0.0
    assert explanation["net_balance"] == -95.0


def test_explanation_matches_balance():
    balances = compute_balances(EXPENSES, SETTLEMENTS, ["A", "B", "C"])

    for e in explain_all_members(["A", "B", "C"], EXPENSES, SETTLEMENTS, balances):
        derived = (e["total_paid"] - e["total_share"]
                   + e["settlements_paid"] - e["settlements_received"])
        assert round(derived, 2) == e["net_balance"]


def test_explain_all_members_includes_idle_member():
    balances = compute_balances(EXPENSES, [], ["A", "B", "C", "D"])

    explanations = explain_all_members(["A", "B", "C", "D"], EXPENSES, [], balances)

    assert [e["member"] for e in explanations] == ["A", "B", "C", "D"]
    assert explanations[3]["expense_contributions"] == []
    assert explanations[3]["net_balance"] == 0.0


def test_format_baht():
    assert format_baht(1234.4) == "฿1,234"
    assert format_baht(-857.5) == "฿858"
    assert format_baht(0) == "฿0"


def test_member_display_helpers():
    assert member_color("Mahendra") == "#F5C842"
    assert member_color("Stranger") == "#9CA3AF"
    assert member_initial("namrata") == "N"
    assert member_initial("") == "?"

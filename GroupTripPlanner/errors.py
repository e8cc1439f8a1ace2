"""
Errors Module

Exceptions raised by the balance and settlement engine and the ledger store.

InvalidExpense and UnknownMember subclass ValueError so callers that already
map ValueError to a client error (HTTP 400) handle them without changes.
"""


class InvalidExpense(ValueError):
    """Raised when an expense cannot be split (empty split, bad amount)."""


class UnknownMember(ValueError):
    """Raised when a payer, split member or settlement party is not a known member."""

    def __init__(self, member, field_name: str = "member"):
        self.member = member
        self.field_name = field_name
        super().__init__(f"{field_name} '{member}' is not a trip member")


class SimplificationOverflow(RuntimeError):
    """
    Raised when debt simplification hits its iteration cap with balances left.

    Attributes:
        transfers (list[dict]): Transfers emitted before the cap was reached.
        residual (dict): Balances still outside epsilon, keyed by member.
    """

    def __init__(self, transfers: list, residual: dict):
        self.transfers = transfers
        self.residual = residual
        super().__init__(
            f"Debt simplification stopped after {len(transfers)} transfers "
            f"with {len(residual)} unsettled members"
        )

"""
GroupTripPlanner - FastAPI Web Backend

This module serves as the main entry point for the shared trip-planning
backend using FastAPI.

Features:
    - Split expense ledger with balance and settle-up calculation
    - Shared cash pool tracking
    - Points of interest and document checklists
    - Static itinerary and flight reference data
    - Dashboard, analytics and a PDF settle-up report

Endpoints:
    GET    /health                              - Liveness check
    GET    /members                             - Member universe
    GET    /expenses                            - List split expenses
    POST   /expenses                            - Add split expense
    DELETE /expenses/{expense_id}               - Delete split expense
    GET    /settlements                         - List settlements
    POST   /settlements                         - Record settlement ("mark settled")
    GET    /balances                            - Balances and simplified debts
    GET    /cash-pool                           - Pool summary and transactions
    POST   /cash-pool                           - Add pool transaction
    DELETE /cash-pool/{transaction_id}          - Delete pool transaction
    GET    /places                              - List places
    POST   /places                              - Add place
    PATCH  /places/{place_id}/visited           - Toggle visited
    DELETE /places/{place_id}                   - Delete place
    GET    /documents/{section}                 - Document checklist
    POST   /documents/{section}/{member}/cycle  - Advance a member's status
    GET    /itinerary                           - Day-by-day itinerary
    GET    /flights                             - Flight legs
    GET    /dashboard                           - Home-screen snapshot
    GET    /analytics                           - Analytics and explanations
    GET    /export-pdf                          - Settle-up report as PDF

Usage:
    uvicorn main:app --reload
"""

import html
import io
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field
from xhtml2pdf import pisa

from analytics import build_dashboard, generate_analytics
from cash_pool import pool_health, summarize_cash_pool
from config.logging_config import setup_logging
from config.settings import get_settings
from documents import completed_count, cycle_member_status, get_section_statuses
from ledger import (
    add_cash_transaction,
    add_split_expense,
    delete_cash_transaction,
    delete_expense,
    list_cash_transactions,
    list_expenses,
    list_settlements,
    record_settlement,
)
from places import add_place, delete_place, list_places, toggle_visited, visited_summary
from settlement import settle_up
from splitter import compute_balances
from trip_data import FLIGHTS, ITINERARY_DAYS
from utils import explain_all_members, format_baht, member_color


logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class ExpenseCreate(BaseModel):
    """Request model for adding a split expense."""
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount paid (must be > 0)")
    paid_by: str = Field(..., min_length=1, description="Member who paid")
    split_among: list[str] = Field(default_factory=list, description="Members sharing the cost (empty = everyone)")
    category: str = Field("misc", description="Expense category")
    description: Optional[str] = Field(None, description="Optional description")


class ExpenseResponse(BaseModel):
    """Response model for split expense data."""
    expense_id: str
    description: str
    amount: float
    category: str
    paid_by: str
    split_among: list[str]
    created_at: str


class SettlementCreate(BaseModel):
    """Request model for recording a settlement."""
    from_member: str = Field(..., min_length=1, description="Member who paid")
    to_member: str = Field(..., min_length=1, description="Member who received")
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount paid (must be > 0)")
    note: Optional[str] = Field(None, description="Optional note")


class SettlementResponse(BaseModel):
    """Response model for settlement data."""
    settlement_id: str
    from_member: str
    to_member: str
    amount: float
    note: Optional[str]
    created_at: str


class CashTransactionCreate(BaseModel):
    """Request model for adding a cash-pool transaction."""
    type: Literal["cash", "expense"]
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount (must be > 0)")
    to_member: Optional[str] = Field(None, description="Receiving member (cash only)")
    category: Optional[str] = Field(None, description="Expense category (expense only)")
    note: Optional[str] = None
    day_tag: Optional[str] = None
    expense_source: Literal["pool", "personal"] = "pool"
    split_among: Optional[list[str]] = None


class PlaceCreate(BaseModel):
    """Request model for adding a place."""
    name: str = Field(..., min_length=1, description="Place name")
    category: str = Field(..., description="Place category")
    address: Optional[str] = None
    maps_url: Optional[str] = None
    notes: Optional[str] = None
    sort_order: int = 999


class BalancesResponse(BaseModel):
    """Response model for computed balances."""
    balances: dict[str, float]
    debts: list[dict]
    complete: bool
    residual: dict[str, float]
    split_total: float


# =============================================================================
# FastAPI Application
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    logger.info("Trip planner started for %d members", len(settings.members))
    yield


app = FastAPI(
    title="Group Trip Planner",
    description="Shared itinerary, cash pool and expense splitting for a travel group",
    version="1.0.0",
    lifespan=lifespan
)


# =============================================================================
# Helper Functions
# =============================================================================

def _expense_response(expense) -> ExpenseResponse:
    return ExpenseResponse(**expense.to_dict())


def _settlement_response(settlement) -> SettlementResponse:
    return SettlementResponse(**settlement.to_dict())


def _current_balances() -> dict:
    """
    Fetch the ledger and run both core transforms.

    Returns:
        dict: balances, debts, complete, residual, split_total, plus the
            raw expenses and settlements for callers that need them.
    """
    settings = get_settings()
    expenses = list_expenses()
    settlements = list_settlements()

    balances = compute_balances(expenses, settlements, settings.members)
    result = settle_up(balances, settings.settle_epsilon, settings.settle_max_iterations)

    return {
        "balances": balances,
        "debts": result["transfers"],
        "complete": result["complete"],
        "residual": result["residual"],
        "split_total": round(sum(e.amount for e in expenses), 2),
        "expenses": expenses,
        "settlements": settlements
    }


# =============================================================================
# API Endpoints: members & ledger
# =============================================================================

@app.get("/members")
async def get_members_list():
    """List the member universe with display colours."""
    return [
        {"name": member, "color": member_color(member)}
        for member in get_settings().members
    ]


@app.get("/expenses", response_model=list[ExpenseResponse])
async def get_expenses():
    """List split expenses, newest first."""
    try:
        return [_expense_response(e) for e in list_expenses()]
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Failed to list expenses")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/expenses", response_model=ExpenseResponse, status_code=201)
async def create_expense(expense_data: ExpenseCreate):
    """
    Add a split expense.

    Request flow:
        1. Validate input using Pydantic model
        2. Call add_split_expense() from ledger.py (member and category checks)
        3. Return created expense data
    """
    try:
        expense = add_split_expense(
            amount=expense_data.amount,
            paid_by=expense_data.paid_by,
            split_among=expense_data.split_among,
            category=expense_data.category,
            description=expense_data.description
        )
        return _expense_response(expense)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Failed to add expense")
        raise HTTPException(status_code=500, detail=str(e))


@app.delete("/expenses/{expense_id}", status_code=204)
async def remove_expense(expense_id: str):
    """Delete a split expense."""
    try:
        delete_expense(expense_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Expense {expense_id} not found")
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return Response(status_code=204)


@app.get("/settlements", response_model=list[SettlementResponse])
async def get_settlements():
    """List recorded settlements, oldest first."""
    try:
        return [_settlement_response(s) for s in list_settlements()]
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.post("/settlements", response_model=SettlementResponse, status_code=201)
async def create_settlement(settlement_data: SettlementCreate):
    """
    Record a settlement.

    This is what "mark settled" on a suggested transfer calls; the next
    /balances read reflects it.
    """
    try:
        settlement = record_settlement(
            from_member=settlement_data.from_member,
            to_member=settlement_data.to_member,
            amount=settlement_data.amount,
            note=settlement_data.note
        )
        return _settlement_response(settlement)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Failed to record settlement")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/balances", response_model=BalancesResponse)
async def get_balances():
    """
    Compute balances and the settle-up list.

    Request flow:
        1. Fetch expenses and settlements from Firestore
        2. Compute balances (splitter.py)
        3. Simplify debts (settlement.py)
        4. Return both; nothing is persisted
    """
    try:
        result = _current_balances()
        return BalancesResponse(
            balances=result["balances"],
            debts=result["debts"],
            complete=result["complete"],
            residual=result["residual"],
            split_total=result["split_total"]
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Failed to compute balances")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# API Endpoints: cash pool
# =============================================================================

@app.get("/cash-pool")
async def get_cash_pool():
    """Pool summary plus every transaction, newest first."""
    try:
        transactions = list_cash_transactions()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    summary = summarize_cash_pool(transactions, get_settings().total_cash)
    return {
        "summary": summary,
        "health": pool_health(summary["percent_remaining"]),
        "transactions": [t.to_dict() for t in transactions]
    }


@app.post("/cash-pool", status_code=201)
async def create_cash_transaction(transaction_data: CashTransactionCreate):
    """Add a cash-pool transaction."""
    try:
        transaction = add_cash_transaction(**transaction_data.model_dump())
        return transaction.to_dict()

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Failed to add pool transaction")
        raise HTTPException(status_code=500, detail=str(e))


@app.delete("/cash-pool/{transaction_id}", status_code=204)
async def remove_cash_transaction(transaction_id: str):
    """Delete a cash-pool transaction."""
    try:
        delete_cash_transaction(transaction_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Transaction {transaction_id} not found")
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return Response(status_code=204)


# =============================================================================
# API Endpoints: places & documents
# =============================================================================

@app.get("/places")
async def get_places(category: Optional[str] = None):
    """List places, optionally filtered by category."""
    try:
        places = list_places(category)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "places": [p.to_dict() for p in places],
        **visited_summary(places)
    }


@app.post("/places", status_code=201)
async def create_place(place_data: PlaceCreate):
    """Add a place."""
    try:
        return add_place(**place_data.model_dump()).to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.patch("/places/{place_id}/visited")
async def flip_place_visited(place_id: str):
    """Toggle a place's visited flag."""
    try:
        return toggle_visited(place_id).to_dict()
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Place {place_id} not found")
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.delete("/places/{place_id}", status_code=204)
async def remove_place(place_id: str):
    """Delete a place."""
    try:
        delete_place(place_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Place {place_id} not found")
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return Response(status_code=204)


@app.get("/documents/{section}")
async def get_document_statuses(section: str):
    """Checklist status of every member for a document section."""
    try:
        statuses = get_section_statuses(section)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "section": section,
        "statuses": statuses,
        "completed": completed_count(statuses),
        "total": len(statuses)
    }


@app.post("/documents/{section}/{member}/cycle")
async def advance_document_status(section: str, member: str):
    """Advance a member's checklist status to the next step."""
    try:
        return cycle_member_status(section, member)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


# =============================================================================
# API Endpoints: trip content, dashboard, analytics
# =============================================================================

@app.get("/itinerary")
async def get_itinerary():
    return ITINERARY_DAYS


@app.get("/flights")
async def get_flights():
    return FLIGHTS


@app.get("/dashboard")
async def get_dashboard():
    """Home-screen snapshot: trip phase, today's plan, pool and split totals."""
    try:
        return build_dashboard(
            now=datetime.now(timezone.utc),
            cash_transactions=list_cash_transactions(),
            expenses=list_expenses(),
            total_cash=get_settings().total_cash
        )
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/analytics")
async def get_analytics():
    """
    Analytics, warnings and per-member explanations.

    Request flow:
        1. Compute balances (same path as /balances)
        2. Generate analytics (analytics.py)
        3. Generate explanations (utils.py)
    """
    try:
        result = _current_balances()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    members = list(get_settings().members)
    analytics_result = generate_analytics(result["expenses"], members)

    return {
        "analytics": analytics_result["analytics"],
        "warnings": analytics_result["warnings"],
        "explanations": explain_all_members(
            members, result["expenses"], result["settlements"], result["balances"]
        )
    }


# =============================================================================
# PDF Export
# =============================================================================

def _signed_baht(balance: float) -> str:
    epsilon = get_settings().settle_epsilon
    if balance > epsilon:
        return "+" + format_baht(balance)
    if balance < -epsilon:
        return "-" + format_baht(balance)
    return format_baht(0)


def _render_report_html(result: dict) -> str:
    """Build the settle-up report HTML fed to xhtml2pdf."""
    members = get_settings().members

    balance_rows = "".join(
        f"<tr><td>{html.escape(m)}</td><td>{_signed_baht(result['balances'][m])}</td></tr>"
        for m in members
    )
    debt_lines = "<br>".join(
        f"<strong>{html.escape(d['from'])}</strong> pays <strong>{html.escape(d['to'])}</strong> {format_baht(d['amount'])}"
        for d in result["debts"]
    ) or "<p>Everyone is settled up.</p>"
    expense_rows = "".join(
        f"<tr><td>{html.escape(e.description)}</td><td>{format_baht(e.amount)}</td>"
        f"<td>{html.escape(e.paid_by)}</td><td>{len(e.split_among)}</td></tr>"
        for e in result["expenses"]
    ) or '<tr><td colspan="4">No expenses recorded</td></tr>'

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <style>
            body {{ font-family: Arial, sans-serif; padding: 20px; color: #333; }}
            h1 {{ color: #667eea; border-bottom: 2px solid #667eea; padding-bottom: 10px; }}
            h2 {{ color: #444; margin-top: 25px; }}
            table {{ width: 100%; border-collapse: collapse; margin: 15px 0; }}
            th, td {{ border: 1px solid #ddd; padding: 10px; text-align: left; }}
            th {{ background: #667eea; color: white; }}
            .footer {{ margin-top: 30px; text-align: center; color: #888; font-size: 12px; }}
        </style>
    </head>
    <body>
        <h1>Trip Settle-Up Report</h1>
        <p><strong>Generated:</strong> {datetime.now(timezone.utc).strftime('%B %d, %Y')}</p>
        <p><strong>Total split expenses:</strong> {format_baht(result['split_total'])}</p>

        <h2>Balances</h2>
        <table>
            <tr><th>Member</th><th>Balance</th></tr>
            {balance_rows}
        </table>

        <h2>Who Pays Whom</h2>
        {debt_lines}

        <h2>Expense History</h2>
        <table>
            <tr><th>Description</th><th>Amount</th><th>Paid By</th><th>Split</th></tr>
            {expense_rows}
        </table>

        <div class="footer">
            <p>Generated by Group Trip Planner</p>
        </div>
    </body>
    </html>
    """


@app.get("/export-pdf")
async def export_pdf():
    """Download the settle-up report as a PDF."""
    try:
        result = _current_balances()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    pdf_buffer = io.BytesIO()
    status = pisa.CreatePDF(io.StringIO(_render_report_html(result)), dest=pdf_buffer)
    if status.err:
        logger.error("PDF rendering failed with %d errors", status.err)
        raise HTTPException(status_code=500, detail="Failed to render PDF report")

    return Response(
        content=pdf_buffer.getvalue(),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=settle_up_report.pdf"}
    )


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "Group Trip Planner"}


# =============================================================================
# Run with: python main.py
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)

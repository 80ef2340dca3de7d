"""Builds the immutable Statement from reconciled values."""

from blnk_statements.models import Period, Statement, Totals
from blnk_statements.statements.formatters import to_display_amount
from blnk_statements.statements.reconciler import Reconciliation


def assemble(reconciliation: Reconciliation, period: Period) -> Statement:
    """Format statement-level figures and freeze the result.

    All four aggregate amounts share `reconciliation.precision`. Row amounts
    were formatted during reconciliation and pass through untouched.
    """
    precision = reconciliation.precision
    rows = tuple(reconciliation.rows)
    return Statement(
        balance_id=reconciliation.balance_id,
        currency=reconciliation.currency,
        account_name=reconciliation.account_name,
        period=period,
        opening_balance=to_display_amount(reconciliation.opening_balance, precision),
        closing_balance=to_display_amount(reconciliation.closing_balance, precision),
        totals=Totals(
            credits=to_display_amount(reconciliation.totals.credits, precision),
            debits=to_display_amount(reconciliation.totals.debits, precision),
            transaction_count=len(rows),
        ),
        rows=rows,
    )

"""Fixed-payment amortization and mortgage payment reconciliation.

Balances are carried at full float precision between months; only the rows
handed out are rounded to centavos. Rounding inside the recurrence would
compound over a 30-year schedule.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator

from reforma.errors import InvalidInput
from reforma.models.mortgage import (
    AmortizationRow,
    BalancePoint,
    MortgageLoan,
    MortgageSummary,
    ReconciledInstallment,
)
from reforma.models.payment import Payment
from reforma.repositories.base import MortgageRepository, PaymentRepository

logger = logging.getLogger(__name__)


def _require_finite(value: float, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number (got {value!r})") from None
    if not math.isfinite(number):
        raise InvalidInput(f"{name} must be finite (got {value!r})")
    return number


class AmortizationSchedule:
    """Lazily computed, re-iterable amortization table.

    Every iteration restarts from the principal, so two passes always yield
    the same rows. When the fixed payment leaves a balance after
    ``term_months``, one settling row (month ``term_months + 1``) pays it off.
    """

    def __init__(self, principal: float, annual_rate_pct: float, term_months: int, monthly_payment: float) -> None:
        self.principal = _require_finite(principal, "principal")
        self.annual_rate_pct = _require_finite(annual_rate_pct, "annual_rate_pct")
        self.monthly_payment = _require_finite(monthly_payment, "monthly_payment")
        if isinstance(term_months, bool) or not isinstance(term_months, int):
            raise InvalidInput(f"term_months must be an integer (got {term_months!r})")
        if self.principal <= 0:
            raise InvalidInput("principal must be positive")
        if self.annual_rate_pct < 0:
            raise InvalidInput("annual_rate_pct must not be negative")
        if term_months <= 0:
            raise InvalidInput("term_months must be positive")
        if self.monthly_payment <= 0:
            raise InvalidInput("monthly_payment must be positive")
        self.term_months = term_months
        self.monthly_rate = self.annual_rate_pct / 100 / 12
        if self.monthly_payment <= self.principal * self.monthly_rate:
            raise InvalidInput("monthly_payment does not cover the first month's interest")

    def __iter__(self) -> Iterator[AmortizationRow]:
        balance = self.principal
        for month in range(1, self.term_months + 1):
            interest = balance * self.monthly_rate
            principal = self.monthly_payment - interest
            balance = max(0.0, balance - principal)
            yield AmortizationRow(
                month=month,
                interest=round(interest, 2),
                principal=round(principal, 2),
                balance=round(balance, 2),
            )
            if balance == 0:
                return
        # A payment rounded to centavos leaves a residue after the last month.
        if round(balance, 2) > 0:
            yield AmortizationRow(
                month=self.term_months + 1,
                interest=round(balance * self.monthly_rate, 2),
                principal=round(balance, 2),
                balance=0.0,
            )

    def rows(self) -> list[AmortizationRow]:
        return list(self)


def build_schedule(
    principal: float, annual_rate_pct: float, term_months: int, monthly_payment: float
) -> AmortizationSchedule:
    return AmortizationSchedule(principal, annual_rate_pct, term_months, monthly_payment)


def schedule_for(mortgage: MortgageLoan) -> AmortizationSchedule:
    return build_schedule(
        mortgage.principal / 100,
        mortgage.annual_interest_rate_pct,
        mortgage.term_months,
        mortgage.monthly_payment / 100,
    )


def reconcile_payments(
    schedule: AmortizationSchedule | list[AmortizationRow], payments: list[Payment]
) -> list[ReconciledInstallment]:
    """Pair the i-th payment (by date) with the i-th schedule row.

    Positional on purpose: a skipped or doubled month shifts every later
    pairing. Payments past the end of the schedule get ``row=None``.
    """
    rows = list(schedule)
    ordered = sorted(payments, key=lambda p: p.payment_date)
    return [
        ReconciledInstallment(payment=payment, row=rows[i] if i < len(rows) else None)
        for i, payment in enumerate(ordered)
    ]


def mortgage_summary(mortgage: MortgageLoan, payments: list[Payment]) -> MortgageSummary:
    rows = schedule_for(mortgage).rows()
    reconciled = reconcile_payments(rows, payments)
    interest_paid = sum(r.row.interest for r in reconciled if r.row is not None)
    count = len(payments)
    if count == 0:
        current_balance = mortgage.principal / 100
    elif count <= len(rows):
        current_balance = rows[count - 1].balance
    else:
        current_balance = 0.0
    return MortgageSummary(
        total_paid=sum(p.amount for p in payments),
        payments_count=count,
        interest_paid=round(interest_paid, 2),
        current_balance=current_balance,
        balance_by_year=[
            BalancePoint(year=row.month // 12, balance=row.balance) for i, row in enumerate(rows) if i % 12 == 0
        ],
    )


class MortgageService:
    def __init__(self, mortgage_repo: MortgageRepository, payment_repo: PaymentRepository) -> None:
        self.mortgage_repo = mortgage_repo
        self.payment_repo = payment_repo

    def get_mortgage(self) -> MortgageLoan | None:
        result = self.mortgage_repo.get()
        logger.debug("get_mortgage found=%s", result is not None)
        return result

    def save_mortgage(self, mortgage: MortgageLoan) -> MortgageLoan:
        # Fails early on terms that can never amortize.
        schedule_for(mortgage)
        result = self.mortgage_repo.upsert(mortgage)
        logger.info(
            "Mortgage saved: id=%s, principal=%d, rate=%s, term=%d",
            result.id,
            result.principal,
            result.annual_interest_rate_pct,
            result.term_months,
        )
        return result

    def _require_mortgage(self) -> MortgageLoan:
        mortgage = self.mortgage_repo.get()
        if mortgage is None:
            logger.warning("No mortgage configured")
            raise ValueError("Mortgage not set up")
        return mortgage

    def record_payment(self, payment: Payment) -> Payment:
        mortgage = self._require_mortgage()
        if payment.mortgage_id != mortgage.id:
            payment = payment.model_copy(update={"mortgage_id": mortgage.id, "project_id": None})
        result = self.payment_repo.create(payment)
        logger.info("Mortgage payment recorded: id=%s, amount=%d, by=%s", result.id, result.amount, result.paid_by)
        return result

    def list_payments(self) -> list[Payment]:
        mortgage = self.mortgage_repo.get()
        if mortgage is None or mortgage.id is None:
            return []
        return self.payment_repo.list_by_mortgage(mortgage.id)

    def schedule(self) -> list[AmortizationRow]:
        return schedule_for(self._require_mortgage()).rows()

    def reconcile(self) -> list[ReconciledInstallment]:
        mortgage = self._require_mortgage()
        return reconcile_payments(schedule_for(mortgage), self.list_payments())

    def summary(self) -> MortgageSummary:
        return mortgage_summary(self._require_mortgage(), self.list_payments())

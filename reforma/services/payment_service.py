from __future__ import annotations

import logging
from collections.abc import Iterable

from reforma.models.payment import MonthlyBucket, Payment
from reforma.repositories.base import PaymentRepository

logger = logging.getLogger(__name__)


def aggregate_by_payer(payments: Iterable[Payment], known_payers: Iterable[str] = ()) -> dict[str, int]:
    """Total paid per payer.

    Known payers come first and stay in the result with 0 when they paid
    nothing; any other payer follows in first-seen order.
    """
    totals: dict[str, int] = {payer: 0 for payer in known_payers}
    for payment in payments:
        totals[payment.paid_by] = totals.get(payment.paid_by, 0) + payment.amount
    return totals


def percentage_share(aggregate: dict[str, int]) -> dict[str, float]:
    total = sum(aggregate.values())
    if total == 0:
        return {payer: 0.0 for payer in aggregate}
    return {payer: amount / total * 100 for payer, amount in aggregate.items()}


def monthly_buckets(payments: Iterable[Payment], months_back: int = 12) -> list[MonthlyBucket]:
    """Ascending ``YYYY-MM`` totals, keeping only the most recent ``months_back`` months."""
    if months_back <= 0:
        return []
    by_month: dict[str, int] = {}
    for payment in payments:
        month = payment.payment_date[:7]
        by_month[month] = by_month.get(month, 0) + payment.amount
    ordered = sorted(by_month.items())[-months_back:]
    return [MonthlyBucket(month=month, amount=amount) for month, amount in ordered]


def filter_payments(
    payments: Iterable[Payment],
    *,
    project_id: int | None = None,
    paid_by: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[Payment]:
    result = []
    for p in payments:
        if project_id is not None and p.project_id != project_id:
            continue
        if paid_by and p.paid_by != paid_by:
            continue
        if date_from and p.payment_date < date_from:
            continue
        if date_to and p.payment_date > date_to:
            continue
        result.append(p)
    return result


class PaymentService:
    def __init__(self, repo: PaymentRepository) -> None:
        self.repo = repo

    def record_payment(self, payment: Payment) -> Payment:
        result = self.repo.create(payment)
        logger.info(
            "Payment recorded: id=%s, project=%s, amount=%d, by=%s",
            result.id,
            result.project_id,
            result.amount,
            result.paid_by,
        )
        return result

    def list_payments(self) -> list[Payment]:
        result = self.repo.list_all()
        logger.debug("Listed %d payments", len(result))
        return result

    def list_for_project(self, project_id: int) -> list[Payment]:
        result = self.repo.list_by_project(project_id)
        logger.debug("Listed %d payments for project=%s", len(result), project_id)
        return result

    def delete_payment(self, payment_id: int) -> None:
        self.repo.delete(payment_id)
        logger.info("Payment %s deleted", payment_id)

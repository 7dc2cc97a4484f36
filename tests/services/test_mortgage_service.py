import math
from unittest.mock import MagicMock

import pytest

from reforma.errors import InvalidInput
from reforma.models.mortgage import MortgageLoan
from reforma.models.payment import Payment
from reforma.services.mortgage_service import (
    MortgageService,
    build_schedule,
    mortgage_summary,
    reconcile_payments,
)


def _payment(date: str, amount: int = 10000, **kwargs) -> Payment:
    defaults = {"mortgage_id": 1, "paid_by": "ana", "amount": amount, "payment_date": date}
    defaults.update(kwargs)
    return Payment(**defaults)


def _small_loan(**kwargs) -> MortgageLoan:
    defaults = {"id": 1, "principal": 120000, "annual_interest_rate_pct": 0, "term_months": 12, "monthly_payment": 10000}
    defaults.update(kwargs)
    return MortgageLoan(**defaults)


class TestBuildSchedule:
    def test_first_row_of_thirty_year_loan(self):
        rows = build_schedule(300000, 3.5, 360, 1347.13).rows()
        first = rows[0]
        assert first.month == 1
        assert first.interest == pytest.approx(875.00)
        assert first.principal == pytest.approx(472.13)
        assert first.balance == pytest.approx(299527.87)

    def test_row_identity_and_monotonic_balance(self):
        rows = build_schedule(300000, 3.5, 360, 1347.13).rows()
        for row in rows[:360]:
            assert row.interest + row.principal == pytest.approx(1347.13, abs=0.011)
        balances = [r.balance for r in rows]
        assert all(a >= b for a, b in zip(balances, balances[1:]))

    def test_rounded_payment_settles_after_term(self):
        rows = build_schedule(300000, 3.5, 360, 1347.13).rows()

        assert len(rows) == 361
        assert rows[-1].month == 361
        assert rows[-1].balance == 0
        assert rows[-1].principal == pytest.approx(rows[-2].balance)
        assert all(r.balance > 0 for r in rows[:-1])

    def test_short_payment_settles_remaining_balance(self):
        rows = build_schedule(1000, 0, 2, 100).rows()
        assert [(r.month, r.principal, r.balance) for r in rows] == [(1, 100, 900), (2, 100, 800), (3, 800, 0)]

    def test_stops_early_when_paid_off(self):
        rows = build_schedule(300000, 3.5, 360, 1400).rows()
        assert len(rows) < 360
        assert rows[-1].balance == 0
        assert all(r.balance > 0 for r in rows[:-1])

    def test_zero_rate(self):
        rows = build_schedule(1000, 0, 12, 300).rows()
        assert [r.balance for r in rows] == [700, 400, 100, 0]
        assert all(r.interest == 0 for r in rows)

    def test_iterating_twice_yields_same_rows(self):
        schedule = build_schedule(300000, 3.5, 360, 1347.13)
        assert list(schedule) == list(schedule)

    def test_final_balance_floors_at_zero(self):
        rows = build_schedule(250, 0, 12, 100).rows()
        assert [r.balance for r in rows] == [150, 50, 0]
        assert rows[-1].principal == 100

    @pytest.mark.parametrize(
        "principal,rate,term,payment",
        [
            (0, 3.5, 360, 1000),
            (-1, 3.5, 360, 1000),
            (1000, -1, 12, 100),
            (1000, 0, 0, 100),
            (1000, 0, 12, 0),
            (math.nan, 3.5, 12, 100),
            (1000, math.inf, 12, 100),
            (1000, 0, 12.5, 100),
        ],
    )
    def test_invalid_inputs(self, principal, rate, term, payment):
        with pytest.raises(InvalidInput):
            build_schedule(principal, rate, term, payment)

    def test_payment_not_covering_interest(self):
        with pytest.raises(InvalidInput, match="interest"):
            build_schedule(300000, 12, 360, 3000)


class TestReconcilePayments:
    def test_pairs_by_date_position(self):
        rows = build_schedule(1200, 0, 12, 100).rows()
        payments = [_payment("2025-03-05"), _payment("2025-01-05"), _payment("2025-02-05")]

        result = reconcile_payments(rows, payments)

        assert [r.payment.payment_date for r in result] == ["2025-01-05", "2025-02-05", "2025-03-05"]
        assert [r.row.month for r in result] == [1, 2, 3]

    def test_payments_past_schedule_have_no_row(self):
        rows = build_schedule(200, 0, 2, 100).rows()
        payments = [_payment(f"2025-0{m}-05") for m in range(1, 4)]

        result = reconcile_payments(rows, payments)

        assert result[1].row is not None
        assert result[2].row is None

    def test_no_payments(self):
        assert reconcile_payments(build_schedule(200, 0, 2, 100), []) == []


class TestMortgageSummary:
    def test_balance_after_payments(self):
        payments = [_payment(f"2025-0{m}-05") for m in range(1, 4)]
        summary = mortgage_summary(_small_loan(), payments)

        assert summary.payments_count == 3
        assert summary.total_paid == 30000
        assert summary.current_balance == 900
        assert summary.interest_paid == 0

    def test_no_payments_is_full_principal(self):
        summary = mortgage_summary(_small_loan(), [])
        assert summary.current_balance == 1200
        assert summary.total_paid == 0

    def test_more_payments_than_rows(self):
        payments = [_payment(f"2025-{m:02d}-05") for m in range(1, 13)] + [_payment("2026-01-05")]
        summary = mortgage_summary(_small_loan(), payments)
        assert summary.current_balance == 0

    def test_interest_paid_sums_matched_rows(self):
        loan = _small_loan(annual_interest_rate_pct=12, monthly_payment=20000)
        summary = mortgage_summary(loan, [_payment("2025-01-05", amount=20000)])
        assert summary.interest_paid == pytest.approx(12.0)

    def test_balance_by_year(self):
        loan = _small_loan(principal=3000000, term_months=30)
        summary = mortgage_summary(loan, [])
        assert [(p.year, p.balance) for p in summary.balance_by_year] == [(0, 29900), (1, 28700), (2, 27500)]


class TestMortgageService:
    def setup_method(self):
        self.mortgage_repo = MagicMock()
        self.payment_repo = MagicMock()
        self.service = MortgageService(self.mortgage_repo, self.payment_repo)

    def test_save_mortgage_validates_terms(self):
        loan = MortgageLoan(principal=30000000, annual_interest_rate_pct=12, term_months=360, monthly_payment=300000)
        with pytest.raises(InvalidInput):
            self.service.save_mortgage(loan)
        self.mortgage_repo.upsert.assert_not_called()

    def test_save_mortgage(self):
        loan = _small_loan()
        self.mortgage_repo.upsert.return_value = loan
        assert self.service.save_mortgage(loan) == loan
        self.mortgage_repo.upsert.assert_called_once_with(loan)

    def test_record_payment_targets_mortgage(self):
        self.mortgage_repo.get.return_value = _small_loan(id=7)
        self.payment_repo.create.side_effect = lambda p: p

        result = self.service.record_payment(_payment("2025-01-05"))

        assert result.mortgage_id == 7
        assert result.project_id is None

    def test_record_payment_without_mortgage(self):
        self.mortgage_repo.get.return_value = None
        with pytest.raises(ValueError, match="Mortgage not set up"):
            self.service.record_payment(_payment("2025-01-05"))
        self.payment_repo.create.assert_not_called()

    def test_list_payments_without_mortgage(self):
        self.mortgage_repo.get.return_value = None
        assert self.service.list_payments() == []
        self.payment_repo.list_by_mortgage.assert_not_called()

    def test_summary_uses_mortgage_payments(self):
        self.mortgage_repo.get.return_value = _small_loan()
        self.payment_repo.list_by_mortgage.return_value = [_payment("2025-01-05")]

        summary = self.service.summary()

        self.payment_repo.list_by_mortgage.assert_called_once_with(1)
        assert summary.current_balance == 1100

    def test_schedule(self):
        self.mortgage_repo.get.return_value = _small_loan()
        assert len(self.service.schedule()) == 12

    def test_reconcile(self):
        self.mortgage_repo.get.return_value = _small_loan()
        self.payment_repo.list_by_mortgage.return_value = [_payment("2025-02-05"), _payment("2025-01-05")]
        result = self.service.reconcile()
        assert [r.row.month for r in result] == [1, 2]

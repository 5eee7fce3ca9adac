"""
Tests for financial calculation engine.
"""

import logging
import math

import pytest
from datetime import date

from deal_analysis.calculations import irr as irr_module
from deal_analysis.calculations.amortization import (
    LoanTerms,
    calculate_annual_debt_service,
    calculate_payment,
    calculate_remaining_balance,
    generate_amortization_schedule,
)
from deal_analysis.calculations.cashflow import (
    calculate_appreciation_factor,
    calculate_net_operating_income,
    cash_flow_amounts,
    project_cash_flows,
)
from deal_analysis.calculations.deal import DealParameters
from deal_analysis.calculations.errors import NumericDegeneracyError
from deal_analysis.calculations.irr import (
    calculate_irr,
    calculate_multiple,
    calculate_npv,
    calculate_reference_npv,
    solve_irr,
)
from deal_analysis.calculations.payback import calculate_payback, calculate_payback_period


@pytest.fixture
def simple_deal():
    """Zero-rate loan, no vacancy, no appreciation: 8,000/yr operating cash flow."""
    return DealParameters(
        purchase_price=100000,
        down_payment_percent=20,
        loan_interest_rate=0,
        loan_term_years=10,
        annual_rental_income=20000,
        vacancy_rate=0,
        annual_operating_expenses=4000,
        annual_property_appreciation=0,
        holding_period_years=3,
    )


class TestAmortization:
    """Test loan amortization calculations."""

    def test_calculate_payment_reference_value(self):
        """$400k at 6% for 30 years is $2,398.20/month."""
        payment = calculate_payment(400000, 0.06, 360)
        assert payment == pytest.approx(2398.20, abs=0.01)

    def test_annual_debt_service(self):
        annual = calculate_annual_debt_service(400000, 0.06, 360)
        assert annual == pytest.approx(2398.20 * 12, abs=0.12)

    def test_zero_rate_loan(self):
        """Zero-rate loans are repaid in equal installments."""
        payment = calculate_payment(120000, 0.0, 120)
        assert payment == pytest.approx(1000.0)

    def test_zero_principal(self):
        assert calculate_payment(0, 0.06, 360) == 0.0

    def test_zero_term_is_degenerate(self):
        with pytest.raises(NumericDegeneracyError) as exc:
            calculate_payment(100000, 0.06, 0)
        assert exc.value.quantity == "monthly_payment"

    def test_loan_terms_from_deal(self, deal):
        terms = LoanTerms.from_deal(deal)
        assert terms.principal == pytest.approx(375000)
        assert terms.annual_rate == pytest.approx(0.065)
        assert terms.amortization_months == 360

    def test_amortization_schedule_length(self):
        """Test amortization schedule has correct number of periods."""
        schedule = generate_amortization_schedule(
            principal=100000,
            annual_rate=0.06,
            amortization_months=60,
            start_date=date(2025, 1, 1),
        )
        assert len(schedule) == 60
        assert schedule[0]["date"] == "2025-01-01"
        assert schedule[12]["date"] == "2026-01-01"

    def test_amortization_final_balance(self):
        """Test that final balance is zero."""
        schedule = generate_amortization_schedule(
            principal=100000,
            annual_rate=0.06,
            amortization_months=60,
        )
        assert schedule[-1]["ending_balance"] == 0

    def test_partial_schedule(self):
        schedule = generate_amortization_schedule(
            principal=100000,
            annual_rate=0.06,
            amortization_months=360,
            total_months=12,
        )
        assert len(schedule) == 12
        # Early payments are mostly interest
        assert schedule[0]["interest"] == pytest.approx(500.0)

    def test_remaining_balance_matches_schedule(self):
        schedule = generate_amortization_schedule(
            principal=100000,
            annual_rate=0.06,
            amortization_months=360,
            total_months=24,
        )
        balance = calculate_remaining_balance(100000, 0.06, 360, 24)
        assert balance == pytest.approx(schedule[-1]["ending_balance"], abs=0.05)


class TestCashFlows:
    """Test cash flow projection."""

    def test_appreciation_factor(self):
        assert calculate_appreciation_factor(3.0, 0) == 1.0
        assert calculate_appreciation_factor(3.0, 2) == pytest.approx(1.0609)

    def test_net_operating_income(self):
        noi = calculate_net_operating_income(48000, 5, 12000)
        assert noi == pytest.approx(33600)

    def test_series_length(self, deal):
        series = project_cash_flows(deal, 3.0, 5.0, 12000, 28000)
        assert len(series) == deal.holding_period_years + 1
        assert [e.year for e in series] == list(range(11))

    def test_year_zero_is_down_payment(self, deal):
        series = project_cash_flows(deal, 3.0, 5.0, 12000, 28000)
        first = series[0]
        assert first.cash_flow == pytest.approx(-125000)
        assert first.cumulative_cash_flow == pytest.approx(-125000)
        assert first.net_operating_income == 0
        assert first.property_value == 500000
        assert first.sale_proceeds is None

    def test_sale_only_in_final_year(self, deal):
        series = project_cash_flows(deal, 3.0, 5.0, 12000, 28000)
        assert all(e.sale_proceeds is None for e in series[:-1])
        final = series[-1]
        assert final.sale_proceeds == pytest.approx(500000 * 1.03 ** 10 - 375000)

    def test_simple_projection(self, simple_deal):
        series = project_cash_flows(simple_deal, 0.0, 0.0, 4000, 8000)
        assert cash_flow_amounts(series) == pytest.approx([-20000, 8000, 8000, 28000])
        assert [e.cumulative_cash_flow for e in series] == pytest.approx(
            [-20000, -12000, -4000, 24000]
        )
        assert series[-1].sale_proceeds == pytest.approx(20000)

    def test_cash_flow_grows_with_appreciation(self, simple_deal):
        series = project_cash_flows(simple_deal, 10.0, 0.0, 4000, 8000)
        assert series[1].cash_flow == pytest.approx(8800)
        assert series[2].property_value == pytest.approx(121000)
        assert series[2].net_operating_income == pytest.approx(16000 * 1.21)

    def test_cumulative_is_running_sum(self, deal):
        series = project_cash_flows(deal, 3.0, 5.0, 12000, 28000)
        running = 0.0
        for entry in series:
            running += entry.cash_flow
            assert entry.cumulative_cash_flow == pytest.approx(running)


class TestIRRCalculations:
    """Test IRR calculation functions."""

    def test_calculate_irr_simple(self):
        """Investment of 1000 returning 1100 after a year is 10%."""
        assert calculate_irr([-1000, 1100]) == pytest.approx(10.0, abs=0.01)

    def test_calculate_irr_multi_period(self):
        """Test IRR with multiple periods."""
        cash_flows = [-100, 20, 20, 20, 20, 120]
        assert calculate_irr(cash_flows) == pytest.approx(20.0, abs=0.01)

    def test_irr_negative_returns(self):
        cash_flows = [-100, 40, 40, 10]
        assert calculate_irr(cash_flows) < 0

    def test_solve_irr_reports_convergence(self):
        result = solve_irr([-1000, 1100])
        assert result.converged
        assert 1 <= result.iterations <= 100

    def test_non_convergence_returns_best_effort(self, monkeypatch, caplog):
        monkeypatch.setattr(irr_module, "MAX_ITERATIONS", 2)
        with caplog.at_level(logging.WARNING):
            result = solve_irr([-100, 20, 20, 20, 20, 120])
        assert not result.converged
        assert result.iterations == 2
        assert 10 < result.rate < 25
        assert "did not converge" in caplog.text

    def test_single_cash_flow_is_degenerate(self):
        with pytest.raises(NumericDegeneracyError) as exc:
            solve_irr([-1000])
        assert exc.value.quantity == "irr"

    def test_zero_derivative_is_degenerate(self):
        with pytest.raises(NumericDegeneracyError):
            solve_irr([100, 0])

    def test_diverging_series_returns_best_effort(self, caplog):
        """All-positive flows have no IRR; Newton runs off towards overflow."""
        with caplog.at_level(logging.WARNING):
            result = solve_irr([1, 1])
        assert not result.converged
        assert math.isfinite(result.rate)
        assert "did not converge" in caplog.text

    def test_divergence_falls_back_to_bisection(self, monkeypatch):
        monkeypatch.setattr(irr_module, "_newton_step", lambda cash_flows, rate: None)
        cash_flows = [-100, 20, 20, 20, 20, 120]
        result = solve_irr(cash_flows)
        assert result.converged
        assert result.rate == pytest.approx(20.0, abs=0.01)
        assert calculate_npv(cash_flows, result.rate / 100) == pytest.approx(0, abs=0.01)

    def test_bisection_finds_negative_irr(self, monkeypatch):
        monkeypatch.setattr(irr_module, "_newton_step", lambda cash_flows, rate: None)
        # 100 returned as 81 after two years is -10% a year
        result = solve_irr([-100, 0, 81])
        assert result.converged
        assert result.rate == pytest.approx(-10.0, abs=0.01)

    def test_irr_zeroes_npv(self, deal):
        series = project_cash_flows(deal, 3.0, 5.0, 12000, 28443)
        cash_flows = cash_flow_amounts(series)
        rate = calculate_irr(cash_flows)
        assert calculate_npv(cash_flows, rate / 100) == pytest.approx(0, abs=1.0)

    def test_multiple(self):
        assert calculate_multiple([-100, 50, 150]) == pytest.approx(2.0)
        with pytest.raises(NumericDegeneracyError):
            calculate_multiple([10, 20])


class TestNPV:
    """Test NPV calculation."""

    def test_reference_rate_is_eight_percent(self):
        cash_flows = [-1000, 1080]
        assert calculate_reference_npv(cash_flows) == pytest.approx(0.0, abs=1e-9)

    def test_year_zero_is_undiscounted(self):
        assert calculate_reference_npv([-500]) == -500

    def test_npv_is_deterministic(self, simple_deal):
        cash_flows = cash_flow_amounts(project_cash_flows(simple_deal, 0.0, 0.0, 4000, 8000))
        first = calculate_reference_npv(cash_flows)
        second = calculate_reference_npv(cash_flows)
        assert first == second
        expected = -20000 + 8000 / 1.08 + 8000 / 1.08 ** 2 + 28000 / 1.08 ** 3
        assert first == pytest.approx(expected)


class TestPayback:
    """Test payback period calculation."""

    def test_fractional_crossing(self):
        """Cumulative goes from -200 to +300 on a 500 cash flow: 0.4 of a year."""
        result = calculate_payback(-1000, [400, 400, 500])
        assert result.recovered
        assert result.years == pytest.approx(2.4)

    def test_simple_deal_payback(self, simple_deal):
        cash_flows = cash_flow_amounts(project_cash_flows(simple_deal, 0.0, 0.0, 4000, 8000))
        years = calculate_payback_period(cash_flows[0], cash_flows[1:])
        assert years == pytest.approx(2 + 4000 / 28000)

    def test_recovered_exactly_at_end(self):
        result = calculate_payback(-1000, [500, 500])
        assert result.years == pytest.approx(2.0)
        assert result.recovered

    def test_never_recovered_returns_holding_period(self):
        result = calculate_payback(-1000, [100, 100])
        assert result.years == 2.0
        assert not result.recovered

    def test_no_investment(self):
        result = calculate_payback(0, [0, 10])
        assert result.years == 0.0
        assert result.recovered

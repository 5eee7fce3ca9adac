"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from deal_analysis.calculations.deal import DealParameters


@pytest.fixture(scope="session")
def anyio_backend():
    """Backend for async tests."""
    return "asyncio"

@pytest.fixture
def deal_inputs():
    """A conventional 25%-down rental deal as a request payload."""
    return {
        "purchase_price": 500000,
        "down_payment_percent": 25,
        "loan_interest_rate": 6.5,
        "loan_term_years": 30,
        "annual_rental_income": 48000,
        "vacancy_rate": 5,
        "annual_operating_expenses": 12000,
        "annual_property_appreciation": 3,
        "holding_period_years": 10,
    }

@pytest.fixture
def deal(deal_inputs):
    """The same deal as DealParameters."""
    return DealParameters(**deal_inputs)

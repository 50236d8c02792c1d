"""Pytest configuration and fixtures."""

import logging

import pytest

from mivivienda.data_models import ApplicantProfile, LoanInputs, PeriodicCharges
from mivivienda.exceptions import RateUnavailableError


class FailingRateProvider:
    """Exchange-rate provider whose service is down."""

    calls = 0

    def get_buy_rate(self) -> float:
        self.calls += 1
        raise RateUnavailableError("SBS service unavailable")


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo the root handlers installed by the CLI and the web app."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def high_income_profile() -> ApplicantProfile:
    """Household above the income ceiling with no adjustments."""
    return ApplicantProfile(monthly_income=6000)


@pytest.fixture
def base_inputs() -> LoanInputs:
    """150,000 PEN property, 20 % down, 9.5 % TEA over 20 years, no grace."""
    return LoanInputs(
        property_price=150000,
        down_payment=20,
        down_payment_type="percentage",
        rate=9.5,
        rate_type="TEA",
        term_value=20,
        term_unit="years",
    )


@pytest.fixture
def charges() -> PeriodicCharges:
    """Typical monthly insurance and fees."""
    return PeriodicCharges(
        life_insurance_rate=0.05,
        property_insurance_rate=0.3,
        mailing_fee=10,
        admin_fee=5,
        periodic_commission=2,
        frequency_per_year=12,
    )


@pytest.fixture
def failing_provider() -> FailingRateProvider:
    return FailingRateProvider()

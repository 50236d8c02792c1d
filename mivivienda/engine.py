"""Amortization schedule generation.

This module builds the period-by-period schedule for a French (equal
instalment) mortgage with an optional grace period:

* ``none``: the annuity payment is computed up front over the whole term.
* ``partial``: during the grace months only interest is paid; the balance is
  unchanged.
* ``total``: during the grace months nothing but the periodic costs is paid
  and interest is capitalized into the balance.

After a grace period the annuity is computed on the balance reached at that
point over the remaining months, so capitalized interest is amortized too.
Every period also carries life insurance, property insurance and fixed fees.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from .data_models import PeriodicCharges, ScheduleRow
from .utils import add_months


def annuity_payment(principal: float, monthly_rate: float, periods: int) -> float:
    """Level instalment of a French-system loan.

    Computed as ``P * i / (1 - (1 + i) ** -n)`` on the balance left when
    amortization starts. An interest-free loan is split into equal parts.
    """
    if periods <= 0:
        raise ValueError("Number of periods must be positive")
    if monthly_rate == 0:
        return principal / periods
    return principal * monthly_rate / (1 - (1 + monthly_rate) ** -periods)


def insurance_rates(charges: PeriodicCharges) -> tuple:
    """Return the per-period (life, property) insurance rates as decimals.

    The life insurance rate is used as given, per period. The property
    insurance rate is annual and is scaled by the period length in a 360-day
    year (30 days for monthly charges).
    """
    days_per_period = 360 / (charges.frequency_per_year or 12)
    life_rate = charges.life_insurance_rate / 100
    property_rate = (charges.property_insurance_rate / 100) * (days_per_period / 360)
    return life_rate, property_rate


def generate_schedule(
    principal: float,
    monthly_rate: float,
    term_months: int,
    grace_period_type: str,
    grace_period_months: int,
    charges: PeriodicCharges,
    property_price: float,
    start_date: Optional[date] = None,
) -> List[ScheduleRow]:
    """Generate the amortization schedule.

    Parameters
    ----------
    principal: float
        The loan amount disbursed (financed amount plus initial costs).
    monthly_rate: float
        Effective monthly interest rate as a decimal.
    term_months: int
        Total number of periods, grace months included.
    grace_period_type: str
        ``"none"``, ``"partial"`` or ``"total"``.
    grace_period_months: int
        Number of leading grace periods; ignored when the type is ``"none"``.
    charges: PeriodicCharges
        Insurance rates and fixed fees charged every period.
    property_price: float
        Base for the property insurance.
    start_date: date, optional
        Due date of the first instalment. When given, each row is dated.

    Returns
    -------
    List[ScheduleRow]
        Exactly ``term_months`` rows. The inputs are assumed valid; see
        ``LoanInputs.validate``.
    """
    life_rate, property_rate = insurance_rates(charges)
    fixed_fees = charges.fixed_fees
    has_grace = grace_period_type != "none"

    schedule: List[ScheduleRow] = []
    balance = principal
    base_payment: Optional[float] = None
    if not has_grace:
        base_payment = annuity_payment(balance, monthly_rate, term_months)

    for period in range(1, term_months + 1):
        opening_balance = balance
        interest = opening_balance * monthly_rate
        life_insurance = opening_balance * life_rate
        property_insurance = property_price * property_rate
        total_periodic_cost = life_insurance + property_insurance + fixed_fees

        in_grace = has_grace and period <= grace_period_months
        if not in_grace:
            if base_payment is None:
                # First amortizing period after the grace months
                base_payment = annuity_payment(
                    balance, monthly_rate, term_months - grace_period_months
                )
            principal_paid = base_payment - interest
            total_payment = base_payment + total_periodic_cost
            balance = max(0.0, balance - principal_paid)
        elif grace_period_type == "partial":
            principal_paid = 0.0
            total_payment = interest + total_periodic_cost
        else:
            principal_paid = 0.0
            total_payment = total_periodic_cost
            balance = balance + interest

        schedule.append(
            ScheduleRow(
                period=period,
                opening_balance=opening_balance,
                interest=interest,
                principal_paid=principal_paid,
                life_insurance=life_insurance,
                property_insurance=property_insurance,
                fixed_fees=fixed_fees,
                total_periodic_cost=total_periodic_cost,
                total_payment=total_payment,
                closing_balance=balance,
                date=add_months(start_date, period - 1) if start_date else None,
            )
        )

    return schedule

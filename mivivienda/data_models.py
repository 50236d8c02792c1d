"""Data models for the MiVivienda mortgage engine.

This module defines dataclasses for everything that flows through the engine:
the loan terms and applicant profile supplied by the caller, the rows of the
amortization schedule and the aggregated calculation result. All of them are
frozen; every computation builds fresh instances rather than mutating old
ones.

Choice-valued fields are plain strings. The accepted values are listed in the
module-level tuples below so that callers (CLI, web forms) can offer them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from .exceptions import InvalidLoanInputError

CURRENCIES = ("PEN", "USD")
DOWN_PAYMENT_TYPES = ("amount", "percentage")
RATE_TYPES = ("TEA", "TES", "TET", "TEM", "TNA")
CAPITALIZATION_PERIODS = ("annual", "weekly", "quarterly", "monthly")
TERM_UNITS = ("years", "months")
GRACE_PERIOD_TYPES = ("none", "partial", "total")
HOUSING_TYPES = ("Traditional", "Sustainable")
ZONES = ("urban", "rural")
INCOME_TIERS = ("low", "medium", "high")
PAYMENT_FREQUENCIES = (12, 24, 52)


@dataclass(frozen=True)
class InitialCosts:
    """One-off costs charged when the loan is disbursed.

    They are financed together with the loan, so they raise the schedule's
    starting balance.
    """

    notary: float = 0.0
    registration: float = 0.0
    appraisal: float = 0.0
    study_commission: float = 0.0
    activation_commission: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.notary
            + self.registration
            + self.appraisal
            + self.study_commission
            + self.activation_commission
        )


@dataclass(frozen=True)
class PeriodicCharges:
    """Insurance and fees charged with every instalment.

    Attributes
    ----------
    life_insurance_rate: float
        Life (desgravamen) insurance rate in percent. It is applied as a
        per-period rate on the opening balance, not divided by the frequency.
    property_insurance_rate: float
        Property (riesgo) insurance annual rate in percent, applied on the
        property price and scaled to the period length on a 360-day year.
    mailing_fee, admin_fee, periodic_commission: float
        Fixed amounts charged each period.
    frequency_per_year: int
        Number of charge periods per year: 12 (monthly), 24 (fortnightly) or
        52 (weekly).
    """

    life_insurance_rate: float = 0.0
    property_insurance_rate: float = 0.0
    mailing_fee: float = 0.0
    admin_fee: float = 0.0
    periodic_commission: float = 0.0
    frequency_per_year: int = 12

    @property
    def fixed_fees(self) -> float:
        return self.mailing_fee + self.admin_fee + self.periodic_commission


@dataclass(frozen=True)
class ApplicantProfile:
    """Household profile used by the BBP subsidy.

    ``monthly_income`` is the gross monthly household income in soles. When
    it is unknown (``None``) the eligibility check treats the household as
    earning 5,000 and the low-income adjustment does not apply.
    """

    age: Optional[int] = None
    monthly_income: Optional[float] = None
    region: Optional[str] = None  # departamento, e.g. "Puno"
    zone: str = "urban"  # 'urban' or 'rural'
    household_size: int = 0
    minors: int = 0
    declared_income_tier: Optional[str] = None  # 'low', 'medium' or 'high'
    senior: bool = False
    displaced: bool = False
    returnee: bool = False
    disabled: bool = False
    housing_type: str = "Traditional"  # 'Traditional' or 'Sustainable'

    @property
    def special_conditions(self) -> Tuple[bool, bool, bool, bool]:
        return (self.senior, self.displaced, self.returnee, self.disabled)


@dataclass(frozen=True)
class LoanInputs:
    """All terms of a simulated mortgage.

    ``down_payment`` is an amount or a percentage of ``property_price``
    depending on ``down_payment_type``. ``rate`` is in percent and is read
    according to ``rate_type``; a nominal rate (TNA) also needs
    ``capitalization_period``. ``discount_rate`` is the annual opportunity
    cost of capital (COK) used for the VAN, in percent.
    """

    property_price: float
    down_payment: float
    rate: float
    term_value: int
    down_payment_type: str = "amount"
    currency: str = "PEN"
    rate_type: str = "TEA"
    capitalization_period: Optional[str] = None
    term_unit: str = "years"
    grace_period_type: str = "none"
    grace_period_months: int = 0
    initial_costs: InitialCosts = field(default_factory=InitialCosts)
    periodic_charges: PeriodicCharges = field(default_factory=PeriodicCharges)
    discount_rate: float = 5.0
    applicant_profile: ApplicantProfile = field(default_factory=ApplicantProfile)
    start_date: Optional[date] = None

    @property
    def term_months(self) -> int:
        return self.term_value * 12 if self.term_unit == "years" else self.term_value

    @property
    def down_payment_amount(self) -> float:
        if self.down_payment_type == "percentage":
            return self.property_price * self.down_payment / 100
        return self.down_payment

    def validate(self) -> None:
        """Raise ``InvalidLoanInputError`` if the inputs are malformed.

        The rate type itself is checked by the rate converter, which raises
        its own, more specific errors.
        """
        if self.property_price <= 0:
            raise InvalidLoanInputError("Property price must be positive")
        if self.currency not in CURRENCIES:
            raise InvalidLoanInputError(f"Unsupported currency: {self.currency}")
        if self.down_payment_type not in DOWN_PAYMENT_TYPES:
            raise InvalidLoanInputError(f"Unsupported down payment type: {self.down_payment_type}")
        if self.down_payment_type == "percentage":
            if not 0 <= self.down_payment <= 100:
                raise InvalidLoanInputError("Down payment percentage must be between 0 and 100")
        elif not 0 <= self.down_payment <= self.property_price:
            raise InvalidLoanInputError("Down payment must be between 0 and the property price")
        if self.rate < 0:
            raise InvalidLoanInputError("Interest rate cannot be negative")
        if self.discount_rate <= -100:
            raise InvalidLoanInputError("Discount rate (COK) must be greater than -100%")
        if self.term_unit not in TERM_UNITS:
            raise InvalidLoanInputError(f"Unsupported term unit: {self.term_unit}")
        if self.term_value <= 0:
            raise InvalidLoanInputError("Term must be positive")
        if self.grace_period_type not in GRACE_PERIOD_TYPES:
            raise InvalidLoanInputError(f"Unsupported grace period type: {self.grace_period_type}")
        if self.grace_period_months < 0:
            raise InvalidLoanInputError("Grace period months cannot be negative")
        if self.grace_period_type == "none" and self.grace_period_months != 0:
            raise InvalidLoanInputError("Grace period months require a partial or total grace period")
        if self.grace_period_type != "none":
            if self.grace_period_months == 0:
                raise InvalidLoanInputError("A grace period needs at least one month")
            if self.grace_period_months >= self.term_months:
                raise InvalidLoanInputError("Grace period must be shorter than the loan term")
        if min(
            self.initial_costs.notary,
            self.initial_costs.registration,
            self.initial_costs.appraisal,
            self.initial_costs.study_commission,
            self.initial_costs.activation_commission,
        ) < 0:
            raise InvalidLoanInputError("Initial costs cannot be negative")
        charges = self.periodic_charges
        if min(
            charges.life_insurance_rate,
            charges.property_insurance_rate,
            charges.mailing_fee,
            charges.admin_fee,
            charges.periodic_commission,
        ) < 0:
            raise InvalidLoanInputError("Periodic charges cannot be negative")
        if charges.frequency_per_year not in PAYMENT_FREQUENCIES:
            raise InvalidLoanInputError(
                f"Charge frequency must be one of {PAYMENT_FREQUENCIES}; got {charges.frequency_per_year}"
            )
        if self.applicant_profile.housing_type not in HOUSING_TYPES:
            raise InvalidLoanInputError(
                f"Unsupported housing type: {self.applicant_profile.housing_type}"
            )


@dataclass(frozen=True)
class ScheduleRow:
    """One period of the amortization schedule.

    ``total_payment`` is what the borrower pays in the period. Outside a
    grace period it is the base annuity payment plus ``total_periodic_cost``;
    during partial grace it is interest plus periodic costs and during total
    grace only the periodic costs (interest is capitalized into
    ``closing_balance``).
    """

    period: int
    opening_balance: float
    interest: float
    principal_paid: float
    life_insurance: float
    property_insurance: float
    fixed_fees: float
    total_periodic_cost: float
    total_payment: float
    closing_balance: float
    date: Optional[date] = None


@dataclass(frozen=True)
class CalculationResult:
    """Everything derived from one set of ``LoanInputs``.

    Money amounts are in the loan currency. ``tcea``, ``trea`` and ``tir``
    are percentages; ``tcea``/``trea`` are annual while ``tir`` is a monthly
    rate. ``monthly_rate`` is the effective monthly rate as a decimal.
    """

    monthly_payment: float
    total_interest: float
    financed_amount: float
    loan_amount: float
    subsidy_value: float
    down_payment_amount: float
    initial_costs_total: float
    monthly_rate: float
    tcea: float
    trea: float
    van: float
    tir: float
    insurance_life: float
    insurance_risk: float
    periodic_fees: float
    total_periodic_costs: float
    total_amortization: float
    schedule: Tuple[ScheduleRow, ...] = ()

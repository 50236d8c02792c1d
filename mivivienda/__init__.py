"""Mortgage cost estimation for Peru's MiVivienda housing programme.

The package exposes the calculation engine used by the command-line tool and
the web application: rate conversion, the Bono del Buen Pagador (BBP)
subsidy, amortization schedules and the TCEA/TREA/VAN/TIR metrics.
"""

from .data_models import (
    ApplicantProfile,
    CalculationResult,
    InitialCosts,
    LoanInputs,
    PeriodicCharges,
    ScheduleRow,
)
from .metrics import compute

__all__ = [
    "ApplicantProfile",
    "CalculationResult",
    "InitialCosts",
    "LoanInputs",
    "PeriodicCharges",
    "ScheduleRow",
    "compute",
]

__version__ = "0.1.0"

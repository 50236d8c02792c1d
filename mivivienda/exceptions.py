"""Exception hierarchy for the mortgage engine."""


class MiViviendaError(Exception):
    """Base exception for all engine errors."""


class MissingParameterError(MiViviendaError):
    """Raised when a required companion parameter is absent (e.g. TNA without capitalization)."""


class UnsupportedRateTypeError(MiViviendaError):
    """Raised when a rate type or capitalization period is not recognised."""


class RateUnavailableError(MiViviendaError):
    """Raised when the exchange-rate service cannot supply a quote."""


class InvalidLoanInputError(MiViviendaError):
    """Raised when loan inputs are malformed."""


class ConfigurationError(MiViviendaError):
    """Raised when configuration is invalid."""


class SimulationNotFoundError(MiViviendaError):
    """Raised when a stored simulation does not exist for the owner."""


class PrecisionWarning(UserWarning):
    """Diagnostic for a rate search that stopped before reaching tolerance.

    Never raised; the solver logs it and returns its best estimate.
    """

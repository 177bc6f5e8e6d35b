"""Error types raised by the billing engine."""


class BillingError(Exception):
    """Base class for all billing engine errors."""


class ValidationError(BillingError, ValueError):
    """Malformed or out-of-range input.

    Raised before any state is touched, so a failed call leaves every bill
    and payment exactly as it was.
    """


class NotFoundError(BillingError, LookupError):
    """Unknown patient, bill or payment identifier."""

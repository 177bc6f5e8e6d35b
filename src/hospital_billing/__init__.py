"""Hospital billing engine.

Bill creation, line-item accumulation, payment application, status
derivation and overdue detection over an in-memory store.
"""

from .config import BillingConfig, load_billing_config
from .engine import BillingEngine
from .errors import BillingError, NotFoundError, ValidationError
from .identifiers import IdentifierAllocator
from .patients import InMemoryPatientDirectory, PatientDirectory
from .schemas import (
    Bill,
    BillingSummary,
    BillItem,
    BillStatus,
    Patient,
    Payment,
    PaymentStatus,
    ValidationResult,
)

__all__ = [
    "BillingEngine",
    "BillingConfig",
    "load_billing_config",
    "IdentifierAllocator",
    "PatientDirectory",
    "InMemoryPatientDirectory",
    # Errors
    "BillingError",
    "ValidationError",
    "NotFoundError",
    # Schemas
    "Bill",
    "BillItem",
    "BillStatus",
    "BillingSummary",
    "Patient",
    "Payment",
    "PaymentStatus",
    "ValidationResult",
]

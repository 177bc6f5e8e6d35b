"""Ledger consistency checks over bills and their payments."""

from datetime import date

from ..schemas.bill import Bill
from ..schemas.common import ValidationResult, ValidationSeverity
from ..schemas.payment import Payment
from .math_checks import run_math_checks
from .status_checks import run_status_checks

__all__ = [
    "run_all_checks",
    "run_math_checks",
    "run_status_checks",
    "SEVERITY_RANK",
]

# Declaration order of ValidationSeverity is the sort order, most severe first
SEVERITY_RANK: dict[ValidationSeverity, int] = {
    severity: rank for rank, severity in enumerate(ValidationSeverity)
}


def run_all_checks(
    bills: list[Bill],
    payments: dict[str, list[Payment]],
    due_dates: dict[str, date],
    today: date,
) -> list[ValidationResult]:
    """Run all ledger checks and return sorted results.

    Executes 5 deterministic checks across 2 validator modules:
    - Math checks: item totals, paid-to-date, overpayment
    - Status checks: derived status drift, orphaned payments

    Results are sorted by severity (HIGH first, then MEDIUM, LOW, INFO).
    """
    results: list[ValidationResult] = []

    results.extend(run_math_checks(bills, payments))
    results.extend(run_status_checks(bills, payments, due_dates, today))

    results.sort(key=lambda r: SEVERITY_RANK[r.severity])

    return results

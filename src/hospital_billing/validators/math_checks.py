"""Math checks for bill totals and paid-to-date figures."""

from ..schemas.bill import Bill
from ..schemas.common import (
    ZERO,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
)
from ..schemas.payment import Payment


def run_math_checks(
    bills: list[Bill], payments: dict[str, list[Payment]]
) -> list[ValidationResult]:
    """Run all math checks.

    Checks:
    - bill_total_matches_items: Sum of item amounts vs total_amount
    - bill_paid_matches_payments: Sum of COMPLETED payments vs amount_paid
    - bill_overpaid: amount_paid above a positive total_amount
    """
    results: list[ValidationResult] = []

    for bill in bills:
        results.extend(_check_total(bill))
        results.extend(_check_paid(bill, payments.get(bill.bill_id, [])))

    return results


def _check_total(bill: Bill) -> list[ValidationResult]:
    line_sum = sum((item.amount for item in bill.items), ZERO)
    if line_sum == bill.total_amount:
        return []

    return [
        ValidationResult(
            check_name="bill_total_matches_items",
            status=ValidationStatus.ERROR,
            severity=ValidationSeverity.HIGH,
            bill_id=bill.bill_id,
            detail=f"Bill {bill.bill_id}: Line items sum to ${line_sum:.2f} but total_amount is ${bill.total_amount:.2f}",
            discrepancy=abs(line_sum - bill.total_amount),
            recommendation="Rebuild the bill total from its line items",
        )
    ]


def _check_paid(bill: Bill, bill_payments: list[Payment]) -> list[ValidationResult]:
    results: list[ValidationResult] = []

    completed = sum((p.amount for p in bill_payments if p.is_completed), ZERO)
    if completed != bill.amount_paid:
        results.append(
            ValidationResult(
                check_name="bill_paid_matches_payments",
                status=ValidationStatus.MISMATCH,
                severity=ValidationSeverity.HIGH,
                bill_id=bill.bill_id,
                detail=f"Bill {bill.bill_id}: Completed payments total ${completed:.2f} but amount_paid is ${bill.amount_paid:.2f}",
                discrepancy=abs(completed - bill.amount_paid),
                recommendation="Resum completed payments for this bill",
            )
        )

    # Only reachable when items are added after a zero-total bill was discharged
    if bill.total_amount > ZERO and bill.amount_paid > bill.total_amount:
        results.append(
            ValidationResult(
                check_name="bill_overpaid",
                status=ValidationStatus.WARNING,
                severity=ValidationSeverity.MEDIUM,
                bill_id=bill.bill_id,
                detail=f"Bill {bill.bill_id}: Paid ${bill.amount_paid:.2f} against a total of ${bill.total_amount:.2f}",
                discrepancy=bill.amount_paid - bill.total_amount,
                recommendation="Refund the credit balance to the patient",
            )
        )

    return results

"""Status and referential checks across bills and payments."""

from datetime import date

from ..schemas.bill import Bill, derive_status
from ..schemas.common import ValidationResult, ValidationSeverity, ValidationStatus
from ..schemas.payment import Payment


def run_status_checks(
    bills: list[Bill],
    payments: dict[str, list[Payment]],
    due_dates: dict[str, date],
    today: date,
) -> list[ValidationResult]:
    """Run status consistency checks.

    Checks:
    - bill_status_consistent: Stored status vs status derived for today
    - payment_bill_unknown: Payment history filed under an unknown bill
    """
    results: list[ValidationResult] = []
    known_ids = {bill.bill_id for bill in bills}

    for bill in bills:
        threshold = bill.overdue_threshold(due_dates.get(bill.bill_id))
        expected = derive_status(bill.total_amount, bill.amount_paid, threshold, today)
        if bill.status != expected:
            results.append(
                ValidationResult(
                    check_name="bill_status_consistent",
                    status=ValidationStatus.MISMATCH,
                    severity=ValidationSeverity.MEDIUM,
                    bill_id=bill.bill_id,
                    detail=f"Bill {bill.bill_id}: Status is {bill.status.value} but amounts and due date give {expected.value}",
                    recommendation="Refresh the bill status",
                )
            )

    for bill_id, bill_payments in payments.items():
        if bill_id in known_ids:
            continue
        for payment in bill_payments:
            results.append(
                ValidationResult(
                    check_name="payment_bill_unknown",
                    status=ValidationStatus.ERROR,
                    severity=ValidationSeverity.HIGH,
                    bill_id=bill_id,
                    detail=f"Payment {payment.payment_id} references unknown bill {bill_id}",
                    discrepancy=payment.amount,
                    recommendation="Reassign or void the orphaned payment",
                )
            )

    return results

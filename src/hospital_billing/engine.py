"""Billing engine: bill lifecycle, payments and queries.

All state lives on the engine instance. Every public method runs under one
re-entrant lock, so a read-modify-write on a bill (amount paid plus the status
derived from it) is never interleaved with another caller.

Bills and payments handed back to callers are copies taken under the lock,
with bill status derived for the current day. Editing a copy never reaches
the engine's ledger.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from threading import RLock
from typing import Callable, Iterable

from .config import BillingConfig
from .errors import NotFoundError, ValidationError
from .identifiers import IdentifierAllocator
from .patients import PatientDirectory
from .schemas.bill import Bill
from .schemas.common import (
    ZERO,
    BillStatus,
    PaymentStatus,
    ValidationResult,
    ValidationSeverity,
    is_blank,
)
from .schemas.payment import Payment
from .schemas.summary import BillingSummary
from .validators import run_all_checks, run_math_checks

logger = logging.getLogger(__name__)


class BillingEngine:
    """Creates bills, accumulates charges and applies payments."""

    def __init__(
        self,
        patient_directory: PatientDirectory,
        config: BillingConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        bill_ids: IdentifierAllocator | None = None,
        payment_ids: IdentifierAllocator | None = None,
    ):
        self._patients = patient_directory
        self._config = config or BillingConfig()
        self._clock = clock or datetime.now
        self._bill_ids = bill_ids or IdentifierAllocator(self._config.bill_id_prefix)
        self._payment_ids = payment_ids or IdentifierAllocator(
            self._config.payment_id_prefix
        )
        self._lock = RLock()

        self._bills: dict[str, Bill] = {}
        self._payments_by_bill: dict[str, list[Payment]] = {}
        self._payments_by_id: dict[str, Payment] = {}
        # Due dates are kept apart from the bill; overdue-ness is a query concern
        self._due_dates: dict[str, date] = {}

    @property
    def config(self) -> BillingConfig:
        return self._config

    def _today(self) -> date:
        return self._clock().date()

    # --- Bill lifecycle ---
    def create_bill(self, patient_id: str, description: str, due_date: date) -> Bill:
        """Open a bill for a patient.

        The description is recorded as a zero-amount first item so the bill
        always carries a label.
        """
        if is_blank(patient_id):
            raise ValidationError("Patient ID cannot be null or empty")
        if is_blank(description):
            raise ValidationError("Description cannot be null or empty")
        if due_date is None:
            raise ValidationError("Due date cannot be null")

        with self._lock:
            today = self._today()
            if due_date < today:
                raise ValidationError("Due date cannot be in the past")

            patient = self._patients.find_patient_by_id(patient_id)
            if patient is None:
                raise NotFoundError(f"Patient not found: {patient_id}")

            bill_id = self._bill_ids.allocate()
            if bill_id in self._bills:
                raise ValidationError(f"Duplicate bill ID: {bill_id}")

            bill = Bill.create(
                bill_id,
                patient.model_copy(deep=True),
                issue_date=today,
                overdue_after_days=self._config.overdue_after_days,
            )
            bill.add_item(description, ZERO, today=today, due_date=due_date)

            self._bills[bill_id] = bill
            self._due_dates[bill_id] = due_date
            self._payments_by_bill[bill_id] = []
            view = self._snapshot(bill, today)

        logger.info("Created bill %s for patient %s, due %s", bill_id, patient_id, due_date)
        return view

    def add_item_to_bill(
        self, bill_id: str, description: str, amount: Decimal | int | float | str
    ) -> Bill:
        """Append a charge to an existing bill."""
        with self._lock:
            bill = self._require_bill(bill_id)
            today = self._today()
            bill.add_item(
                description,
                amount,
                today=today,
                due_date=self._due_dates.get(bill_id),
            )
            view = self._snapshot(bill, today)

        logger.debug(
            "Added item %r to bill %s, total now %s", description, bill_id, view.total_amount
        )
        return view

    def process_payment(
        self, bill_id: str, amount: Decimal | int | float | str, payment_method: str
    ) -> Payment:
        """Record a completed payment and re-derive the bill's status.

        Payments that would push a bill with a positive total past its balance
        are rejected. A bill with no charges yet is discharged by any positive
        payment.
        """
        with self._lock:
            bill = self._require_bill(bill_id)
            value = bill.check_payment(amount)
            if is_blank(payment_method):
                raise ValidationError("Payment method cannot be null or empty")

            payment = Payment.create(
                self._payment_ids.allocate(),
                bill_id,
                value,
                payment_method,
                payment_datetime=self._clock(),
            )
            self._payments_by_bill[bill_id].append(payment)
            self._payments_by_id[payment.payment_id] = payment
            self._resettle(bill)
            status = bill.status

        logger.info(
            "Payment %s of %s via %s on bill %s, status %s",
            payment.payment_id,
            value,
            payment_method,
            bill_id,
            status.value,
        )
        return payment.model_copy()

    def mark_payment_failed(self, payment_id: str) -> Payment:
        """Mark a payment as failed so it stops counting towards its bill."""
        with self._lock:
            payment = self._require_payment(payment_id)
            payment.mark_as_failed()
            self._resettle(self._bills[payment.bill_id])
            view = payment.model_copy()

        logger.warning("Payment %s on bill %s failed", payment_id, payment.bill_id)
        return view

    def refund_payment(self, payment_id: str) -> Payment:
        """Refund a completed payment.

        The refunded amount stops counting towards the bill, so a PAID bill
        drops back to PARTIAL, UNPAID or OVERDUE.
        """
        with self._lock:
            payment = self._require_payment(payment_id)
            payment.mark_as_refunded()
            bill = self._bills[payment.bill_id]
            self._resettle(bill)
            status = bill.status
            view = payment.model_copy()

        logger.info(
            "Refunded payment %s of %s on bill %s, status %s",
            payment_id,
            payment.amount,
            payment.bill_id,
            status.value,
        )
        return view

    # --- Queries ---

    def find_bill_by_id(self, bill_id: str) -> Bill | None:
        if is_blank(bill_id):
            raise ValidationError("Bill ID cannot be null or empty")
        with self._lock:
            bill = self._bills.get(bill_id)
            return None if bill is None else self._snapshot(bill)

    def find_bills_by_patient_id(self, patient_id: str) -> list[Bill]:
        if is_blank(patient_id):
            raise ValidationError("Patient ID cannot be null or empty")
        with self._lock:
            today = self._today()
            return [
                self._snapshot(b, today)
                for b in self._bills.values()
                if b.patient.patient_id == patient_id
            ]

    def get_all_bills(self) -> list[Bill]:
        with self._lock:
            today = self._today()
            return [self._snapshot(b, today) for b in self._bills.values()]

    def get_bills_by_status(self, paid: bool) -> list[Bill]:
        """PAID bills when ``paid`` is true, otherwise every non-PAID bill."""
        with self._lock:
            today = self._refresh_all()
            return [self._snapshot(b, today) for b in self._bills.values() if b.is_paid == paid]

    def filter_bills_by_status(self, status: BillStatus) -> list[Bill]:
        with self._lock:
            today = self._refresh_all()
            return [
                self._snapshot(b, today) for b in self._bills.values() if b.status == status
            ]

    def get_overdue_bills(self) -> list[Bill]:
        """Non-PAID bills whose tracked due date is before today."""
        with self._lock:
            today = self._refresh_all()
            return [
                self._snapshot(b, today)
                for b in self._bills.values()
                if not b.is_paid
                and b.bill_id in self._due_dates
                and self._due_dates[b.bill_id] < today
            ]

    def get_due_date(self, bill_id: str) -> date:
        with self._lock:
            self._require_bill(bill_id)
            return self._due_dates[bill_id]

    def get_payments_for_bill(self, bill_id: str) -> list[Payment]:
        with self._lock:
            self._require_bill(bill_id)
            return [p.model_copy() for p in self._payments_by_bill[bill_id]]

    def find_payment_by_id(self, payment_id: str) -> Payment | None:
        if is_blank(payment_id):
            raise ValidationError("Payment ID cannot be null or empty")
        with self._lock:
            payment = self._payments_by_id.get(payment_id)
            return None if payment is None else payment.model_copy()

    # --- Reporting ---

    def get_billing_summary(self) -> BillingSummary:
        """Aggregate totals and status counts across all bills."""
        with self._lock:
            self._refresh_all()
            summary = BillingSummary(bill_count=len(self._bills))
            for bill in self._bills.values():
                summary.total_billed += bill.total_amount
                summary.total_collected += bill.amount_paid
                summary.total_outstanding += bill.remaining_balance
                if bill.status == BillStatus.PAID:
                    summary.paid_count += 1
                elif bill.status == BillStatus.PARTIAL:
                    summary.partial_count += 1
                elif bill.status == BillStatus.OVERDUE:
                    summary.overdue_count += 1
                    summary.total_overdue += bill.remaining_balance
                else:
                    summary.unpaid_count += 1
            return summary

    def run_ledger_checks(self) -> list[ValidationResult]:
        """Check stored totals, paid amounts and statuses against their sources.

        Statuses are checked as stored, without refreshing first, so bills
        whose status has not been re-derived since the due date passed are
        reported.
        """
        with self._lock:
            return run_all_checks(
                list(self._bills.values()),
                {k: list(v) for k, v in self._payments_by_bill.items()},
                dict(self._due_dates),
                self._today(),
            )

    # --- Store management ---

    def load_bills(
        self,
        bills: Iterable[Bill],
        due_dates: dict[str, date] | None = None,
        payments: Iterable[Payment] = (),
    ) -> None:
        """Seed the engine with bills restored from an external store.

        Every bill must reconcile before anything is stored: its total must
        equal the sum of its items and its ``amount_paid`` must equal the sum
        of its restored COMPLETED payments. A bill paid ahead of its total is
        accepted; ``run_ledger_checks`` reports the credit.

        Bills without a due date get the issue date plus the overdue window.
        The engine keeps its own copies of what it loads, and both allocators
        are advanced past every loaded id.
        """
        due_dates = due_dates or {}
        incoming = [bill.model_copy(deep=True) for bill in bills]
        restored = [payment.model_copy() for payment in payments]

        with self._lock:
            seen: dict[str, list[Payment]] = {}
            for bill in incoming:
                if bill.bill_id in self._bills or bill.bill_id in seen:
                    raise ValidationError(f"Duplicate bill ID: {bill.bill_id}")
                seen[bill.bill_id] = []
            seen_payments: set[str] = set()
            for payment in restored:
                if payment.bill_id not in seen:
                    raise NotFoundError(
                        f"Bill not found for payment {payment.payment_id}: {payment.bill_id}"
                    )
                if (
                    payment.payment_id in self._payments_by_id
                    or payment.payment_id in seen_payments
                ):
                    raise ValidationError(f"Duplicate payment ID: {payment.payment_id}")
                seen_payments.add(payment.payment_id)
                seen[payment.bill_id].append(payment)

            unreconciled = [
                r
                for r in run_math_checks(incoming, seen)
                if r.severity == ValidationSeverity.HIGH
            ]
            if unreconciled:
                raise ValidationError(
                    "Restored bills do not reconcile: "
                    + "; ".join(r.detail for r in unreconciled)
                )

            today = self._today()
            for bill in incoming:
                self._bills[bill.bill_id] = bill
                self._due_dates[bill.bill_id] = due_dates.get(
                    bill.bill_id, bill.overdue_threshold()
                )
                self._payments_by_bill[bill.bill_id] = seen[bill.bill_id]
                self._bill_ids.observe(bill.bill_id)
                bill.refresh_status(today, self._due_dates[bill.bill_id])
            for payment in restored:
                self._payments_by_id[payment.payment_id] = payment
                self._payment_ids.observe(payment.payment_id)

        logger.info("Loaded %d bills and %d payments", len(incoming), len(restored))

    def reset(self) -> None:
        """Drop every bill, payment and due date."""
        with self._lock:
            self._bills.clear()
            self._payments_by_bill.clear()
            self._payments_by_id.clear()
            self._due_dates.clear()

    # --- Internals ---

    def _require_bill(self, bill_id: str) -> Bill:
        if is_blank(bill_id):
            raise ValidationError("Bill ID cannot be null or empty")
        bill = self._bills.get(bill_id)
        if bill is None:
            raise NotFoundError(f"Bill not found: {bill_id}")
        return bill

    def _require_payment(self, payment_id: str) -> Payment:
        if is_blank(payment_id):
            raise ValidationError("Payment ID cannot be null or empty")
        payment = self._payments_by_id.get(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment not found: {payment_id}")
        return payment

    def _snapshot(self, bill: Bill, today: date | None = None) -> Bill:
        bill.refresh_status(today or self._today(), self._due_dates.get(bill.bill_id))
        return bill.model_copy(deep=True)

    def _resettle(self, bill: Bill) -> None:
        # Full resum so failed or refunded payments drop out
        payments = self._payments_by_bill[bill.bill_id]
        paid = sum((p.amount for p in payments if p.status == PaymentStatus.COMPLETED), ZERO)
        bill.settle(paid, self._today(), self._due_dates.get(bill.bill_id))

    def _refresh_all(self) -> date:
        today = self._today()
        for bill in self._bills.values():
            bill.refresh_status(today, self._due_dates.get(bill.bill_id))
        return today

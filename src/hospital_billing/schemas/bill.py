"""Bill aggregate: line items, derived totals and derived status."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, computed_field

from ..errors import ValidationError
from .common import ZERO, BillStatus, Patient, is_blank, to_money

DEFAULT_OVERDUE_AFTER_DAYS = 30


def derive_status(
    total_amount: Decimal,
    amount_paid: Decimal,
    overdue_threshold: date,
    today: date,
) -> BillStatus:
    """Compute a bill's status from its amounts and dates.

    A zero-total bill counts as PAID once anything has been paid against it,
    since there is no balance to compare with until items exist.
    """
    if amount_paid > ZERO and amount_paid >= total_amount:
        return BillStatus.PAID
    if amount_paid > ZERO:
        return BillStatus.PARTIAL
    if overdue_threshold < today:
        return BillStatus.OVERDUE
    return BillStatus.UNPAID


class BillItem(BaseModel):
    """Single charge line on a bill. Corrections are offsetting items."""

    model_config = ConfigDict(frozen=True)

    description: str
    amount: Decimal


class Bill(BaseModel):
    """Charges and payments for one patient encounter.

    Items, totals, paid amount and status are read-only properties. They only
    change through ``add_item``, ``apply_payment``, ``settle`` and
    ``refresh_status``, each of which resums and re-derives as it goes.
    """

    bill_id: str = Field(frozen=True)
    patient: Patient = Field(frozen=True)
    issue_date: date = Field(frozen=True)
    overdue_after_days: int = Field(default=DEFAULT_OVERDUE_AFTER_DAYS, ge=0, frozen=True)

    _items: tuple[BillItem, ...] = PrivateAttr(default=())
    _total_amount: Decimal = PrivateAttr(default=ZERO)
    _amount_paid: Decimal = PrivateAttr(default=ZERO)
    _status: BillStatus = PrivateAttr(default=BillStatus.UNPAID)
    _date_paid: date | None = PrivateAttr(default=None)

    @classmethod
    def create(
        cls,
        bill_id: str,
        patient: Patient | None,
        issue_date: date | None = None,
        overdue_after_days: int = DEFAULT_OVERDUE_AFTER_DAYS,
    ) -> "Bill":
        """Start an empty UNPAID bill."""
        if is_blank(bill_id):
            raise ValidationError("Bill ID cannot be null or empty")
        if patient is None:
            raise ValidationError("Patient cannot be null")
        return cls(
            bill_id=bill_id,
            patient=patient,
            issue_date=issue_date or date.today(),
            overdue_after_days=overdue_after_days,
        )

    @classmethod
    def restore(
        cls,
        bill_id: str,
        patient: Patient | None,
        issue_date: date,
        items: Iterable[BillItem] = (),
        amount_paid: Decimal | int | float | str = ZERO,
        date_paid: date | None = None,
        status: BillStatus | None = None,
        total_amount: Decimal | int | float | str | None = None,
        overdue_after_days: int = DEFAULT_OVERDUE_AFTER_DAYS,
    ) -> "Bill":
        """Rebuild a bill from figures held in an external store.

        Stored ``total_amount`` and ``status`` are kept as given so the ledger
        checks can audit them. When omitted, the total is the resum of the
        items and the status is derived for the issue date.
        """
        bill = cls.create(bill_id, patient, issue_date, overdue_after_days)
        bill._items = tuple(items)
        bill._total_amount = (
            sum((i.amount for i in bill._items), ZERO)
            if total_amount is None
            else to_money(total_amount, "Total amount")
        )
        bill._amount_paid = to_money(amount_paid, "Amount paid")
        if bill._amount_paid < ZERO:
            raise ValidationError("Amount paid cannot be negative")
        bill._date_paid = date_paid
        if status is None:
            bill.refresh_status(issue_date)
        else:
            bill._status = status
        return bill

    @computed_field
    @property
    def items(self) -> tuple[BillItem, ...]:
        return self._items

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return self._total_amount

    @computed_field
    @property
    def amount_paid(self) -> Decimal:
        return self._amount_paid

    @computed_field
    @property
    def status(self) -> BillStatus:
        return self._status

    @computed_field
    @property
    def date_paid(self) -> date | None:
        return self._date_paid

    @property
    def remaining_balance(self) -> Decimal:
        return max(self._total_amount - self._amount_paid, ZERO)

    @property
    def is_paid(self) -> bool:
        return self._status == BillStatus.PAID

    def overdue_threshold(self, due_date: date | None = None) -> date:
        """Explicit due date, else the issue date plus the overdue window."""
        if due_date is not None:
            return due_date
        return self.issue_date + timedelta(days=self.overdue_after_days)

    def add_item(
        self,
        description: str,
        amount: Decimal | int | float | str,
        today: date | None = None,
        due_date: date | None = None,
    ) -> BillItem:
        """Append a charge, resum the total and re-derive status."""
        if is_blank(description):
            raise ValidationError("Description cannot be null or empty")
        value = to_money(amount)
        if value < ZERO:
            raise ValidationError("Amount cannot be negative")

        item = BillItem(description=description, amount=value)
        self._items = self._items + (item,)
        self._total_amount = sum((i.amount for i in self._items), ZERO)
        self.refresh_status(today, due_date)
        return item

    def check_payment(self, amount: Decimal | int | float | str) -> Decimal:
        """Validate a prospective payment and return it as money.

        Overpayment is rejected once the bill has a positive total. Any
        positive payment is accepted on a zero-total bill.
        """
        value = to_money(amount, "Payment amount")
        if value <= ZERO:
            raise ValidationError("Payment amount must be greater than zero")
        if self._total_amount > ZERO and self._amount_paid + value > self._total_amount:
            raise ValidationError(
                f"Payment amount {value} exceeds remaining balance {self.remaining_balance}"
            )
        return value

    def apply_payment(
        self,
        amount: Decimal | int | float | str,
        today: date | None = None,
        due_date: date | None = None,
    ) -> None:
        """Increase ``amount_paid`` by a validated payment."""
        value = self.check_payment(amount)
        self.settle(self._amount_paid + value, today, due_date)

    def settle(
        self,
        amount_paid: Decimal | int | float | str,
        today: date | None = None,
        due_date: date | None = None,
    ) -> None:
        """Replace ``amount_paid`` with a resummed figure and re-derive status."""
        value = to_money(amount_paid, "Amount paid")
        if value < ZERO:
            raise ValidationError("Amount paid cannot be negative")
        self._amount_paid = value
        self.refresh_status(today, due_date)

    def refresh_status(
        self, today: date | None = None, due_date: date | None = None
    ) -> BillStatus:
        today = today or date.today()
        status = derive_status(
            self._total_amount,
            self._amount_paid,
            self.overdue_threshold(due_date),
            today,
        )
        if status == BillStatus.PAID:
            if self._date_paid is None:
                self._date_paid = today
        else:
            self._date_paid = None
        self._status = status
        return status

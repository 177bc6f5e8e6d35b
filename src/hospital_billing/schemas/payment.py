"""Payment record schema."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, PrivateAttr, computed_field

from ..errors import ValidationError
from .common import ZERO, PaymentStatus, is_blank, to_money

# Payments only move forward; FAILED and REFUNDED are terminal.
# COMPLETED -> FAILED covers a settled payment that later bounces.
ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.FAILED, PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


class Payment(BaseModel):
    """A single payment transaction against a bill.

    ``status`` is read-only and only moves along ``ALLOWED_TRANSITIONS``.
    """

    payment_id: str = Field(frozen=True)
    bill_id: str = Field(frozen=True)
    amount: Decimal = Field(frozen=True)
    payment_method: str = Field(frozen=True)
    payment_datetime: datetime = Field(frozen=True)

    _status: PaymentStatus = PrivateAttr(default=PaymentStatus.COMPLETED)

    @classmethod
    def create(
        cls,
        payment_id: str,
        bill_id: str,
        amount: Decimal | int | float | str,
        payment_method: str,
        payment_datetime: datetime | None = None,
        status: PaymentStatus = PaymentStatus.COMPLETED,
    ) -> "Payment":
        if is_blank(payment_id):
            raise ValidationError("Payment ID cannot be null or empty")
        if is_blank(bill_id):
            raise ValidationError("Bill ID cannot be null or empty")
        value = to_money(amount, "Payment amount")
        if value <= ZERO:
            raise ValidationError("Payment amount must be greater than zero")
        if is_blank(payment_method):
            raise ValidationError("Payment method cannot be null or empty")

        payment = cls(
            payment_id=payment_id,
            bill_id=bill_id,
            amount=value,
            payment_method=payment_method,
            payment_datetime=payment_datetime or datetime.now(),
        )
        payment._status = status
        return payment

    @computed_field
    @property
    def status(self) -> PaymentStatus:
        return self._status

    @property
    def is_completed(self) -> bool:
        return self._status == PaymentStatus.COMPLETED

    def can_transition_to(self, status: PaymentStatus) -> bool:
        return status in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, status: PaymentStatus) -> None:
        if not self.can_transition_to(status):
            raise ValidationError(
                f"Payment {self.payment_id} cannot move from {self.status.value} to {status.value}"
            )
        self._status = status

    def mark_as_completed(self) -> None:
        self.transition_to(PaymentStatus.COMPLETED)

    def mark_as_failed(self) -> None:
        self.transition_to(PaymentStatus.FAILED)

    def mark_as_refunded(self) -> None:
        self.transition_to(PaymentStatus.REFUNDED)

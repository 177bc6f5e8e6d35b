"""Aggregate reporting schemas."""

from decimal import Decimal

from pydantic import BaseModel

from .common import ZERO


class BillingSummary(BaseModel):
    """Financial totals across every bill held by an engine."""

    bill_count: int = 0
    total_billed: Decimal = ZERO
    total_collected: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    total_overdue: Decimal = ZERO
    paid_count: int = 0
    partial_count: int = 0
    unpaid_count: int = 0
    overdue_count: int = 0

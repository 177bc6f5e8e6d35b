"""Billing engine settings loaded from the unified config file."""

import json
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("configs") / "config.json"
CONFIG_SECTION = "billing"


class BillingConfig(BaseModel):
    """Settings for identifier prefixes, overdue window and currency."""

    bill_id_prefix: str = Field(default="B", min_length=1)
    payment_id_prefix: str = Field(default="PMT", min_length=1)
    # Fallback overdue window used when a bill has no explicit due date
    overdue_after_days: int = Field(default=30, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)


def load_billing_config(path: Path | str | None = None) -> BillingConfig:
    """Load the ``billing`` section of the config file.

    A missing file (or a file without a ``billing`` section) yields the
    defaults. Invalid values raise ``pydantic.ValidationError``.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return BillingConfig()

    raw = json.loads(config_path.read_text())
    return BillingConfig.model_validate(raw.get(CONFIG_SECTION, {}))

"""Billing engine configuration.

Settings live in ``configs/config.json`` under the ``billing`` key:

    {
      "billing": {
        "settings": {"copay_per_line_item": true, "payment_terms_days": 30},
        "aging": {"current_max_days": 30}
      }
    }

Missing files, sections and fields fall back to the defaults below.
"""

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("configs") / "config.json"


class DeductibleMode(str, Enum):
    """How the deductible is applied across the lines of one invoice."""

    # deductible_met is read once and shared by every line
    SNAPSHOT = "snapshot"
    # each line consumes deductible before the next line is allocated
    SEQUENTIAL = "sequential"


class BillingSettings(BaseModel):
    """Invoice building and numbering settings."""

    copay_per_line_item: bool = True
    deductible_mode: DeductibleMode = DeductibleMode.SNAPSHOT
    payment_terms_days: int = Field(default=30, ge=0)
    invoice_number_prefix: str = "INV"
    invoice_number_digits: int = Field(default=6, ge=6)
    max_number_attempts: int = Field(default=5, ge=1)
    currency: str = "USD"


class AgingSettings(BaseModel):
    """Upper bounds (inclusive, in days past due) of the aging buckets."""

    current_max_days: int = Field(default=30, ge=0)
    days_31_to_60_max_days: int = 60
    days_61_to_90_max_days: int = 90

    @model_validator(mode="after")
    def _bounds_ascending(self) -> "AgingSettings":
        if not (
            self.current_max_days
            < self.days_31_to_60_max_days
            < self.days_61_to_90_max_days
        ):
            raise ValueError("aging bucket bounds must be strictly ascending")
        return self


class BillingConfig(BaseModel):
    """Top-level billing configuration."""

    settings: BillingSettings = BillingSettings()
    aging: AgingSettings = AgingSettings()


def load_config(
    config_file: str | Path = DEFAULT_CONFIG_FILE,
    path_selector: str = "billing",
) -> BillingConfig:
    """Load billing configuration from a JSON config file.

    ``path_selector`` picks the section of the file holding the billing
    config. A missing file or section yields the defaults.
    """
    path = Path(config_file)
    if not path.exists():
        logger.debug("Config file %s not found, using defaults", path)
        return BillingConfig()

    raw = json.loads(path.read_text())
    section = raw.get(path_selector)
    if section is None:
        logger.debug("No %r section in %s, using defaults", path_selector, path)
        return BillingConfig()

    return BillingConfig.model_validate(section)

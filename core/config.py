"""Store configuration."""

import os
from typing import Mapping

from pydantic import BaseModel, Field, field_validator

from utils.timezone import get_zone


class PosConfig(BaseModel):
    """
    Point-of-sale configuration.

    Every field can be overridden with a POS_<FIELD NAME> environment
    variable, e.g. POS_SHOP_NAME or POS_INVOICE_NUMBER_PREFIX.
    """

    # Invoice numbering
    invoice_number_prefix: str = Field(
        default="A",
        description="Prefix of the suggested next invoice number",
        max_length=10,
    )
    invoice_number_width: int = Field(
        default=3,
        description="Zero-padded width of the numeric part",
        ge=1,
        le=10,
    )

    # Receipt
    shop_name: str = Field(
        default="POS",
        description="Shop name printed at the top of receipts",
    )
    currency_label: str = Field(
        default="Rs.",
        description="Label printed before amounts on receipts",
    )
    timezone: str = Field(
        default="UTC",
        description="IANA timezone receipts and dates are shown in",
    )

    # Dashboard
    recent_invoice_limit: int = Field(
        default=5,
        description="How many invoices the dashboard summary lists",
        ge=1,
        le=100,
    )

    # Notifications
    notification_buffer_size: int = Field(
        default=50,
        description="Pending notifications kept before the oldest are dropped",
        ge=1,
        le=1000,
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        get_zone(v)
        return v

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_config(environ: Mapping[str, str] | None = None) -> PosConfig:
    """
    Build config from POS_* environment variables.

    Unset variables keep their defaults. Invalid values raise pydantic's
    ValidationError at startup.
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for name in PosConfig.model_fields:
        value = environ.get(f"POS_{name.upper()}")
        if value is not None:
            overrides[name] = value
    return PosConfig.model_validate(overrides)

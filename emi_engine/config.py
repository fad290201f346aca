"""Configuration management for emi-engine."""

from dataclasses import dataclass, field
from pathlib import Path

from emi_engine.exceptions import ConfigurationError


@dataclass
class NotificationConfig:
    """Notification generation settings."""

    old_notification_days: int = 30
    preserve_read_state: bool = False


@dataclass
class PaymentConfig:
    """Payment and rescheduling settings."""

    currency_symbol: str = "₹"
    frequent_due_date_changes: int = 3  # per installment and per plan
    review_due_date_changes: int = 5  # plan-wide, flags for manual review

    def __post_init__(self) -> None:
        if self.frequent_due_date_changes < 1:
            raise ConfigurationError("frequent_due_date_changes must be >= 1")
        if self.review_due_date_changes < self.frequent_due_date_changes:
            raise ConfigurationError(
                "review_due_date_changes must be >= frequent_due_date_changes"
            )


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class ScenarioConfig:
    """Configuration for the sample portfolio scenario."""

    name: str
    num_invoices: int = 50
    delivery_rate: float = 0.30
    good_payer_rate: float = 0.60
    partial_payer_rate: float = 0.15
    over_payer_rate: float = 0.10
    defaulter_rate: float = 0.15


@dataclass
class EngineConfig:
    """Main configuration for emi-engine."""

    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    payments: PaymentConfig = field(default_factory=PaymentConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    scenario: ScenarioConfig | None = None
    business_unit: str = "default"
    recipient_id: str | None = None
    seed: int | None = None
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        import os

        try:
            notifications = NotificationConfig(
                old_notification_days=int(os.getenv("EMI_OLD_NOTIFICATION_DAYS", "30")),
                preserve_read_state=os.getenv("EMI_PRESERVE_READ_STATE", "false").lower() == "true",
            )
            payments = PaymentConfig(
                currency_symbol=os.getenv("EMI_CURRENCY_SYMBOL", "₹"),
                frequent_due_date_changes=int(os.getenv("EMI_FREQUENT_DUE_DATE_CHANGES", "3")),
                review_due_date_changes=int(os.getenv("EMI_REVIEW_DUE_DATE_CHANGES", "5")),
            )
            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        return cls(
            notifications=notifications,
            payments=payments,
            output=output,
            business_unit=os.getenv("EMI_BUSINESS_UNIT", "default"),
            recipient_id=os.getenv("EMI_RECIPIENT_ID") or None,
            seed=seed,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )

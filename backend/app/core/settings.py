import os
from dataclasses import dataclass


DUE_DATE_POLICIES = ("upon_receipt", "days_after")


@dataclass(frozen=True)
class BillingConfig:
    """Facility billing defaults handed to the invoice builder and statements."""

    invoice_prefix: str = "DD"
    due_date_policy: str = "days_after"
    due_date_days: int = 7
    facility_name: str = "Daycare"
    facility_address: str | None = None
    footer_lines: tuple[str, ...] = ()


class Settings:
    def __init__(self):
        self.app_name = "Daycare Billing"
        self.api_version = "1.0.0"
        self.environment = os.getenv("DAYCARE_ENVIRONMENT", "development")
        self.secret_key = os.getenv("DAYCARE_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("DAYCARE_ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("DAYCARE_DATABASE_URL", "sqlite:///./daycare_billing.db")
        self.log_level = os.getenv("DAYCARE_LOG_LEVEL", "INFO")

        self.invoice_prefix = os.getenv("DAYCARE_INVOICE_PREFIX", "DD")
        self.due_date_policy = os.getenv("DAYCARE_DUE_DATE_POLICY", "days_after")
        self.due_date_days = int(os.getenv("DAYCARE_DUE_DATE_DAYS", "7"))
        self.facility_name = os.getenv("DAYCARE_FACILITY_NAME", "Daycare")
        self.facility_address = os.getenv("DAYCARE_FACILITY_ADDRESS")
        footer = os.getenv("DAYCARE_INVOICE_FOOTER", "")
        self.invoice_footer_lines = tuple(line.strip() for line in footer.split("|") if line.strip())

    def billing_config(self) -> BillingConfig:
        if self.due_date_policy not in DUE_DATE_POLICIES:
            raise ValueError(f"Unknown due date policy: {self.due_date_policy}")
        return BillingConfig(
            invoice_prefix=self.invoice_prefix,
            due_date_policy=self.due_date_policy,
            due_date_days=self.due_date_days,
            facility_name=self.facility_name,
            facility_address=self.facility_address,
            footer_lines=self.invoice_footer_lines,
        )


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def get_billing_config() -> BillingConfig:
    return get_settings().billing_config()

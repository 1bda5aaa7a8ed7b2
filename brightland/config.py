from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CRON_SECRET = "default-secret-change-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    app_version: str = "2026-10-19.v1"
    database_url: str = "sqlite:///./brightland.db"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|proxy
    dev_header_user_email: str = "X-User-Email"
    dev_header_user_name: str = "X-User-Name"
    dev_header_user_role: str = "X-User-Role"
    dev_header_user_type: str = "X-User-Type"

    # ---- Maintenance requests ----
    grace_period_days: int = 14
    invoice_due_days: int = 30
    cron_secret: str = DEFAULT_CRON_SECRET

    # ---- Payment gateway (Stripe) ----
    stripe_secret_key: str | None = None
    stripe_api_version: str | None = None
    billing_currency: str = "usd"

    # ---- Notifications (Resend) ----
    resend_api_key: str | None = None
    resend_base_url: str = "https://api.resend.com"
    notify_from_email: str = "billing@brightlandproperties.com"
    admin_notify_email: str = "admin@brightlandproperties.com"
    notify_timeout_seconds: float = 10.0

    # ---- Celery ----
    celery_broker_url: str | None = None
    celery_result_backend: str | None = None
    purge_schedule_hours: int = 24

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            if (self.auth_mode or "").strip().lower() == "dev":
                raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")

            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")

            if self.cron_secret == DEFAULT_CRON_SECRET:
                raise ValueError("SECURITY: cron_secret must be set in prod")


settings = Settings()

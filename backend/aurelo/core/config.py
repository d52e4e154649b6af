# Central place for all configurable settings. We use Pydantic's
# BaseSettings so values can be read from env vars or a .env file.
# Plan tiers, limits and features are compiled in and never read from here.

import json
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def safe_json_loads(value):
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Core DB connection string, like sqlite:///./aurelo.db or a Postgres URL.
    DATABASE_URL: str

    # Toggle SQLAlchemy echo logs. Useful for debugging queries locally.
    DB_ECHO: bool = False

    # Workspace selection: header carrying the active workspace id.
    # Without it the request gets Starter-only, read-only entitlements.
    WORKSPACE_HEADER_NAME: str = "X-Workspace-ID"
    REQUIRE_WORKSPACE_HEADER: bool = False

    # Lets clients switch plans directly through the entitlements API. Off
    # everywhere except local and demo setups; billing events own the plan.
    ALLOW_PLAN_OVERRIDE: bool = False

    # Structured logging output.
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Origins allowed to call the API from the single-page app.
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173"]
    )

    # Stripe billing. Price ids map paid tiers to checkout prices.
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRICE_ID_PRO: Optional[str] = None
    STRIPE_PRICE_ID_STUDIO: Optional[str] = None

    # Invoice numbers are issued as <prefix><n>, starting at INVOICE_NUMBER_START.
    INVOICE_NUMBER_PREFIX: str = "INV-"
    INVOICE_NUMBER_START: int = Field(default=1001, gt=0)

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_list_values(cls, value):
        if isinstance(value, str):
            decoded = safe_json_loads(value)
            if isinstance(decoded, list):
                return decoded
            parts = [p.strip() for p in value.split(",") if p.strip()]
            return parts
        return value


# Instantiate a single settings object for app-wide import.
# Any module can just `from aurelo.core.config import settings`.
settings = Settings()

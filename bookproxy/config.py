"""
Process-wide configuration.
Loaded once from the environment, immutable afterwards.
"""
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

# Pick up a local .env if present; real environment variables win
load_dotenv()


@dataclass(frozen=True)
class Config:
    # Amazon Product Advertising API (signed pipeline)
    PAAPI_ACCESS_KEY: str = field(default="", repr=False)
    PAAPI_SECRET_KEY: str = field(default="", repr=False)
    PAAPI_PARTNER_TAG: str = ""
    PAAPI_REGION: str = "us-east-1"
    PAAPI_HOST: str = "webservices.amazon.co.jp"

    # Rakuten Books API (orchestration pipeline)
    RAKUTEN_APPLICATION_ID: str = field(default="", repr=False)

    # Upstream call deadline in seconds
    REQUEST_TIMEOUT: float = 15.0

    # Error tracking
    SENTRY_DSN: str = field(default="", repr=False)
    ENVIRONMENT: str = "development"

    # Application settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a Config from environment variables (or any mapping)."""
        env = os.environ if environ is None else environ
        return cls(
            PAAPI_ACCESS_KEY=env.get("PAAPI_ACCESS_KEY", "").strip(),
            PAAPI_SECRET_KEY=env.get("PAAPI_SECRET_KEY", "").strip(),
            PAAPI_PARTNER_TAG=env.get("PAAPI_PARTNER_TAG", "").strip(),
            PAAPI_REGION=env.get("PAAPI_REGION", "").strip() or "us-east-1",
            PAAPI_HOST=env.get("PAAPI_HOST", "").strip() or "webservices.amazon.co.jp",
            RAKUTEN_APPLICATION_ID=env.get("RAKUTEN_APPLICATION_ID", "").strip(),
            REQUEST_TIMEOUT=float(env.get("REQUEST_TIMEOUT", "15")),
            SENTRY_DSN=env.get("SENTRY_DSN", "").strip(),
            ENVIRONMENT=env.get("ENVIRONMENT", "development"),
            DEBUG=env.get("DEBUG", "false").lower() == "true",
            LOG_LEVEL=env.get("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def has_paapi_credentials(self) -> bool:
        return bool(self.PAAPI_ACCESS_KEY and self.PAAPI_SECRET_KEY and self.PAAPI_PARTNER_TAG)

    @property
    def has_rakuten_credentials(self) -> bool:
        return bool(self.RAKUTEN_APPLICATION_ID)

    @property
    def has_sentry(self) -> bool:
        return bool(self.SENTRY_DSN)


# Create an instance
config = Config.from_env()

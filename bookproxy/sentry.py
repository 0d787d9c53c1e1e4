"""
Sentry initialization for centralized error tracking.
Observes reality, never controls logic.
"""
import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from bookproxy.config import Config, config as default_config
from bookproxy.logger import logger

_SENSITIVE_HEADERS = {"authorization", "x-amz-security-token"}

_enabled = False


def initialize_sentry(cfg: Optional[Config] = None) -> bool:
    """Initialize Sentry SDK if DSN is configured."""
    global _enabled
    cfg = cfg or default_config

    if not cfg.has_sentry:
        logger.info("Sentry not configured, skipping initialization")
        return False

    try:
        sentry_sdk.init(
            dsn=cfg.SENTRY_DSN,
            environment=cfg.ENVIRONMENT,
            integrations=[
                AsyncioIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ],
            traces_sample_rate=0.1,
            send_default_pii=False,
            debug=False,
            before_send=_scrub_event
        )
        _enabled = True
        logger.info("Sentry initialized for error tracking")

    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")

    return _enabled


def _scrub_event(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """Strip credentials from outgoing events and tag them with the system name."""
    event.setdefault("tags", {})
    event["tags"]["system"] = "book-search-proxy"

    headers = event.get("request", {}).get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in _SENSITIVE_HEADERS:
                headers[name] = "[Filtered]"

    return event


def capture_upstream_failure(provider: str, status_code: int, message: str):
    """Capture an upstream catalog failure in Sentry."""
    if not _enabled:
        return

    with sentry_sdk.push_scope() as scope:
        scope.set_tag("provider", provider)
        scope.set_tag("upstream_status", str(status_code))
        scope.set_level("error")

        sentry_sdk.capture_message(
            f"{provider} upstream failure ({status_code}): {message}",
            "error"
        )

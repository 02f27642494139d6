"""Structured logging for weather provider calls."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredProviderLogger:
    """Structured logger for outbound weather provider calls."""

    def log_call(
        self,
        provider: str,
        call: str,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log a provider call with structured data."""
        log_data: dict[str, Any] = {
            "provider": provider,
            "call": call,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Weather provider call: {provider}.{call} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Settings for the command line entry point."""

    log_level: str = "WARNING"
    tracing_enabled: bool = False
    metrics_file: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the environment.

        Environment Variables:
            BUCKET_BLUEPRINT_LOG_LEVEL: Log level (default: WARNING)
            BUCKET_BLUEPRINT_TRACING: Enable OpenTelemetry tracing (default: false)
            BUCKET_BLUEPRINT_METRICS_FILE: Write Prometheus metrics to this file after a run
        """
        return cls(
            log_level=os.getenv("BUCKET_BLUEPRINT_LOG_LEVEL", "WARNING").upper(),
            tracing_enabled=os.getenv("BUCKET_BLUEPRINT_TRACING", "false").lower() in ("1", "true", "yes"),
            metrics_file=os.getenv("BUCKET_BLUEPRINT_METRICS_FILE") or None,
        )

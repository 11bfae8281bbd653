"""Runtime settings for the Well engine."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class WellSettings:
    """Centralized runtime configuration.

    Attributes:
        pump_update_budget_s: Wall-time allowance for a single pump update.
            Overruns are reported as contained pump failures. None disables
            the check.
        log_level: structlog filtering level name
        api_host: Host for the quote API server
        api_port: Port for the quote API server
        api_debug: Enable reload mode for the quote API server
    """

    pump_update_budget_s: float | None = 0.05
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    @classmethod
    def from_env(cls) -> "WellSettings":
        """Load settings from WELL_* environment variables, falling back to defaults.

        - WELL_PUMP_UPDATE_BUDGET_S: seconds, or "none" to disable
        - WELL_LOG_LEVEL: e.g. DEBUG, INFO, WARNING
        - WELL_API_HOST / WELL_API_PORT / WELL_API_DEBUG
        """
        default = cls()
        budget_raw = os.environ.get("WELL_PUMP_UPDATE_BUDGET_S")
        if budget_raw is None:
            budget = default.pump_update_budget_s
        elif budget_raw.lower() in ("", "none", "off"):
            budget = None
        else:
            budget = float(budget_raw)

        return cls(
            pump_update_budget_s=budget,
            log_level=os.environ.get("WELL_LOG_LEVEL", default.log_level).upper(),
            api_host=os.environ.get("WELL_API_HOST", default.api_host),
            api_port=int(os.environ.get("WELL_API_PORT", str(default.api_port))),
            api_debug=os.environ.get("WELL_API_DEBUG", "false").lower() in ("true", "1", "yes"),
        )


# Default configuration instance
DEFAULT_SETTINGS = WellSettings()

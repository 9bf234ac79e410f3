# =============================================================================
# core/config.py  —  Backend connection settings
# =============================================================================
#
# The gateway never reads globals: it receives a BackendConfig when it is
# constructed.  The defaults reproduce the production setup (Tiben API, no
# deadline, a single attempt per request).
#
# ENVIRONMENT:
#   TIBEN_API_BASE  →  overrides api_base (e.g., a staging server).
#   main.py loads a .env file first, so the variable can live there too.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_BASE = "https://tiben.zocenet.com/api"


@dataclass(frozen=True)
class BackendConfig:
    """Everything the gateway needs to reach the backend."""

    api_base: str = DEFAULT_API_BASE
    timeout: Optional[float] = None    # seconds; None waits forever
    max_retries: int = 0               # extra attempts on retryable failures
    initial_delay: float = 1.0         # seconds before the first retry
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0

    @classmethod
    def from_env(cls) -> "BackendConfig":
        """Build a config, letting TIBEN_API_BASE override the base URL."""
        api_base = os.environ.get("TIBEN_API_BASE", "").strip()
        return cls(api_base=api_base or DEFAULT_API_BASE)

    def endpoint(self, path: str) -> str:
        return f"{self.api_base.rstrip('/')}/{path.lstrip('/')}"

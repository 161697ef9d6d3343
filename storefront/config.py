"""Centralized config for the storefront service.

Environment variables (optional):
- CATALOG_API_URL: base URL of the catalog / seller backend
- HTTP_TIMEOUT_SECONDS: timeout for calls to that backend
- STRIPE_SECRET_KEY: card processor secret key; checkout is disabled without it
- WARM_CATALOG_ON_STARTUP: fetch the full catalog when the app starts
- LOG_LEVEL / LOG_JSON: logging verbosity and renderer
- HOST / PORT: where the `storefront` command serves the app
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


CATALOG_API_URL = os.getenv("CATALOG_API_URL", "http://localhost:3001")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
CHECKOUT_CURRENCY = "usd"

WARM_CATALOG_ON_STARTUP = _env_bool("WARM_CATALOG_ON_STARTUP", default=True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = _env_bool("LOG_JSON", default=False)

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))

import os
from dotenv import load_dotenv

load_dotenv() # Load variables from .env file

# --- Defaults ---
GATEWAY_DEFAULT_URL = "https://provenance-gateway.dev.datafund.io"
DEFAULT_TIMEOUT = 30000 # milliseconds
POOL_SIZES = ("small", "medium", "large")

# --- Loaded Config ---
PROVENANCE_GATEWAY_URL = os.getenv("PROVENANCE_GATEWAY_URL", GATEWAY_DEFAULT_URL)

try:
    DEFAULT_TIMEOUT_MS = int(os.getenv("PROVENANCE_TIMEOUT_MS", str(DEFAULT_TIMEOUT)))
except (ValueError, TypeError):
    DEFAULT_TIMEOUT_MS = DEFAULT_TIMEOUT

DEFAULT_POOL_SIZE = os.getenv("PROVENANCE_POOL_SIZE", "small")
if DEFAULT_POOL_SIZE not in POOL_SIZES:
    DEFAULT_POOL_SIZE = "small"

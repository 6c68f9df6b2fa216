"""Configuration settings for the quote-offer backend."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from project root
project_root = Path(__file__).resolve().parent.parent.parent
env_path = project_root / ".env"
load_dotenv(env_path)
load_dotenv()  # Fallback: try loading from current working directory


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Request-quote source system (customer requests feeding new drafts)
REQUEST_QUOTE_SERVICE_URL = os.getenv("REQUEST_QUOTE_SERVICE_URL", "http://localhost:5116").rstrip("/")
REQUEST_QUOTE_TIMEOUT_SECONDS = float(os.getenv("REQUEST_QUOTE_TIMEOUT_SECONDS", "10"))

# When true, failing to read the highest stored quote number at startup stops the app
# instead of restarting the sequence at 1.
QUOTE_NUMBER_INIT_STRICT = _env_bool("QUOTE_NUMBER_INIT_STRICT")

# Validity applied at finalization when the caller does not give an expiration date
DEFAULT_QUOTE_VALIDITY_DAYS = int(os.getenv("DEFAULT_QUOTE_VALIDITY_DAYS", "30"))

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

"""Environment configuration for the FurnaceLog service."""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Database
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./furnacelog.db")

# Deployment
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

# Auth boundary (tokens are issued by the external auth service)
AUTH_SECRET = os.environ.get("AUTH_SECRET", "dev-secret-change-me")
AUTH_ALGORITHM = "HS256"

# Event publishing
DAPR_ENABLED = _env_bool("DAPR_ENABLED", False)
DAPR_PUBSUB_NAME = os.environ.get("DAPR_PUBSUB_NAME", "maintenance-pubsub")

# Default zone used to resolve "today" when a home has none of its own
HOME_TIMEZONE = os.environ.get("HOME_TIMEZONE", "America/Yellowknife")

# Scheduling
MAX_OCCURRENCES_HARD_CAP = int(os.environ.get("MAX_OCCURRENCES_HARD_CAP", "500"))
DEFAULT_MATERIALIZE_COUNT = int(os.environ.get("DEFAULT_MATERIALIZE_COUNT", "12"))

# Analysis
MAX_TIMELINE_POINTS = int(os.environ.get("MAX_TIMELINE_POINTS", "4000"))
PREVIEW_COUNT = 5

# Pattern detection heuristics
PATTERN_MIN_OCCURRENCES = int(os.environ.get("PATTERN_MIN_OCCURRENCES", "3"))
PATTERN_HIGH_MIN_OCCURRENCES = int(os.environ.get("PATTERN_HIGH_MIN_OCCURRENCES", "5"))
PATTERN_HIGH_CONSISTENCY = float(os.environ.get("PATTERN_HIGH_CONSISTENCY", "70"))
PATTERN_MEDIUM_CONSISTENCY = float(os.environ.get("PATTERN_MEDIUM_CONSISTENCY", "50"))

# Weather correlation
COLD_SEVERITY_THRESHOLD = os.environ.get("COLD_SEVERITY_THRESHOLD", "severe")
COLD_LOOKBACK_DAYS = int(os.environ.get("COLD_LOOKBACK_DAYS", "14"))
COLD_TEMPERATURE_THRESHOLD = float(os.environ.get("COLD_TEMPERATURE_THRESHOLD", "-30"))
SEASON_PRESET = os.environ.get("SEASON_PRESET", "meteorological")

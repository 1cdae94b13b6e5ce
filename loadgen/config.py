"""Configuration management"""
import os
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from loadgen.exceptions import ConfigurationError

load_dotenv()

# Target deployment of the social network application
BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8080").rstrip("/")

# Named load profile used by the locustfile (see loadgen.profiles)
LOAD_PROFILE: str = os.getenv("LOAD_PROFILE", "load")

# Seed user that follows every freshly registered user
SEED_USER_ID: int = int(os.getenv("SEED_USER_ID", "1"))

# Where the JSON result artifacts are written
RESULTS_DIR: Path = Path(os.getenv("RESULTS_DIR", "."))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Prometheus exporter for generator-side metrics
ENABLE_PROMETHEUS: bool = os.getenv("ENABLE_PROMETHEUS", "false").lower() == "true"
PROMETHEUS_PORT: int = int(os.getenv("PROMETHEUS_PORT", "9646"))


# Validation
def validate_config() -> None:
    """Validate configuration before a run starts"""
    from loadgen.profiles import PROFILES

    parsed = urlparse(BASE_URL)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(
            f"BASE_URL must be an http(s) URL, got {BASE_URL!r}",
            config_key="BASE_URL",
        )
    if LOAD_PROFILE not in PROFILES:
        raise ConfigurationError(
            f"Unknown LOAD_PROFILE {LOAD_PROFILE!r} (choose from {', '.join(sorted(PROFILES))})",
            config_key="LOAD_PROFILE",
        )
    if SEED_USER_ID < 0:
        raise ConfigurationError("SEED_USER_ID must be non-negative", config_key="SEED_USER_ID")
    if not 0 < PROMETHEUS_PORT < 65536:
        raise ConfigurationError("PROMETHEUS_PORT must be a valid TCP port", config_key="PROMETHEUS_PORT")

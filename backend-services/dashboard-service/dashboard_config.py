# backend-services/dashboard-service/dashboard_config.py
"""
Environment-driven configuration for the dashboard service.

Configuration is read once per request through load_config() and handed to the
handlers as an immutable DashboardConfig, so tests can swap in any universe or
credential without touching module state.
"""
import json
import os
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from shared.contracts import TrackedUniverse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.api-ninjas.com/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_WORKERS = 10

# Companies to track, organized by industry. Dict order is display order.
DEFAULT_INDUSTRIES = {
    "technology": {
        "name": "Technology Sector",
        "companies": [
            {"ticker": "AAPL", "name": "Apple Inc."},
            {"ticker": "MSFT", "name": "Microsoft Corporation"},
            {"ticker": "GOOGL", "name": "Alphabet Inc. (Google)"},
            {"ticker": "META", "name": "Meta Platforms Inc."},
            {"ticker": "AMZN", "name": "Amazon.com Inc."},
        ],
    },
    "pharmaceutical": {
        "name": "Pharmaceutical Sector",
        "companies": [
            {"ticker": "PFE", "name": "Pfizer Inc."},
            {"ticker": "JNJ", "name": "Johnson & Johnson"},
            {"ticker": "NVS", "name": "Novartis AG"},
            {"ticker": "BMY", "name": "Bristol Myers Squibb Co."},
            {"ticker": "MRK", "name": "Merck & Co. Inc."},
            # Daiichi Sankyo trades OTC as DSNKY if it should be swapped in
        ],
    },
}


class ConfigError(Exception):
    """Raised when the tracked universe or a numeric setting cannot be parsed."""


class DashboardConfig(BaseModel):
    """Immutable per-request view of the service configuration."""
    model_config = ConfigDict(frozen=True)

    api_key: Optional[SecretStr] = None
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_workers: int = Field(DEFAULT_MAX_WORKERS, ge=1)
    universe: TrackedUniverse

    @property
    def has_credentials(self) -> bool:
        return self.api_key is not None and bool(self.api_key.get_secret_value().strip())


def build_universe(raw: dict) -> TrackedUniverse:
    """
    Converts the JSON shape used for configuration into a TrackedUniverse.

    Accepts either {"companies": [...]} or {"industries": {key: {"name", "companies"}}}.
    """
    if not isinstance(raw, dict):
        raise ConfigError("Tracked universe must be a JSON object.")
    try:
        if "industries" in raw:
            industries = raw["industries"]
            if not isinstance(industries, dict):
                raise ConfigError("'industries' must be an object keyed by industry.")
            groups = [
                {"key": key, "name": group.get("name", key), "companies": group.get("companies", [])}
                for key, group in industries.items()
            ]
            return TrackedUniverse.model_validate({"industries": groups})
        return TrackedUniverse.model_validate({"companies": raw.get("companies")})
    except (ValidationError, AttributeError) as e:
        raise ConfigError(f"Invalid tracked universe: {e}") from e


def load_universe(path: Optional[str] = None) -> TrackedUniverse:
    """Loads the universe from a JSON file, or the built-in industries when no path is set."""
    if not path:
        return build_universe({"industries": DEFAULT_INDUSTRIES})
    universe_file = Path(path)
    try:
        raw = json.loads(universe_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read tracked universe from {universe_file}: {e}") from e
    universe = build_universe(raw)
    logger.info(f"Loaded {len(universe.all_companies())} tracked companies from {universe_file}.")
    return universe


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {value!r}.") from e


def load_config() -> DashboardConfig:
    """Reads the environment into a fresh DashboardConfig."""
    api_key = os.getenv("API_KEY")
    try:
        return DashboardConfig(
            api_key=SecretStr(api_key) if api_key else None,
            base_url=os.getenv("API_NINJAS_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            timeout_seconds=_env_number("PROVIDER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float),
            max_workers=_env_number("PRICE_FETCH_MAX_WORKERS", DEFAULT_MAX_WORKERS, int),
            universe=load_universe(os.getenv("TRACKED_UNIVERSE_PATH")),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid service configuration: {e}") from e

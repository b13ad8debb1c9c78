# backend-services/dashboard-service/provider_client.py
"""
HTTP client for the API Ninjas stock endpoints.

This module encapsulates requests to:
- GET {base}/stockprice?ticker=T
- GET {base}/earningstranscript?ticker=T[&year=Y&quarter=Q]

Each function:
- Authenticates with the 'X-Api-Key' header taken from the DashboardConfig.
- Returns the parsed JSON payload on a 2xx response.
- Raises ProviderError on network errors, non-2xx statuses or invalid JSON,
  and ProviderNotFoundError when the provider answers 404.
Error messages never contain the API key.
"""
import logging
import requests

from dashboard_config import DashboardConfig
from helper_functions import redact

logger = logging.getLogger(__name__)

# --- Shared requests Session for connection pooling ---
# No retry adapter is mounted: a failed lookup is reported as-is.
session = requests.Session()


class ProviderError(Exception):
    """An upstream lookup failed. status_code is None for transport-level failures."""

    def __init__(self, ticker: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.ticker = ticker
        self.message = message
        self.status_code = status_code


class ProviderNotFoundError(ProviderError):
    """The provider reports no data for this ticker."""


def _get_json(endpoint: str, ticker: str, config: DashboardConfig, params: dict):
    api_key = config.api_key.get_secret_value() if config.api_key else ''
    url = f"{config.base_url}/{endpoint}"
    headers = {
        'X-Api-Key': api_key,
        'Content-Type': 'application/json',
    }
    try:
        response = session.get(url, headers=headers, params=params, timeout=config.timeout_seconds)
    except requests.exceptions.RequestException as e:
        message = redact(f"API request failed for {ticker}: {e}", api_key)
        logger.error(message)
        raise ProviderError(ticker, message) from None

    if not response.ok:
        message = f"API request failed for {ticker}: {response.status_code} {response.reason or ''}".rstrip()
        logger.error(message)
        if response.status_code == 404:
            raise ProviderNotFoundError(ticker, message, 404)
        raise ProviderError(ticker, message, response.status_code)

    try:
        return response.json()
    except ValueError as e:
        message = redact(f"Invalid JSON from provider for {ticker}: {e}", api_key)
        logger.error(message)
        raise ProviderError(ticker, message, response.status_code) from None


def fetch_stock_price(ticker: str, config: DashboardConfig):
    """
    Fetches the latest price payload for a single ticker.

    Args:
        ticker: The stock symbol to look up.
        config: Service configuration providing key, base URL and timeout.

    Returns:
        The decoded JSON payload, e.g. {"ticker": "AAPL", "price": 192.5, ...}.
    """
    return _get_json('stockprice', ticker, config, {'ticker': ticker})


def fetch_earnings_transcript(ticker: str, config: DashboardConfig, year: int | None = None, quarter: int | None = None):
    """
    Fetches an earnings call transcript. Without year/quarter the provider
    returns the most recent one.
    """
    params = {'ticker': ticker}
    if year is not None:
        params['year'] = year
    if quarter is not None:
        params['quarter'] = quarter
    return _get_json('earningstranscript', ticker, config, params)

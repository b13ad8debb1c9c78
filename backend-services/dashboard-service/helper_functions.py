# backend-services/dashboard-service/helper_functions.py
import re
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone

from pydantic import BaseModel

# Letters, digits, dot, hyphen. Longest listed symbols are well under 10 characters.
_TICKER_PATTERN = re.compile(r"^[A-Z0-9.\-]{1,10}$")

# --- Thread-local storage for log context ---
_thread_local = threading.local()


class TickerContextFilter(logging.Filter):
    """
    This filter injects the ticker symbol from thread-local storage into log records.
    """
    def filter(self, record):
        record.ticker = getattr(_thread_local, 'ticker', 'N/A')
        return True


@contextmanager
def ticker_log_context(ticker: str):
    """Tags every log record emitted by the current thread with the given ticker."""
    _thread_local.ticker = ticker
    try:
        yield
    finally:
        if hasattr(_thread_local, 'ticker'):
            del _thread_local.ticker


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T14:03:07.123Z"""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def normalize_ticker(raw) -> str | None:
    """
    Upper-cases and trims a ticker from user input.
    Returns None when the value is missing, blank, or not a plausible symbol.
    """
    if not isinstance(raw, str):
        return None
    ticker = raw.strip().upper()
    if not ticker or not _TICKER_PATTERN.match(ticker):
        return None
    return ticker


def redact(message: str, secret: str | None) -> str:
    """Removes every occurrence of the secret from a message before it leaves the service."""
    if secret:
        return message.replace(secret, '***')
    return message


def dump_contract(model: BaseModel) -> dict:
    """
    Serializes a response contract with its wire aliases.
    Top-level keys left unset (None) are dropped so that flat and grouped
    payloads only carry their own collection.
    """
    return {key: value for key, value in model.model_dump(by_alias=True).items() if value is not None}

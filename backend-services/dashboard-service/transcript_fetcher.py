# backend-services/dashboard-service/transcript_fetcher.py
import logging
from typing import Callable, Optional, Tuple

from shared.contracts import ApiError, TranscriptResponse
from helper_functions import ticker_log_context, utc_timestamp
from provider_client import ProviderError, ProviderNotFoundError

logger = logging.getLogger(__name__)


def _not_found(ticker: str) -> Tuple[ApiError, int]:
    return ApiError(
        error='Not found',
        message=f"No earnings transcript found for ticker {ticker}",
        ticker=ticker,
    ), 404


def fetch_transcript(
    ticker: str,
    fetch: Callable[..., object],
    year: Optional[int] = None,
    quarter: Optional[int] = None,
) -> Tuple[object, int]:
    """
    Relays a single earnings transcript lookup.

    Args:
        ticker: Normalized (upper-case) ticker symbol.
        fetch: Callable taking (ticker, year=, quarter=) and returning the provider payload.

    Returns:
        (contract model, HTTP status): 200 with the transcript, 404 when the
        provider has nothing for the ticker, 500 for any other failure.
    """
    with ticker_log_context(ticker):
        try:
            transcript = fetch(ticker, year=year, quarter=quarter)
        except ProviderNotFoundError:
            logger.info("Provider reports no transcript.")
            return _not_found(ticker)
        except ProviderError as e:
            logger.error(f"Transcript lookup failed: {e.message}")
            return ApiError(
                error='Internal server error',
                message='An unexpected error occurred while fetching earnings transcript',
                details=e.message,
                ticker=ticker,
            ), 500

        # An empty object or list means the provider has no transcript for this ticker.
        if not transcript:
            logger.info("Provider returned an empty transcript payload.")
            return _not_found(ticker)

        logger.info("Transcript retrieved.")
        return TranscriptResponse(ticker=ticker, data=transcript, timestamp=utc_timestamp()), 200

# backend-services/dashboard-service/price_aggregator.py
# Fans out one price lookup per tracked company and folds the outcomes into a single response
import logging
import math
import numbers
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from shared.contracts import (
    IndustryPriceSummary,
    PriceResult,
    ProviderUnavailableResponse,
    StockPricesResponse,
    TrackedCompany,
    TrackedUniverse,
)
from helper_functions import ticker_log_context, utc_timestamp

logger = logging.getLogger(__name__)

PriceFetcher = Callable[[str], object]


@dataclass(frozen=True)
class PriceAggregate:
    """All lookup outcomes for one request, in configured order."""
    results: List[PriceResult]
    groups: Optional[Dict[str, IndustryPriceSummary]]
    total_companies: int
    total_successful: int

    @property
    def grouped(self) -> bool:
        return self.groups is not None


def _extract_price(ticker: str, payload) -> float:
    """Pulls a usable price out of a provider payload, or raises ValueError."""
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected payload for {ticker}: expected an object")
    price = payload.get('price')
    if price is None:
        raise ValueError(f"No price returned for {ticker}")
    if isinstance(price, bool) or not isinstance(price, numbers.Real):
        raise ValueError(f"Non-numeric price returned for {ticker}: {price!r}")
    if not math.isfinite(price):
        raise ValueError(f"Non-finite price returned for {ticker}: {price!r}")
    return float(price)


def fetch_company_price(company: TrackedCompany, fetch_price: PriceFetcher) -> PriceResult:
    """
    Looks up one company. Every failure is captured in the returned PriceResult;
    this function never raises, so one bad ticker cannot disturb its siblings.
    """
    with ticker_log_context(company.ticker):
        try:
            payload = fetch_price(company.ticker)
            price = _extract_price(company.ticker, payload)
        except Exception as e:
            logger.warning(f"Price lookup failed: {e}")
            return PriceResult(
                ticker=company.ticker,
                display_name=company.display_name,
                price=None,
                observed_at=utc_timestamp(),
                succeeded=False,
                error_detail=str(e) or type(e).__name__,
            )
        return PriceResult(
            ticker=company.ticker,
            display_name=company.display_name,
            price=price,
            observed_at=utc_timestamp(),
            succeeded=True,
        )


def fetch_all_prices(companies: List[TrackedCompany], fetch_price: PriceFetcher, max_workers: int = 10) -> List[PriceResult]:
    """
    Dispatches every lookup at once and waits for all of them to settle.
    executor.map yields in submission order, so result i belongs to company i.
    """
    if not companies:
        return []
    workers = max(1, min(max_workers, len(companies)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='price-fetch') as executor:
        return list(executor.map(lambda company: fetch_company_price(company, fetch_price), companies))


def _count_successes(results: List[PriceResult]) -> int:
    return sum(1 for r in results if r.succeeded)


def aggregate_prices(universe: TrackedUniverse, fetch_price: PriceFetcher, max_workers: int = 10) -> PriceAggregate:
    """
    Runs one concurrent batch across every tracked company, then splits the
    results back into their industry groups when the universe is grouped.
    """
    companies = universe.all_companies()
    results = fetch_all_prices(companies, fetch_price, max_workers=max_workers)
    total_successful = _count_successes(results)
    logger.info(f"Fetched prices for {len(results)} companies, {total_successful} succeeded.")

    groups = None
    if universe.grouped:
        groups = {}
        offset = 0
        for group in universe.industries:
            group_results = results[offset:offset + len(group.companies)]
            offset += len(group.companies)
            groups[group.key] = IndustryPriceSummary(
                display_name=group.display_name,
                results=group_results,
                total_count=len(group_results),
                success_count=_count_successes(group_results),
            )

    return PriceAggregate(
        results=results,
        groups=groups,
        total_companies=len(results),
        total_successful=total_successful,
    )


def build_price_response(aggregate: PriceAggregate) -> Tuple[object, int]:
    """
    Applies the aggregation policy.

    Returns:
        (contract model, HTTP status). 503 when companies are tracked but none
        of their lookups succeeded; 200 otherwise, including an empty universe.
        Callers must inspect each entry's 'success' flag on a 200.
    """
    if aggregate.total_companies > 0 and aggregate.total_successful == 0:
        logger.error(f"All {aggregate.total_companies} price lookups failed.")
        detail = {'industries': aggregate.groups} if aggregate.grouped else {'details': aggregate.results}
        return ProviderUnavailableResponse(message='Unable to fetch stock data from provider', **detail), 503

    collection = {'industries': aggregate.groups} if aggregate.grouped else {'data': aggregate.results}
    response = StockPricesResponse(
        timestamp=utc_timestamp(),
        total_companies=aggregate.total_companies,
        total_successful=aggregate.total_successful,
        **collection,
    )
    return response, 200

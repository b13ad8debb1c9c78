# backend-services/shared/contracts.py
"""
This module defines the Pydantic models that serve as the formal data contracts
between the dashboard backend and the static frontend that renders it.

These models ensure data consistency, provide automatic validation, and act as
living documentation for the JSON shapes the frontend consumes. Field aliases
carry the wire names (e.g. 'name', 'success'), while the Python attribute
names describe what the value means.
"""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Contract 1: Tracked universe (static configuration) ---
class TrackedCompany(BaseModel):
    """A company whose price is shown on the dashboard."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ticker: str = Field(..., min_length=1)
    display_name: str = Field(..., alias='name')


class IndustryGroup(BaseModel):
    """A named bucket of companies. Member order is display order."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(..., min_length=1)
    display_name: str = Field(..., alias='name')
    companies: Tuple[TrackedCompany, ...] = ()


class TrackedUniverse(BaseModel):
    """
    Either a flat list of companies or an ordered set of industry groups.
    Exactly one of the two modes is active.
    """
    model_config = ConfigDict(frozen=True)

    companies: Optional[Tuple[TrackedCompany, ...]] = None
    industries: Optional[Tuple[IndustryGroup, ...]] = None

    @model_validator(mode='after')
    def _exactly_one_mode(self):
        if (self.companies is None) == (self.industries is None):
            raise ValueError("Configure either 'companies' or 'industries', not both or neither.")
        if self.industries is not None:
            keys = [group.key for group in self.industries]
            if len(keys) != len(set(keys)):
                raise ValueError("Industry keys must be unique.")
        return self

    @property
    def grouped(self) -> bool:
        return self.industries is not None

    def all_companies(self) -> List[TrackedCompany]:
        """Every tracked company, flattened across groups in configured order."""
        if self.industries is None:
            return list(self.companies)
        return [company for group in self.industries for company in group.companies]


# --- Contract 2: PriceResult ---
class PriceResult(BaseModel):
    """Outcome of one price lookup. Failed lookups carry price=None and an error."""
    model_config = ConfigDict(populate_by_name=True)

    ticker: str
    display_name: str = Field(..., alias='name')
    price: Optional[float] = None
    observed_at: str = Field(..., alias='timestamp')
    succeeded: bool = Field(..., alias='success')
    error_detail: Optional[str] = Field(None, alias='error')


# --- Contract 3: Aggregated price responses ---
class IndustryPriceSummary(BaseModel):
    """Results of one industry group with group-local counts."""
    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(..., alias='name')
    results: List[PriceResult] = Field(..., alias='data')
    total_count: int = Field(..., alias='count')
    success_count: int = Field(..., alias='successCount')


class StockPricesResponse(BaseModel):
    """The 200 payload of /api/stocks, flat ('data') or grouped ('industries')."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: Optional[List[PriceResult]] = None
    industries: Optional[Dict[str, IndustryPriceSummary]] = None
    timestamp: str
    total_companies: int = Field(..., alias='totalCompanies')
    total_successful: int = Field(..., alias='totalSuccessful')


class ProviderUnavailableResponse(BaseModel):
    """The 503 payload of /api/stocks when every lookup failed."""
    error: str = "Service unavailable"
    message: str
    details: Optional[List[PriceResult]] = None
    industries: Optional[Dict[str, IndustryPriceSummary]] = None


# --- Contract 4: Earnings transcript ---
class TranscriptResponse(BaseModel):
    """The 200 payload of /api/earnings. The transcript itself is passed through as-is."""
    success: bool = True
    ticker: str
    data: Any
    timestamp: str


# --- Contract 5: Errors ---
class ApiError(BaseModel):
    """Every error body carries at least 'error' and 'message'."""
    error: str
    message: str
    details: Optional[str] = None
    ticker: Optional[str] = None

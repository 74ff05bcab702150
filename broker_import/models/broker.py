"""Normalized broker record models shared by parsers, validator and stores."""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


def slugify(name: str) -> str:
    """
    Build a URL slug from a broker name.

    Examples:
        "IC Markets" -> "ic-markets"
        "XM.com (Global)" -> "xm-com-global"
    """
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class _Item(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BrokerInfo(_Item):
    """Top-level broker attributes."""

    name: Optional[str] = None
    slug: Optional[str] = None
    website_url: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    featured_status: bool = False
    min_deposit: Optional[float] = None
    min_deposit_currency: str = "USD"
    spread_type: Optional[str] = None
    typical_spread: Optional[float] = None
    max_leverage: Optional[float] = None
    established_year: Optional[int] = None
    headquarters: Optional[str] = None
    status: str = "active"


class Regulation(_Item):
    regulatory_body: Optional[str] = None
    license_number: Optional[str] = None
    regulation_status: str = "Regulated"
    jurisdiction: Optional[str] = None


class Feature(_Item):
    feature_name: Optional[str] = None
    feature_type: str = "General"
    description: Optional[str] = None
    availability: bool = True
    category: Optional[str] = None


class TradingCondition(_Item):
    instrument_type: Optional[str] = None
    min_spread: Optional[float] = None
    typical_spread: Optional[float] = None
    max_leverage: Optional[float] = None
    commission_rate: Optional[float] = None
    commission_type: str = "per_lot"
    min_trade_size: Optional[float] = None


class AccountType(_Item):
    account_name: Optional[str] = None
    account_type: Optional[str] = None
    min_deposit: Optional[float] = None
    min_deposit_currency: Optional[str] = None
    commission: Optional[float] = None
    leverage: Optional[float] = None
    islamic_account: bool = False
    demo_available: bool = True


class Platform(_Item):
    platform_name: Optional[str] = None
    platform_type: Optional[str] = None
    version: Optional[str] = None
    web_trading: bool = False
    mobile_trading: bool = False
    desktop_trading: bool = False


class PaymentMethod(_Item):
    payment_method: Optional[str] = None
    currency: Optional[str] = None
    processing_time: Optional[str] = None
    deposit: bool = True
    withdrawal: bool = True
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None


class SupportChannel(_Item):
    support_type: Optional[str] = None
    contact_info: Optional[str] = None
    availability: Optional[str] = None


class EducationItem(_Item):
    resource_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None


class Review(_Item):
    rating: Optional[float] = None
    title: Optional[str] = None
    content: Optional[str] = None
    verified_status: bool = False
    approved: bool = True
    helpful_count: int = 0


class AffiliateLink(_Item):
    link_url: Optional[str] = None
    commission_type: Optional[str] = None
    active_status: bool = True


class Promotion(_Item):
    title: Optional[str] = None
    description: Optional[str] = None
    promotion_type: Optional[str] = None
    bonus_amount: Optional[float] = None
    bonus_currency: Optional[str] = None
    active_status: bool = True


class NormalizedBrokerRecord(BaseModel):
    """Canonical in-memory shape produced by every parser and extractor."""

    broker: BrokerInfo = Field(default_factory=BrokerInfo)
    regulations: List[Regulation] = Field(default_factory=list)
    features: List[Feature] = Field(default_factory=list)
    trading_conditions: List[TradingCondition] = Field(default_factory=list)
    account_types: List[AccountType] = Field(default_factory=list)
    platforms: List[Platform] = Field(default_factory=list)
    payment_methods: List[PaymentMethod] = Field(default_factory=list)
    support: List[SupportChannel] = Field(default_factory=list)
    education: List[EducationItem] = Field(default_factory=list)
    reviews: List[Review] = Field(default_factory=list)
    affiliate_links: List[AffiliateLink] = Field(default_factory=list)
    promotions: List[Promotion] = Field(default_factory=list)
    source_file: Optional[str] = Field(default=None, description="File the record came from")

    @property
    def name(self) -> Optional[str]:
        return self.broker.name

    def ensure_slug(self) -> None:
        """Fill in the slug from the name when the parser did not set one."""
        if self.broker.name and not self.broker.slug:
            self.broker.slug = slugify(self.broker.name)


@dataclass(frozen=True)
class Single:
    """Exactly one broker extracted from a file."""

    record: NormalizedBrokerRecord


@dataclass(frozen=True)
class Many:
    """Zero or more brokers extracted from a single bundle."""

    records: Tuple[NormalizedBrokerRecord, ...]


ParsedBrokers = Union[Single, Many]


def as_records(parsed: ParsedBrokers) -> List[NormalizedBrokerRecord]:
    """Normalize a parser result to a plain list of records."""
    if isinstance(parsed, Single):
        return [parsed.record]
    if isinstance(parsed, Many):
        return list(parsed.records)
    raise TypeError(f"Unexpected parser result: {type(parsed).__name__}")

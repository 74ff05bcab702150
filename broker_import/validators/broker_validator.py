"""Field-level validation rules for broker records."""

import re
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel

from broker_import.models.broker import (
    AccountType,
    AffiliateLink,
    BrokerInfo,
    EducationItem,
    Feature,
    NormalizedBrokerRecord,
    PaymentMethod,
    Platform,
    Promotion,
    Regulation,
    Review,
    SupportChannel,
    TradingCondition,
)
from broker_import.models.pipeline import ValidationOutcome
from broker_import.validators.base import BrokerValidator


REGULATION_STATUSES = ["Regulated", "Unregulated", "Pending", "Suspended"]
FEATURE_TYPES = ["Platform", "Trading Tool", "Research", "Account Feature", "General", "Education"]
INSTRUMENT_TYPES = ["Forex", "Indices", "Commodities", "Stocks", "Cryptocurrencies", "ETFs", "Bonds"]
COMMISSION_TYPES = ["per_lot", "per_share", "percentage", "fixed"]
SUPPORT_TYPES = ["phone", "email", "live_chat", "ticket"]
EDUCATION_TYPES = ["webinar", "course", "article", "video", "ebook"]
AFFILIATE_COMMISSION_TYPES = ["cpa", "revshare", "hybrid"]
CURRENCIES = ["USD", "EUR", "GBP", "JPY", "AUD", "CAD", "CHF", "CNY"]

Messages = Tuple[List[str], List[str]]


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _negative(value: Optional[float]) -> bool:
    return value is not None and value < 0


def _valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


def validate_broker(broker: BrokerInfo) -> Messages:
    errors, warnings = [], []

    if _blank(broker.name):
        errors.append("Broker name is required")

    if _blank(broker.slug):
        errors.append("Broker slug is required")
    elif not re.fullmatch(r"[a-z0-9-]+", broker.slug):
        errors.append("Broker slug must contain only lowercase letters, numbers, and hyphens")

    if broker.rating is not None and not 0 <= broker.rating <= 5:
        errors.append("Rating must be a number between 0 and 5")
    if _negative(broker.min_deposit):
        errors.append("Minimum deposit must be a positive number")
    if _negative(broker.max_leverage):
        errors.append("Maximum leverage must be a positive number")
    if broker.established_year is not None and not 1900 <= broker.established_year <= datetime.now().year:
        errors.append("Established year must be between 1900 and current year")

    if not broker.website_url:
        warnings.append("Website URL is recommended")
    if not broker.description:
        warnings.append("Description is recommended for better SEO")
    if not broker.logo_url:
        warnings.append("Logo URL is recommended for better user experience")

    return errors, warnings


def validate_regulation(item: Regulation) -> Messages:
    errors, warnings = [], []
    if _blank(item.regulatory_body):
        errors.append("Regulatory body is required")
    if item.regulation_status not in REGULATION_STATUSES:
        errors.append(f"Regulation status must be one of: {', '.join(REGULATION_STATUSES)}")
    if not item.license_number:
        warnings.append("License number is recommended for regulated brokers")
    if not item.jurisdiction:
        warnings.append("Jurisdiction is recommended for better accuracy")
    return errors, warnings


def validate_feature(item: Feature) -> Messages:
    errors, warnings = [], []
    if _blank(item.feature_name):
        errors.append("Feature name is required")
    if item.feature_type not in FEATURE_TYPES:
        errors.append(f"Feature type must be one of: {', '.join(FEATURE_TYPES)}")
    if item.description and len(item.description) > 1000:
        warnings.append("Feature description is very long, consider shortening")
    return errors, warnings


def validate_trading_condition(item: TradingCondition) -> Messages:
    errors = []
    if _blank(item.instrument_type):
        errors.append("Instrument type is required")
    elif item.instrument_type not in INSTRUMENT_TYPES:
        errors.append(f"Instrument type must be one of: {', '.join(INSTRUMENT_TYPES)}")
    for label, value in (
        ("Minimum spread", item.min_spread),
        ("Typical spread", item.typical_spread),
        ("Maximum leverage", item.max_leverage),
        ("Commission rate", item.commission_rate),
    ):
        if _negative(value):
            errors.append(f"{label} must be a positive number")
    if item.min_trade_size is not None and item.min_trade_size <= 0:
        errors.append("Minimum trade size must be a positive number")
    if item.commission_type not in COMMISSION_TYPES:
        errors.append(f"Commission type must be one of: {', '.join(COMMISSION_TYPES)}")
    return errors, []


def validate_account_type(item: AccountType) -> Messages:
    errors, warnings = [], []
    if _blank(item.account_name):
        errors.append("Account name is required")
    for label, value in (
        ("Minimum deposit", item.min_deposit),
        ("Commission", item.commission),
        ("Leverage", item.leverage),
    ):
        if _negative(value):
            errors.append(f"{label} must be a positive number")
    if item.min_deposit_currency and item.min_deposit_currency not in CURRENCIES:
        warnings.append(f"Currency code may not be standard: {item.min_deposit_currency}")
    return errors, warnings


def validate_platform(item: Platform) -> Messages:
    errors, warnings = [], []
    if _blank(item.platform_name):
        errors.append("Platform name is required")
    if not item.platform_type:
        warnings.append("Platform type is recommended")
    if not item.version:
        warnings.append("Platform version is recommended")
    return errors, warnings


def validate_payment_method(item: PaymentMethod) -> Messages:
    errors, warnings = [], []
    if _blank(item.payment_method):
        errors.append("Payment method is required")
    if _negative(item.min_amount):
        errors.append("Minimum amount must be a positive number")
    if _negative(item.max_amount):
        errors.append("Maximum amount must be a positive number")
    if not item.currency:
        warnings.append("Currency is recommended for payment methods")
    if not item.processing_time:
        warnings.append("Processing time is recommended")
    return errors, warnings


def validate_support(item: SupportChannel) -> Messages:
    errors, warnings = [], []
    if _blank(item.support_type):
        errors.append("Support type is required")
    elif item.support_type not in SUPPORT_TYPES:
        errors.append(f"Support type must be one of: {', '.join(SUPPORT_TYPES)}")
    if not item.contact_info:
        warnings.append("Contact information is recommended")
    if not item.availability:
        warnings.append("Availability information is recommended")
    return errors, warnings


def validate_education(item: EducationItem) -> Messages:
    errors = []
    if _blank(item.resource_type):
        errors.append("Resource type is required")
    elif item.resource_type not in EDUCATION_TYPES:
        errors.append(f"Resource type must be one of: {', '.join(EDUCATION_TYPES)}")
    if _blank(item.title):
        errors.append("Title is required")
    if item.url and not _valid_url(item.url):
        errors.append("URL must be a valid URL")
    return errors, []


def validate_review(item: Review) -> Messages:
    errors = []
    if item.rating is None:
        errors.append("Rating is required")
    elif not 1 <= item.rating <= 5:
        errors.append("Rating must be a number between 1 and 5")
    if item.helpful_count < 0:
        errors.append("Helpful count must be a positive number")
    return errors, []


def validate_affiliate_link(item: AffiliateLink) -> Messages:
    errors = []
    if _blank(item.link_url):
        errors.append("Link URL is required")
    elif not _valid_url(item.link_url):
        errors.append("Link URL must be a valid URL")
    if item.commission_type and item.commission_type not in AFFILIATE_COMMISSION_TYPES:
        errors.append(f"Commission type must be one of: {', '.join(AFFILIATE_COMMISSION_TYPES)}")
    return errors, []


def validate_promotion(item: Promotion) -> Messages:
    errors, warnings = [], []
    if _blank(item.title):
        errors.append("Title is required")
    if _negative(item.bonus_amount):
        errors.append("Bonus amount must be a positive number")
    if item.bonus_currency and item.bonus_currency not in CURRENCIES:
        warnings.append(f"Bonus currency code may not be standard: {item.bonus_currency}")
    return errors, warnings


COLLECTION_RULES: List[Tuple[str, Callable[[BaseModel], Messages]]] = [
    ("regulations", validate_regulation),
    ("features", validate_feature),
    ("trading_conditions", validate_trading_condition),
    ("account_types", validate_account_type),
    ("platforms", validate_platform),
    ("payment_methods", validate_payment_method),
    ("support", validate_support),
    ("education", validate_education),
    ("reviews", validate_review),
    ("affiliate_links", validate_affiliate_link),
    ("promotions", validate_promotion),
]


class BrokerDataValidator(BrokerValidator):
    """Validates a complete broker record: the broker itself and every nested item.

    Messages for nested items are prefixed with the collection and index,
    e.g. ``"regulations 0: Regulatory body is required"``.
    """

    def validate(self, record: NormalizedBrokerRecord) -> ValidationOutcome:
        errors, warnings = validate_broker(record.broker)

        for collection, rule in COLLECTION_RULES:
            for index, item in enumerate(getattr(record, collection)):
                item_errors, item_warnings = rule(item)
                errors.extend(f"{collection} {index}: {e}" for e in item_errors)
                warnings.extend(f"{collection} {index}: {w}" for w in item_warnings)

        return ValidationOutcome(is_valid=not errors, errors=errors, warnings=warnings)

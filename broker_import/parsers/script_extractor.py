"""Extractor for broker object literals embedded in JavaScript bundles."""

import json
import logging
import math
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from broker_import.models.broker import (
    AccountType,
    AffiliateLink,
    BrokerInfo,
    EducationItem,
    Feature,
    Many,
    NormalizedBrokerRecord,
    ParsedBrokers,
    PaymentMethod,
    Platform,
    Promotion,
    Regulation,
    Review,
    Single,
    SupportChannel,
    TradingCondition,
    slugify,
)
from broker_import.parsers.base import ScriptExtraction, ScriptExtractor

logger = logging.getLogger(__name__)


# Canonical field -> aliases seen in scraped bundles, in priority order
FIELD_ALIASES: Dict[str, List[str]] = {
    "name": ["name", "brokerName", "title", "broker_title"],
    "logo": ["logo", "image", "logo_url", "image_url", "img"],
    "rating": ["rating", "rate", "score", "stars"],
    "description": ["description", "desc", "about", "summary"],
    "website": ["website", "site", "url", "website_url"],
    "minDeposit": ["minDeposit", "min_deposit", "minimum_deposit"],
    "spread": ["spread", "spreads", "spread_value"],
    "spreadType": ["spreadType", "spread_type"],
    "leverage": ["leverage", "max_leverage", "maxLeverage"],
    "regulations": ["regulations", "regulation", "regulators"],
    "tradingConditions": ["tradingConditions", "trading_conditions"],
    "features": ["features", "services", "offerings"],
    "accountTypes": ["accountTypes", "account_types", "accounts"],
    "platforms": ["platforms", "trading_platforms"],
    "paymentMethods": ["paymentMethods", "payment_methods", "deposits"],
    "support": ["support", "customer_support", "help"],
    "education": ["education", "educational", "learning"],
    "reviewCount": ["reviewCount", "reviews_count", "num_reviews"],
    "established": ["established", "founded", "since"],
    "headquarters": ["headquarters", "location", "office"],
    "affiliateLink": ["affiliateLink", "visitLink", "affiliate_url"],
    "promotion": ["promotion", "bonus"],
}

# Besides a name, a broker literal carries at least one of these
BROKER_HINT_FIELDS = ("logo", "rating", "website", "minDeposit", "leverage", "regulations", "platforms")

NAME_KEY_RE = re.compile(r"""["']?(?:name|brokerName|broker_title)["']?\s*:""")

API_ENDPOINT_PATTERNS = [
    re.compile(r"""ApiEnvHost\s*=\s*['"]([^'"]+)['"]""", re.IGNORECASE),
    re.compile(r"""fetch\(\s*['"]([^'"]*/api/[^'"]+)['"]""", re.IGNORECASE),
    re.compile(r"""\.(?:get|post|put|delete)\(\s*['"]([^'"]*/api/[^'"]+)['"]""", re.IGNORECASE),
    re.compile(r"""['"]([^'"\s]*/api/[^'"\s]+)['"]""", re.IGNORECASE),
]

CONFIG_PATTERNS = {
    "api_url": re.compile(r"""ApiEnvHost\s*=\s*['"]([^'"]+)['"]""", re.IGNORECASE),
    "page_language": re.compile(r"""PageLanguage\s*=\s*['"]([^'"]+)['"]""", re.IGNORECASE),
    "page_language_id": re.compile(r"""PageLanguageId\s*=\s*(\d+)""", re.IGNORECASE),
    "assets_prefix": re.compile(r"""AssetsPrefix\s*=\s*['"]([^'"]+)['"]""", re.IGNORECASE),
}

_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_$][\w$]*)(\s*:)")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


class JavaScriptDataExtractor(ScriptExtractor):
    """Find broker object literals in script bundles and convert them to records."""

    def extract(self, script_content: str) -> ScriptExtraction:
        """
        Scan a bundle for broker literals, API endpoints and configuration.

        Args:
            script_content: JavaScript source (minified or not)

        Returns:
            ScriptExtraction with normalized broker dictionaries
        """
        brokers = [self.normalize_broker(raw) for raw in self._find_broker_literals(script_content)]

        logger.debug(f"Found {len(brokers)} broker literal(s) in script bundle")

        return ScriptExtraction(
            brokers=brokers,
            config=self._extract_configuration(script_content),
            api_endpoints=self._extract_api_endpoints(script_content),
        )

    def to_records(self, extraction: ScriptExtraction) -> ParsedBrokers:
        """Convert every extracted broker into its own record.

        A broker whose values cannot be converted is logged and left out;
        the other brokers of the bundle are still returned.
        """
        records = []
        for broker in extraction.brokers:
            try:
                records.append(self._to_record(broker))
            except ValidationError as e:
                logger.warning(f"Skipping malformed broker {broker.get('name')!r}: {e}")

        if len(records) == 1:
            return Single(records[0])
        return Many(tuple(records))

    def _find_broker_literals(self, content: str) -> Iterator[Dict[str, Any]]:
        """
        Yield the outermost object literals that look like brokers.

        Objects that fail to parse, or parse but are not brokers, are searched
        for nested broker literals instead.
        """
        spans, children = _object_spans(content)
        pending = [i for i, (_, _, parent) in enumerate(spans) if parent is None]

        while pending:
            index = pending.pop(0)
            start, end, _ = spans[index]
            if end == -1:
                # unterminated object; its closed children may still hold brokers
                pending[0:0] = children.get(index, [])
                continue

            literal = content[start:end + 1]
            if not NAME_KEY_RE.search(literal):
                continue

            obj = _parse_literal(literal)
            if isinstance(obj, dict) and self._is_broker(obj):
                yield obj
            else:
                pending[0:0] = children.get(index, [])

    @staticmethod
    def _is_broker(obj: Dict[str, Any]) -> bool:
        has_name = any(obj.get(alias) for alias in FIELD_ALIASES["name"])
        has_hint = any(
            obj.get(alias) is not None
            for field in BROKER_HINT_FIELDS
            for alias in FIELD_ALIASES[field]
        )
        return has_name and has_hint

    @staticmethod
    def normalize_broker(raw: Dict[str, Any]) -> Dict[str, Any]:
        """Map aliased field names onto canonical names."""
        normalized: Dict[str, Any] = {}
        for target, aliases in FIELD_ALIASES.items():
            for alias in aliases:
                if raw.get(alias) is not None:
                    normalized[target] = raw[alias]
                    break

        for collection in ("regulations", "tradingConditions"):
            value = normalized.get(collection)
            if value is not None and not isinstance(value, list):
                normalized[collection] = [value]

        if normalized.get("name") and not raw.get("slug"):
            normalized["slug"] = slugify(str(normalized["name"]))
        elif raw.get("slug"):
            normalized["slug"] = raw["slug"]

        return normalized

    def _to_record(self, broker: Dict[str, Any]) -> NormalizedBrokerRecord:
        """Convert one normalized broker dictionary to the canonical record."""
        name = broker.get("name")
        info = BrokerInfo(
            name=str(name) if name else None,
            slug=_as_str(broker.get("slug")),
            logo_url=_as_str(broker.get("logo")),
            website_url=_as_str(broker.get("website")),
            description=_as_str(broker.get("description")),
            rating=_as_float(broker.get("rating")),
            review_count=_as_int(broker.get("reviewCount")),
            min_deposit=_as_float(broker.get("minDeposit")),
            spread_type=_as_str(broker.get("spreadType")) or "Variable",
            typical_spread=_as_float(broker.get("spread")),
            max_leverage=_as_leverage(broker.get("leverage")),
            established_year=_as_int(broker.get("established")),
            headquarters=_as_str(broker.get("headquarters")),
        )

        record = NormalizedBrokerRecord(broker=info)

        for reg in _items(broker.get("regulations")):
            if isinstance(reg, str):
                record.regulations.append(Regulation(regulatory_body=reg))
            elif isinstance(reg, dict):
                record.regulations.append(Regulation(
                    regulatory_body=_as_str(reg.get("body") or reg.get("regulatoryBody") or reg.get("name")),
                    license_number=_as_str(reg.get("license") or reg.get("licenseNumber")),
                    regulation_status=_as_str(reg.get("status")) or "Regulated",
                    jurisdiction=_as_str(reg.get("jurisdiction") or reg.get("country")),
                ))

        for cond in _items(broker.get("tradingConditions")):
            if isinstance(cond, dict):
                record.trading_conditions.append(TradingCondition(
                    instrument_type=_as_str(cond.get("instrument") or cond.get("instrumentType") or cond.get("type")),
                    min_spread=_as_float(cond.get("minSpread")),
                    typical_spread=_as_float(cond.get("spread") or cond.get("typicalSpread")),
                    max_leverage=_as_leverage(cond.get("leverage")),
                    commission_rate=_as_float(cond.get("commission")),
                ))

        for feature in _items(broker.get("features")):
            if isinstance(feature, str):
                record.features.append(Feature(feature_name=feature))
            elif isinstance(feature, dict):
                record.features.append(Feature(
                    feature_name=_as_str(feature.get("name") or feature.get("feature_name")),
                    feature_type=_as_str(feature.get("type") or feature.get("feature_type")) or "General",
                    description=_as_str(feature.get("description")),
                    availability=feature.get("available") is not False,
                ))

        for account in _items(broker.get("accountTypes")):
            if isinstance(account, dict):
                record.account_types.append(AccountType(
                    account_name=_as_str(account.get("name") or account.get("account_name")),
                    account_type=_as_str(account.get("type") or account.get("account_type")),
                    min_deposit=_as_float(account.get("minDeposit") or account.get("min_deposit")),
                    commission=_as_float(account.get("commission")),
                    leverage=_as_leverage(account.get("leverage")),
                    islamic_account=bool(account.get("islamic") or account.get("islamic_account")),
                    demo_available=account.get("demo") is not False,
                ))

        for platform in _items(broker.get("platforms")):
            if isinstance(platform, str):
                record.platforms.append(Platform(platform_name=platform))
            elif isinstance(platform, dict):
                record.platforms.append(Platform(
                    platform_name=_as_str(platform.get("name") or platform.get("platform_name")),
                    platform_type=_as_str(platform.get("type") or platform.get("platform_type")),
                    version=_as_str(platform.get("version")),
                    web_trading=bool(platform.get("web") or platform.get("web_trading")),
                    mobile_trading=bool(platform.get("mobile") or platform.get("mobile_trading")),
                    desktop_trading=bool(platform.get("desktop") or platform.get("desktop_trading")),
                ))

        for payment in _items(broker.get("paymentMethods")):
            if isinstance(payment, str):
                record.payment_methods.append(PaymentMethod(payment_method=payment))
            elif isinstance(payment, dict):
                record.payment_methods.append(PaymentMethod(
                    payment_method=_as_str(payment.get("name") or payment.get("payment_method")),
                    currency=_as_str(payment.get("currency")),
                    processing_time=_as_str(payment.get("processingTime") or payment.get("processing_time")),
                    deposit=payment.get("deposit") is not False,
                    withdrawal=payment.get("withdrawal") is not False,
                ))

        for support in _items(broker.get("support")):
            if isinstance(support, dict):
                record.support.append(SupportChannel(
                    support_type=_as_str(support.get("type") or support.get("support_type")),
                    contact_info=_as_str(support.get("contact") or support.get("contact_info")),
                    availability=_as_str(support.get("hours") or support.get("availability")),
                ))

        for edu in _items(broker.get("education")):
            if isinstance(edu, dict):
                record.education.append(EducationItem(
                    resource_type=_as_str(edu.get("type") or edu.get("resource_type")),
                    title=_as_str(edu.get("title")),
                    description=_as_str(edu.get("description")),
                    url=_as_str(edu.get("url")),
                ))

        if info.rating and info.review_count:
            record.reviews.append(Review(rating=info.rating, helpful_count=info.review_count))

        if broker.get("affiliateLink"):
            record.affiliate_links.append(AffiliateLink(link_url=str(broker["affiliateLink"])))

        promotion = broker.get("promotion")
        if isinstance(promotion, dict):
            record.promotions.append(Promotion(
                title=_as_str(promotion.get("title")),
                description=_as_str(promotion.get("description")),
                promotion_type=_as_str(promotion.get("type")),
                bonus_amount=_as_float(promotion.get("amount")),
                bonus_currency=_as_str(promotion.get("currency")),
            ))
        elif isinstance(promotion, str):
            record.promotions.append(Promotion(title=promotion))

        return record

    @staticmethod
    def _extract_api_endpoints(content: str) -> List[Dict[str, str]]:
        endpoints: List[Dict[str, str]] = []
        seen = set()
        for pattern in API_ENDPOINT_PATTERNS:
            for match in pattern.finditer(content):
                url = match.group(1)
                if url and url not in seen:
                    seen.add(url)
                    endpoints.append({"url": url, "type": _endpoint_type(url)})
        return endpoints

    @staticmethod
    def _extract_configuration(content: str) -> Dict[str, Any]:
        config = {}
        for key, pattern in CONFIG_PATTERNS.items():
            match = pattern.search(content)
            if match:
                config[key] = match.group(1)
        return config


def _object_spans(content: str) -> Tuple[List[Tuple[int, int, Optional[int]]], Dict[int, List[int]]]:
    """
    Locate balanced ``{...}`` spans, skipping string literals and block comments.

    Returns:
        Tuple of (spans as (start, end, parent_index), children by parent index),
        both ordered by start position
    """
    spans: List[Tuple[int, int, Optional[int]]] = []
    children: Dict[int, List[int]] = {}
    stack: List[Tuple[int, int]] = []  # (start position, reserved span index)
    i = 0
    length = len(content)

    while i < length:
        char = content[i]
        if char in "\"'`":
            i = _skip_string(content, i)
            continue
        if char == "/" and content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue
        if char == "{":
            parent = stack[-1][1] if stack else None
            spans.append((i, -1, parent))
            index = len(spans) - 1
            if parent is not None:
                children.setdefault(parent, []).append(index)
            stack.append((i, index))
        elif char == "}" and stack:
            start, index = stack.pop()
            spans[index] = (start, i, spans[index][2])
        i += 1

    return spans, children


def _skip_string(content: str, start: int) -> int:
    """Return the index just past the string literal starting at ``start``."""
    quote = content[start]
    i = start + 1
    while i < len(content):
        if content[i] == "\\":
            i += 2
            continue
        if content[i] == quote:
            return i + 1
        if content[i] == "\n" and quote != "`":
            # unterminated single-line string; resume scanning at the newline
            return i
        i += 1
    return i


def _parse_literal(literal: str) -> Any:
    """Parse a JavaScript object literal as JSON, returning None when impossible."""
    try:
        return json.loads(_to_json(literal), strict=False)
    except ValueError as e:
        logger.debug(f"Skipping unparseable literal ({e}): {literal[:80]}")
        return None


def _to_json(literal: str) -> str:
    """
    Rewrite a JavaScript literal into JSON.

    Example:
        "{name:'XM', rating: 4.5, minified: !0,}" -> '{"name":"XM", "rating": 4.5, "minified": true}'
    """
    out = []
    code_start = 0
    i = 0
    while i < len(literal):
        if literal[i] in "\"'`":
            out.append(_convert_code(literal[code_start:i]))
            end = _skip_string(literal, i)
            raw = literal[i + 1:end - 1]
            if literal[i] == '"':
                out.append(f'"{raw}"')
            else:
                out.append(json.dumps(raw.replace("\\'", "'")))
            i = code_start = end
            continue
        i += 1
    out.append(_convert_code(literal[code_start:]))
    return "".join(out)


def _convert_code(segment: str) -> str:
    segment = re.sub(r"/\*.*?\*/", "", segment, flags=re.DOTALL)
    segment = _BARE_KEY_RE.sub(r'\1"\2"\3', segment)
    segment = _TRAILING_COMMA_RE.sub(r"\1", segment)
    segment = re.sub(r"!0\b", "true", segment)
    segment = re.sub(r"!1\b", "false", segment)
    return re.sub(r"\bundefined\b", "null", segment)


def _endpoint_type(url: str) -> str:
    for keyword in ("broker", "review", "promotion", "featured", "list", "search"):
        if keyword in url:
            return keyword
    return "general"


def _items(value: Any) -> List[Any]:
    """Accept a list, a dict of items, or a single item."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict) and value and all(isinstance(v, dict) for v in value.values()):
        return list(value.values())
    return [value]


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = re.search(r"-?\d[\d,]*(?:\.\d+)?", str(value))
    return float(match.group(0).replace(",", "")) if match else None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    if number is None or not math.isfinite(number):
        return None
    return int(number)


def _as_leverage(value: Any) -> Optional[float]:
    """Leverage may be written as 500 or "1:500"."""
    if isinstance(value, str) and ":" in value:
        value = value.split(":")[-1]
    return _as_float(value)


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)

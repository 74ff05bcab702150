"""HTML parser for scraped broker review pages."""

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from broker_import.models.broker import (
    AffiliateLink,
    BrokerInfo,
    Feature,
    NormalizedBrokerRecord,
    PaymentMethod,
    Platform,
    Regulation,
    SupportChannel,
)
from broker_import.parsers.base import HtmlParser, ParseError

logger = logging.getLogger(__name__)


REGULATORY_BODIES = [
    "FCA", "CySEC", "ASIC", "FINMA", "BaFin", "MFSA", "FSCA", "DFS", "NFA", "CFTC",
    "IIROC", "FMA", "FSP", "SCB", "VFSC", "SVGFSA", "Labuan FSA", "ADGM", "DFSA",
]

# Review sites the pages were scraped from; their links are never the broker's site
REVIEW_SITE_HOSTS = ("dailyforex.com", "brokeranalysis.com")

FEATURE_SECTIONS = [
    (".features, .broker-features", "General"),
    (".trading-tools, .tools", "Trading Tools"),
    (".research, .analysis", "Research"),
    (".mobile, .app", "Mobile Trading"),
]

SUPPORT_TYPES = {
    "live chat": "live_chat",
    "chat": "live_chat",
    "email": "email",
    "e-mail": "email",
    "phone": "phone",
    "telephone": "phone",
    "ticket": "ticket",
}


class BrokerHTMLParser(HtmlParser):
    """Parse broker review pages into normalized broker records."""

    def parse(self, html_content: str) -> NormalizedBrokerRecord:
        """
        Parse a review page.

        Args:
            html_content: Raw HTML markup

        Returns:
            NormalizedBrokerRecord; ``broker.name`` is None when the page has
            no recognizable title

        Raises:
            ParseError: If the document is empty
        """
        if not html_content or not html_content.strip():
            raise ParseError("Empty HTML document")

        soup = BeautifulSoup(html_content, "lxml")

        record = NormalizedBrokerRecord(
            broker=self._parse_basic_info(soup),
            regulations=self._parse_regulations(soup),
            features=self._parse_features(soup),
            platforms=self._parse_platforms(soup),
            payment_methods=self._parse_payment_methods(soup),
            support=self._parse_support(soup),
            affiliate_links=self._parse_affiliate_links(soup),
        )
        record.ensure_slug()

        logger.debug(
            f"Parsed broker page: name={record.broker.name!r}, "
            f"{len(record.regulations)} regulations, {len(record.features)} features"
        )
        return record

    def _parse_basic_info(self, soup: BeautifulSoup) -> BrokerInfo:
        """Extract the top-level broker attributes."""
        name = self._extract_name(soup)
        meta_description = self._extract_meta(soup, "description")

        return BrokerInfo(
            name=name,
            website_url=self._extract_website(soup),
            logo_url=self._extract_logo(soup),
            description=self._text(soup, ".description, .broker-description, .review-content p"),
            short_description=self._text(soup, ".short-description, .summary, .excerpt") or meta_description,
            rating=self._extract_rating(soup),
            featured_status=soup.select_one(".featured, .featured-broker, .recommended") is not None,
            min_deposit=self._number(self._text(soup, ".min-deposit, .minimum-deposit")),
            spread_type="Fixed" if "Fixed" in (self._text(soup, ".spread-type, .spread-info") or "") else "Variable",
            typical_spread=self._number(self._text(soup, ".typical-spread, .spread-value, .avg-spread")),
            max_leverage=self._extract_leverage(soup),
            established_year=self._extract_year(soup),
            headquarters=self._text(soup, ".headquarters, .location, .office"),
        )

    def _extract_name(self, soup: BeautifulSoup) -> Optional[str]:
        """
        Extract the broker name from the page heading.

        Examples:
            "<h1>XM Review</h1>" -> "XM"
            "<h1 class='broker-name'>IC Markets</h1>" -> "IC Markets"
        """
        text = self._text(soup, "h1") or self._text(soup, ".broker-name, .broker-title")
        if not text:
            return None

        name = re.sub(r"\s+review(\s+\d{4})?$", "", text, flags=re.IGNORECASE).strip()
        return name or None

    def _extract_website(self, soup: BeautifulSoup) -> Optional[str]:
        """Return the first external link that does not point back at a review site."""
        for a_tag in soup.find_all("a", href=True):
            href = a_tag["href"]
            if not href.startswith(("http://", "https://")):
                continue
            if any(host in href for host in REVIEW_SITE_HOSTS):
                continue
            return href
        return None

    def _extract_logo(self, soup: BeautifulSoup) -> Optional[str]:
        img = soup.select_one('img[src*="logo"]')
        if not img:
            return None
        src = img["src"]
        # protocol-relative URLs
        if src.startswith("//"):
            return f"https:{src}"
        return src

    def _extract_rating(self, soup: BeautifulSoup) -> Optional[float]:
        """Extract a 0-5 rating from rating widgets or schema.org markup."""
        rating_elem = soup.select_one('[itemprop="ratingValue"]')
        if rating_elem is not None and rating_elem.get("content"):
            value = self._number(rating_elem["content"])
        else:
            value = self._number(self._text(soup, ".rating, .broker-rating, .score"))

        if value is None or value < 0:
            return None
        # ratings out of 10 are scaled down
        if 5 < value <= 10:
            value = value / 2
        return round(value, 2) if value <= 5 else None

    def _extract_leverage(self, soup: BeautifulSoup) -> Optional[float]:
        """Extract the maximum leverage written as "1:500"."""
        text = self._text(soup, ".leverage, .max-leverage") or ""
        matches = [int(m) for m in re.findall(r"1\s*:\s*(\d+)", text)]
        return float(max(matches)) if matches else None

    def _extract_year(self, soup: BeautifulSoup) -> Optional[int]:
        text = self._text(soup, ".established, .founded, .since-year") or ""
        match = re.search(r"\b(19|20)\d{2}\b", text)
        return int(match.group(0)) if match else None

    def _parse_regulations(self, soup: BeautifulSoup) -> List[Regulation]:
        """Detect known regulators mentioned in regulation sections."""
        regulations = []
        seen = set()

        for section in soup.select(".regulation, .regulations, .license, .regulatory"):
            section_text = section.get_text(" ", strip=True)
            for body in REGULATORY_BODIES:
                if body in seen:
                    continue
                if re.search(rf"\b{re.escape(body)}\b", section_text):
                    seen.add(body)
                    regulations.append(Regulation(
                        regulatory_body=body,
                        license_number=self._extract_license_number(body, section_text),
                    ))

        return regulations

    def _extract_license_number(self, body: str, text: str) -> Optional[str]:
        """Find a license number written shortly after the regulator's name."""
        match = re.search(
            rf"{re.escape(body)}[^.;\n]{{0,40}}?(?:licen[cs]e|reg(?:istration)?)\s*(?:no\.?|number|#)?\s*:?\s*([A-Z0-9/-]{{3,}})",
            text,
            flags=re.IGNORECASE,
        )
        return match.group(1) if match else None

    def _parse_features(self, soup: BeautifulSoup) -> List[Feature]:
        features = []
        for selector, category in FEATURE_SECTIONS:
            for section in soup.select(selector):
                for item in section.select("li, .feature-item, .service-item"):
                    text = item.get_text(" ", strip=True)
                    # Skip empty items and whole paragraphs mis-tagged as list items
                    if text and len(text) < 200:
                        features.append(Feature(
                            feature_name=text,
                            category=category,
                            availability=not self._has_class(item, "unavailable", "not-available"),
                        ))
        return features

    def _parse_platforms(self, soup: BeautifulSoup) -> List[Platform]:
        platforms = []
        for item in soup.select(".platforms li, .trading-platforms li"):
            name = item.get_text(" ", strip=True)
            if not name:
                continue
            lowered = name.lower()
            platforms.append(Platform(
                platform_name=name,
                web_trading="web" in lowered,
                mobile_trading=any(k in lowered for k in ("mobile", "ios", "android")),
                desktop_trading="desktop" in lowered or "metatrader" in lowered or "mt4" in lowered or "mt5" in lowered,
            ))
        return platforms

    def _parse_payment_methods(self, soup: BeautifulSoup) -> List[PaymentMethod]:
        return [
            PaymentMethod(payment_method=item.get_text(" ", strip=True))
            for item in soup.select(".payment-methods li, .deposit-methods li")
            if item.get_text(strip=True)
        ]

    def _parse_support(self, soup: BeautifulSoup) -> List[SupportChannel]:
        channels = []
        for item in soup.select(".support li, .customer-support li"):
            text = item.get_text(" ", strip=True)
            lowered = text.lower()
            support_type = next(
                (value for key, value in SUPPORT_TYPES.items() if key in lowered),
                None,
            )
            if support_type:
                channels.append(SupportChannel(support_type=support_type, contact_info=text))
        return channels

    def _parse_affiliate_links(self, soup: BeautifulSoup) -> List[AffiliateLink]:
        links = []
        seen = set()
        for a_tag in soup.select('a.visit-broker, a[href*="/visit/"], a[rel~="sponsored"]'):
            href = a_tag.get("href")
            if href and href not in seen:
                seen.add(href)
                links.append(AffiliateLink(link_url=href))
        return links

    def _text(self, soup: BeautifulSoup, selector: str) -> Optional[str]:
        """Return the stripped text of the first element matching a CSS selector."""
        elem = soup.select_one(selector)
        if elem is None:
            return None
        text = elem.get_text(" ", strip=True)
        return text or None

    def _extract_meta(self, soup: BeautifulSoup, name: str) -> Optional[str]:
        meta = soup.find("meta", attrs={"name": name})
        if meta and meta.get("content"):
            return meta["content"].strip()
        return None

    @staticmethod
    def _number(text: Optional[str]) -> Optional[float]:
        """
        Parse the first number in a string.

        Examples:
            "$1,000" -> 1000.0
            "0.6 pips" -> 0.6
        """
        if not text:
            return None
        match = re.search(r"\d[\d,]*(?:\.\d+)?", text)
        if not match:
            return None
        return float(match.group(0).replace(",", ""))

    @staticmethod
    def _has_class(tag: Tag, *classes: str) -> bool:
        return any(c in (tag.get("class") or []) for c in classes)

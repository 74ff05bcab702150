"""Tests for BrokerDataValidator."""

import pytest

from broker_import.models.broker import (
    AffiliateLink,
    BrokerInfo,
    NormalizedBrokerRecord,
    Platform,
    Regulation,
    Review,
    TradingCondition,
)
from broker_import.validators import BrokerDataValidator


@pytest.fixture
def validator():
    return BrokerDataValidator()


def _record(**broker_fields):
    fields = {
        "name": "XM",
        "slug": "xm",
        "rating": 4.5,
        "website_url": "https://www.xm.com",
        "description": "Multi-asset broker",
        "logo_url": "https://cdn.example.com/xm-logo.png",
    }
    fields.update(broker_fields)
    return NormalizedBrokerRecord(broker=BrokerInfo(**fields))


class TestBrokerRules:
    """Top-level broker attributes."""

    def test_complete_record_is_clean(self, validator):
        record = _record()
        record.regulations.append(Regulation(regulatory_body="CySEC", license_number="120/10", jurisdiction="Cyprus"))

        outcome = validator.validate(record)

        assert outcome.is_valid
        assert outcome.errors == []
        assert outcome.warnings == []

    def test_name_and_slug_required(self, validator):
        outcome = validator.validate(_record(name=None, slug=None))

        assert not outcome.is_valid
        assert "Broker name is required" in outcome.errors
        assert "Broker slug is required" in outcome.errors

    def test_slug_format(self, validator):
        outcome = validator.validate(_record(slug="XM Global"))

        assert outcome.errors == ["Broker slug must contain only lowercase letters, numbers, and hyphens"]

    @pytest.mark.parametrize("rating,valid", [(0, True), (5, True), (5.5, False), (-1, False)])
    def test_rating_range(self, validator, rating, valid):
        assert validator.validate(_record(rating=rating)).is_valid is valid

    def test_established_year(self, validator):
        outcome = validator.validate(_record(established_year=1850))

        assert "Established year must be between 1900 and current year" in outcome.errors

    def test_negative_amounts(self, validator):
        outcome = validator.validate(_record(min_deposit=-5, max_leverage=-1))

        assert "Minimum deposit must be a positive number" in outcome.errors
        assert "Maximum leverage must be a positive number" in outcome.errors

    def test_recommendations_are_warnings(self, validator):
        outcome = validator.validate(_record(website_url=None, description=None, logo_url=None))

        assert outcome.is_valid
        assert outcome.warnings == [
            "Website URL is recommended",
            "Description is recommended for better SEO",
            "Logo URL is recommended for better user experience",
        ]


class TestCollectionRules:
    """Nested item messages carry the collection name and index."""

    def test_regulation_errors_prefixed(self, validator):
        record = _record()
        record.regulations.append(Regulation(regulatory_body="FCA", license_number="1", jurisdiction="UK"))
        record.regulations.append(Regulation(regulatory_body=" ", regulation_status="Revoked",
                                             license_number="2", jurisdiction="UK"))

        outcome = validator.validate(record)

        assert outcome.errors == [
            "regulations 1: Regulatory body is required",
            "regulations 1: Regulation status must be one of: Regulated, Unregulated, Pending, Suspended",
        ]

    def test_unknown_instrument(self, validator):
        record = _record()
        record.trading_conditions.append(TradingCondition(instrument_type="Crypto"))

        outcome = validator.validate(record)

        assert outcome.errors[0].startswith("trading_conditions 0: Instrument type must be one of:")

    def test_review_and_affiliate_link(self, validator):
        record = _record()
        record.reviews.append(Review(rating=None))
        record.affiliate_links.append(AffiliateLink(link_url="not a url"))

        outcome = validator.validate(record)

        assert "reviews 0: Rating is required" in outcome.errors
        assert "affiliate_links 0: Link URL must be a valid URL" in outcome.errors

    def test_item_warnings_prefixed(self, validator):
        record = _record()
        record.platforms.append(Platform(platform_name="MetaTrader 4"))

        outcome = validator.validate(record)

        assert outcome.is_valid
        assert outcome.warnings == [
            "platforms 0: Platform type is recommended",
            "platforms 0: Platform version is recommended",
        ]

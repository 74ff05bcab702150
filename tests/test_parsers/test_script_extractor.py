"""Tests for JavaScriptDataExtractor."""

from unittest.mock import patch

import pytest

from broker_import.models.broker import BrokerInfo, Many, Single
from broker_import.parsers import JavaScriptDataExtractor, ScriptExtraction


@pytest.fixture
def extractor():
    return JavaScriptDataExtractor()


FULL_BROKER = """
window.__DATA__ = {name: "Full Markets", rating: 4, reviewCount: 120,
  tradingConditions: {instrument: "Forex", spread: "0.6", leverage: "1:500"},
  accountTypes: [{name: "Standard", minDeposit: 100}],
  platforms: ["MT4", {name: "cTrader", web: true}],
  paymentMethods: ["Visa"],
  support: [{type: "email", contact: "help@full.example.com"}],
  education: [{type: "webinar", title: "Intro to FX"}],
  affiliateLink: "https://full.example.com/go",
  promotion: {title: "Welcome bonus", amount: 50, currency: "USD"},
};
"""


class TestExtract:
    """Finding broker literals in bundles."""

    def test_aliases_are_normalized(self, extractor):
        bundle = 'x={brokerName:"XM",score:"4.6",min_deposit:"$5",maxLeverage:"1:1000",regulation:"CySEC"}'

        extraction = extractor.extract(bundle)

        assert len(extraction.brokers) == 1
        broker = extraction.brokers[0]
        assert broker["name"] == "XM"
        assert broker["slug"] == "xm"
        assert broker["regulations"] == ["CySEC"]

    def test_nested_broker_found(self, extractor):
        bundle = 'var data = {page: {title: "Top brokers"}, items: [{name: "Nested", rating: 4}]};'

        extraction = extractor.extract(bundle)

        assert [b["name"] for b in extraction.brokers] == ["Nested"]

    def test_minified_literals(self, extractor):
        bundle = "e.exports={name:'Mini',rating:4.1,featured:!0,hidden:!1,promo:undefined,};"

        extraction = extractor.extract(bundle)

        assert extraction.brokers[0]["name"] == "Mini"
        assert extraction.brokers[0]["rating"] == 4.1

    def test_comments_and_braces_in_strings(self, extractor):
        bundle = """
        /* {name: "Ghost", rating: 1} */
        var a = {name: "Curly {Brace} FX", rating: 3, website: "https://curly.example.com"};
        """

        extraction = extractor.extract(bundle)

        assert [b["name"] for b in extraction.brokers] == ["Curly {Brace} FX"]

    def test_objects_without_broker_fields_ignored(self, extractor):
        extraction = extractor.extract('var user = {name: "Alice", age: 30};')

        assert extraction.brokers == []

    def test_config_and_endpoints(self, extractor):
        bundle = """
        window.ApiEnvHost = "https://api.example.com";
        var PageLanguage = "en"; var PageLanguageId = 1;
        fetch("/api/brokers/list").then(r => r.json());
        """

        extraction = extractor.extract(bundle)

        assert extraction.config["api_url"] == "https://api.example.com"
        assert extraction.config["page_language"] == "en"
        assert extraction.config["page_language_id"] == "1"
        endpoints = {e["url"]: e["type"] for e in extraction.api_endpoints}
        assert endpoints["/api/brokers/list"] == "broker"
        assert endpoints["https://api.example.com"] == "general"


class TestToRecords:
    """Conversion of extracted literals to records."""

    def test_single_broker(self, extractor):
        parsed = extractor.to_records(extractor.extract(FULL_BROKER))

        assert isinstance(parsed, Single)
        record = parsed.record
        assert record.broker.name == "Full Markets"
        assert record.broker.slug == "full-markets"
        assert record.trading_conditions[0].instrument_type == "Forex"
        assert record.trading_conditions[0].typical_spread == 0.6
        assert record.trading_conditions[0].max_leverage == 500.0
        assert record.account_types[0].account_name == "Standard"
        assert record.account_types[0].min_deposit == 100.0
        assert [p.platform_name for p in record.platforms] == ["MT4", "cTrader"]
        assert record.platforms[1].web_trading is True
        assert record.payment_methods[0].payment_method == "Visa"
        assert record.support[0].support_type == "email"
        assert record.education[0].title == "Intro to FX"
        assert record.reviews[0].helpful_count == 120
        assert record.affiliate_links[0].link_url == "https://full.example.com/go"
        assert record.promotions[0].bonus_amount == 50.0

    def test_every_broker_of_a_bundle_kept(self, extractor):
        extraction = ScriptExtraction(brokers=[
            {"name": "One", "rating": 4},
            {"name": "Two", "rating": 3},
            {"name": "Three", "rating": 5},
        ])

        parsed = extractor.to_records(extraction)

        assert isinstance(parsed, Many)
        assert [r.broker.name for r in parsed.records] == ["One", "Two", "Three"]

    def test_no_brokers(self, extractor):
        parsed = extractor.to_records(ScriptExtraction())

        assert parsed == Many(())

    def test_leverage_and_numbers(self, extractor):
        extraction = extractor.extract('b={name:"N",leverage:"1:200",minDeposit:"$1,500",established:"since 2011"}')

        record = extractor.to_records(extraction).record

        assert record.broker.max_leverage == 200.0
        assert record.broker.min_deposit == 1500.0
        assert record.broker.established_year == 2011

    def test_non_string_values_are_coerced(self, extractor):
        bundle = """
        var brokers = [
          {name: "Good FX", rating: 4.1, regulations: [{body: "ASIC", status: "Regulated"}]},
          {name: "Bad FX", rating: 3.9, regulations: [{body: "FCA", status: 1, country: 44}],
           features: [{name: "Hedging", type: 2}], promotion: {title: 100, currency: 978}}
        ];
        """

        parsed = extractor.to_records(extractor.extract(bundle))

        assert isinstance(parsed, Many)
        good, bad = parsed.records
        assert good.regulations[0].regulation_status == "Regulated"
        assert bad.regulations[0].regulation_status == "1"
        assert bad.regulations[0].jurisdiction == "44"
        assert bad.features[0].feature_type == "2"
        assert bad.promotions[0].title == "100"
        assert bad.promotions[0].bonus_currency == "978"

    def test_malformed_broker_skipped(self, extractor):
        extraction = ScriptExtraction(brokers=[
            {"name": "Good FX", "rating": 4},
            {"name": "Bad FX", "rating": 3},
        ])
        convert = extractor._to_record

        def to_record(broker):
            if broker["name"] == "Bad FX":
                BrokerInfo(rating="not a number")
            return convert(broker)

        with patch.object(extractor, "_to_record", side_effect=to_record):
            parsed = extractor.to_records(extraction)

        assert isinstance(parsed, Single)
        assert parsed.record.broker.name == "Good FX"

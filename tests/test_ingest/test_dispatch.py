"""Tests for document classification and parser dispatch."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from broker_import.ingest.dispatch import ParserDispatch
from broker_import.ingest.exceptions import UnsupportedFileTypeError
from broker_import.models.broker import BrokerInfo, Many, NormalizedBrokerRecord, Single
from broker_import.models.pipeline import CandidateFile, DocumentKind
from broker_import.parsers.base import ScriptExtraction


class TestClassify:
    """Test extension based classification."""

    @pytest.mark.parametrize("name,kind", [
        ("xm-review.html", DocumentKind.HTML),
        ("PAGE.HTML", DocumentKind.HTML),
        ("bundle.js", DocumentKind.SCRIPT),
    ])
    def test_supported(self, name, kind):
        assert ParserDispatch().classify(Path(name)) == kind

    @pytest.mark.parametrize("name", ["notes.txt", "page.htm", "README"])
    def test_unsupported(self, name):
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            ParserDispatch().classify(Path(name))

        assert "Unsupported file type" in str(exc_info.value)

    def test_candidate(self):
        candidate = ParserDispatch().candidate(Path("/data/x.js"))

        assert candidate == CandidateFile(path=Path("/data/x.js"), kind=DocumentKind.SCRIPT)


class TestParse:
    """Test routing to the parsers."""

    def test_html_uses_parsed_name(self, review_page):
        candidate = CandidateFile(Path("/data/whatever-review.html"), DocumentKind.HTML)

        parsed = ParserDispatch().parse(candidate, review_page("Alpha Markets"))

        assert isinstance(parsed, Single)
        assert parsed.record.broker.name == "Alpha Markets"
        assert parsed.record.broker.slug == "alpha-markets"
        assert parsed.record.source_file == "/data/whatever-review.html"

    def test_html_falls_back_to_file_name(self):
        html_parser = Mock()
        html_parser.parse.return_value = NormalizedBrokerRecord()
        dispatch = ParserDispatch(html_parser=html_parser)
        candidate = CandidateFile(Path("/data/ic-markets-review.html"), DocumentKind.HTML)

        parsed = dispatch.parse(candidate, "<html></html>")

        assert parsed.record.broker.name == "Ic Markets"
        assert parsed.record.broker.slug == "ic-markets"

    def test_script_bundle_returns_all_brokers(self, two_broker_bundle):
        candidate = CandidateFile(Path("/data/c.js"), DocumentKind.SCRIPT)

        parsed = ParserDispatch().parse(candidate, two_broker_bundle)

        assert isinstance(parsed, Many)
        assert [r.broker.name for r in parsed.records] == ["Gamma FX", "Delta Trade"]
        assert all(r.source_file == "/data/c.js" for r in parsed.records)

    def test_script_uses_injected_extractor(self):
        extractor = Mock()
        extractor.extract.return_value = ScriptExtraction()
        extractor.to_records.return_value = Single(NormalizedBrokerRecord(broker=BrokerInfo(name="Solo")))
        dispatch = ParserDispatch(script_extractor=extractor)

        parsed = dispatch.parse(CandidateFile(Path("s.js"), DocumentKind.SCRIPT), "var x = 1;")

        extractor.extract.assert_called_once_with("var x = 1;")
        assert parsed.record.broker.slug == "solo"

"""
Document classification and parser dispatch.
"""

import logging
from pathlib import Path
from typing import Optional

from broker_import.models.broker import Single, ParsedBrokers
from broker_import.models.pipeline import CandidateFile, DocumentKind
from broker_import.parsers.base import HtmlParser, ScriptExtractor
from broker_import.parsers.html_parser import BrokerHTMLParser
from broker_import.parsers.script_extractor import JavaScriptDataExtractor

from .exceptions import UnsupportedFileTypeError
from .filesystem import derive_broker_name


logger = logging.getLogger(__name__)

EXTENSION_KINDS = {
    ".html": DocumentKind.HTML,
    ".js": DocumentKind.SCRIPT,
}


class ParserDispatch:
    """Routes a file to the HTML parser or the script extractor by extension."""

    def __init__(self,
                 html_parser: Optional[HtmlParser] = None,
                 script_extractor: Optional[ScriptExtractor] = None):
        self.html_parser = html_parser or BrokerHTMLParser()
        self.script_extractor = script_extractor or JavaScriptDataExtractor()

    def classify(self, file_path: Path) -> DocumentKind:
        """
        Classify a file by its (case-insensitive) extension.

        Raises:
            UnsupportedFileTypeError: For anything other than .html or .js
        """
        extension = Path(file_path).suffix.lower()
        try:
            return EXTENSION_KINDS[extension]
        except KeyError:
            raise UnsupportedFileTypeError(str(file_path), extension) from None

    def candidate(self, file_path: Path) -> CandidateFile:
        """Classify a discovered file into a CandidateFile."""
        return CandidateFile(path=Path(file_path), kind=self.classify(file_path))

    def parse(self, candidate: CandidateFile, content: str) -> ParsedBrokers:
        """
        Parse file content with the parser matching its kind.

        For HTML pages the broker name falls back to one derived from the
        file name when the page itself does not provide one.
        """
        source = str(candidate.path)

        if candidate.kind == DocumentKind.HTML:
            record = self.html_parser.parse(content)
            if not record.broker.name:
                record.broker.name = derive_broker_name(candidate.path)
                logger.debug(f"Using file-derived broker name '{record.broker.name}' for {source}")
            record.ensure_slug()
            record.source_file = source
            return Single(record)

        extraction = self.script_extractor.extract(content)
        parsed = self.script_extractor.to_records(extraction)
        records = [parsed.record] if isinstance(parsed, Single) else parsed.records
        for record in records:
            record.ensure_slug()
            record.source_file = source
        logger.debug(f"Extracted {len(records)} broker(s) from script {source}")
        return parsed

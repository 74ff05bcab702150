"""Document parsers producing normalized broker records."""

from broker_import.parsers.base import HtmlParser, ParseError, ScriptExtraction, ScriptExtractor
from broker_import.parsers.html_parser import BrokerHTMLParser
from broker_import.parsers.script_extractor import JavaScriptDataExtractor

__all__ = [
    "BrokerHTMLParser",
    "HtmlParser",
    "JavaScriptDataExtractor",
    "ParseError",
    "ScriptExtraction",
    "ScriptExtractor",
]

"""Shared fixtures for import pipeline tests."""

from pathlib import Path

import pytest

from broker_import.store import InMemoryBrokerStore


def _review_page(name: str, rating: str = "4.5") -> str:
    """Minimal review page the HTML parser accepts without validation errors."""
    return f"""
    <html>
      <head><meta name="description" content="{name} broker review"></head>
      <body>
        <h1>{name} Review</h1>
        <div class="rating">{rating}</div>
        <div class="min-deposit">$100</div>
        <div class="leverage">Up to 1:500</div>
        <div class="regulation">Regulated by the FCA and CySEC</div>
      </body>
    </html>
    """


_TWO_BROKER_BUNDLE = """
!function(){
  var brokers = [
    {name: "Gamma FX", rating: 4.2, minDeposit: 50, leverage: "1:400", website: "https://gamma.example.com"},
    {name: 'Delta Trade', rating: 9.7, logo: "https://cdn.example.com/delta-logo.png"}
  ];
  window.ApiEnvHost = "https://api.example.com";
}();
"""


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Empty source directory."""
    directory = tmp_path / "brokers"
    directory.mkdir()
    return directory


@pytest.fixture
def store() -> InMemoryBrokerStore:
    return InMemoryBrokerStore()


@pytest.fixture
def write_file(source_dir: Path):
    """Write a file relative to the source directory and return its path."""
    def _write(name: str, content: str) -> Path:
        path = source_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def review_page():
    """Factory for review page markup: review_page("XM") -> HTML."""
    return _review_page


@pytest.fixture
def two_broker_bundle() -> str:
    """Script bundle with one valid broker and one with an out-of-range rating."""
    return _TWO_BROKER_BUNDLE

"""Batch import of scraped broker-review documents into a broker store."""

__version__ = "0.1.0"
__author__ = "broker-import contributors"
__description__ = "Import pipeline for scraped forex broker review pages and script bundles"

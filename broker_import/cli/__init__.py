"""Command line interface for broker-import."""

"""Utility helpers for broker-import."""

"""Synthetic test data."""

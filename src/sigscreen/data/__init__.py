"""Packaged resources (pre-trained classifier store)."""

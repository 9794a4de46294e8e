"""Tests for sigscreen."""

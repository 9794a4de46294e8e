"""Utility functions and helpers.

Import specific modules directly:

    from sigscreen.utils.config import load_config
    from sigscreen.utils.logging import message
"""

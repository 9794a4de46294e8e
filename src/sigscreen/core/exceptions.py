"""Exceptions and warnings raised while screening recordings."""

from typing import Optional


class SigScreenError(Exception):
    """Base exception for classification failures."""

    def __init__(self, error_message: str):
        self.message = error_message
        super().__init__(self.message)


class MissingParameterError(SigScreenError):
    """Raised when a required argument (the sampling rate) is not given."""


class InsufficientLengthError(SigScreenError):
    """Raised when the signal is shorter than one second."""


class UnknownMethodError(SigScreenError):
    """Raised for a classification method name that is not supported."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unknown method: {method}")


class ModelLoadError(SigScreenError):
    """Raised when the pre-trained decision tree store cannot be loaded."""


class InvalidParameterError(SigScreenError, ValueError):
    """Raised when a method parameter lies outside its valid range."""

    def __init__(self, parameter: str, error_message: Optional[str] = None):
        self.parameter = parameter
        super().__init__(error_message or f"Invalid value for parameter '{parameter}'")


class ThresholdRangeWarning(UserWarning):
    """Issued when a PSD threshold lies outside the recommended range."""

"""
Analysis Errors

Typed failures raised by the calculation engine. All of them derive from
ValueError.
"""

from typing import List, Optional, Tuple


class AnalysisError(ValueError):
    """Base class for engine errors."""


class ValidationError(AnalysisError):
    """
    One or more deal parameters are outside their allowed range.

    Raised before any computation starts. ``field`` names the first
    offending field; ``errors`` lists every (field, message) pair found.
    """

    def __init__(self, field: str, message: str, errors: Optional[List[Tuple[str, str]]] = None):
        self.field = field
        self.message = message
        self.errors = errors or [(field, message)]
        super().__init__(f"{field}: {message}")


class NumericDegeneracyError(AnalysisError):
    """A metric cannot be computed without producing NaN or Infinity."""

    def __init__(self, quantity: str, message: str):
        self.quantity = quantity
        self.message = message
        super().__init__(f"{quantity}: {message}")

"""
Scoring exceptions.

All exceptions inherit from ScoringError.
"""
from typing import Optional


class ScoringError(Exception):
    """Base exception for the scoring core."""
    pass


class ConfigurationError(ScoringError):
    """Raised when scoring configuration is invalid."""
    pass


class PolicyLoadError(ConfigurationError):
    """Raised when a policy source cannot be read or parsed."""
    pass


class ClassifierNotFoundError(ScoringError):
    """Raised when no policy is defined for a classifier."""
    def __init__(self, classifier: str):
        self.classifier = classifier
        super().__init__(f"classifier not defined {classifier}")


class PolicyValidationError(ScoringError, ValueError):
    """
    Raised when a policy record fails validation.

    Subclasses ValueError so pydantic validators can raise it directly;
    the loader unwraps it again from the resulting ValidationError.
    """
    def __init__(self, message: str, classifier: Optional[str] = None, index: Optional[int] = None):
        self.classifier = classifier
        self.index = index
        super().__init__(message)


class InvalidCadenceError(PolicyValidationError):
    """Raised when cadenceThresholdMins is not a positive integer."""
    pass


class InvalidTimeRangeError(PolicyValidationError):
    """Raised when timeRange is negative."""
    pass


class DivisionByZeroWeightError(ScoringError):
    """Raised when the weighted total for a score sums to zero."""
    def __init__(self, data_ref: str, policy: str):
        self.data_ref = data_ref
        self.policy = policy
        super().__init__(f"total weight is zero for {data_ref} under policy {policy}")

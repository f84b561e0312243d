"""
Custom exceptions for the bracket pool.

Validation problems are never raised; they are collected into a
BracketValidationResult. The exceptions below signal that a caller broke
the contract (malformed payload shape, missing configuration).
"""


class BracketPoolError(Exception):
    """Base exception for all custom errors."""
    pass


# Caller contract errors
class SubmissionShapeError(BracketPoolError):
    """Raised when a submission payload cannot be parsed at all."""
    def __init__(self, detail: str = None):
        self.detail = detail
        msg = "Malformed bracket submission"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


# Configuration Errors
class ConfigurationError(BracketPoolError):
    """Raised when tournament or site configuration is invalid or missing."""
    pass


class SiteConfigUnavailableError(ConfigurationError):
    """Raised when the site parameter sheet cannot be fetched or parsed."""
    pass

"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import (
    validate_question,
    find_near_duplicates,
    text_fingerprint,
    DuplicateTextWarning,
    ValidationError,
    MissingFieldError,
    InvalidFieldError,
    InvalidEnumError,
    DuplicateIdError,
    MultipleChoiceInvariantError,
)

__all__ = [
    "validate_question",
    "find_near_duplicates",
    "text_fingerprint",
    "DuplicateTextWarning",
    "ValidationError",
    "MissingFieldError",
    "InvalidFieldError",
    "InvalidEnumError",
    "DuplicateIdError",
    "MultipleChoiceInvariantError",
]

from .validator import ValidationIssue, ValidationResult, normalize, validate

__all__ = ["ValidationIssue", "ValidationResult", "normalize", "validate"]

"""Validation package."""

from fintrack.validation.validator import TransactionValidator, parse_model

__all__ = ["TransactionValidator", "parse_model"]

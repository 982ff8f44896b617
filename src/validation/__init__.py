"""Client-side mutation validation."""

from src.validation.validator import MutationValidator

__all__ = ["MutationValidator"]
